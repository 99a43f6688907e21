"""
Integer grid addresses of octree cells.

An OctantIndex addresses one of the 2^level x 2^level x 2^level cells a
bounding cube is divided into at a given subdivision level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from .bounding_volumes import AxisAlignedBoundingCube
from ..errors import InvalidNumberError

# Cell counts per axis must stay exactly representable as float64
MAX_LEVEL = 52


@dataclass(frozen=True)
class OctantIndex:
    level: int
    x: int
    y: int
    z: int

    def __post_init__(self):
        if not 0 <= self.level <= MAX_LEVEL:
            raise InvalidNumberError(f"octant level must be within [0, {MAX_LEVEL}], got {self.level}")
        cells_per_axis = 1 << self.level
        for axis, value in (("x", self.x), ("y", self.y), ("z", self.z)):
            if not 0 <= value < cells_per_axis:
                raise InvalidNumberError(
                    f"octant index {axis}={value} outside [0, {cells_per_axis}) at level {self.level}"
                )

    def parent(self) -> "OctantIndex":
        if self.level == 0:
            raise InvalidNumberError("the level 0 octant has no parent")
        return OctantIndex(self.level - 1, self.x >> 1, self.y >> 1, self.z >> 1)


def derive_octant_index_arrays(points: np.ndarray, cube: AxisAlignedBoundingCube, level: int):
    """Compute per-point octant indices of Nx3 points inside a cube.

    Points on the upper faces of the cube fall into the last cell; points
    outside the cube are clamped to the nearest border cell.

    Returns:
        Tuple of (x, y, z) uint64 index arrays.
    """
    if not 0 <= level <= MAX_LEVEL:
        raise InvalidNumberError(f"octant level must be within [0, {MAX_LEVEL}], got {level}")
    cells_per_axis = float(1 << level)
    relative = (np.asarray(points, dtype=np.float64) - cube.lower_bound) / cube.edge_length
    indices = np.floor(relative * cells_per_axis)
    indices = np.clip(indices, 0.0, cells_per_axis - 1.0).astype(np.uint64)
    return indices[:, 0], indices[:, 1], indices[:, 2]


def derive_octant_indices(points: np.ndarray, cube: AxisAlignedBoundingCube, level: int) -> List[OctantIndex]:
    xs, ys, zs = derive_octant_index_arrays(points, cube, level)
    return [OctantIndex(level, int(x), int(y), int(z)) for x, y, z in zip(xs, ys, zs)]
