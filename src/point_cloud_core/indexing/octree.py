"""
Point Cloud Octree

Recursively partitions a point set into cells of at most max_size points.
Every cell whose subtree holds more than max_size points keeps a seeded
random sample of exactly max_size points itself and passes the rest on to
its eight child octants, so internal cells carry points as well as leaves.

Cells are addressed by CellIdentifier values (paths of octant labels from
the root); there are no parent/child references between cells. Labels 4-7
follow the Euclidean octant numbering (4 = (+,+,-), 6 = (-,-,-)), so cell
strings differ from tools that number the z-negative octants otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np

from .sampling import split_row_indices
from ..data.point_cloud import PointCloud
from ..data.point_data import PointData
from ..errors import InvalidNumberError
from ..geometry.bounding_volumes import AxisAlignedBoundingCube

logger = logging.getLogger(__name__)

# Edge length of the root cube when all points coincide
DEGENERATE_EDGE_LENGTH = 1.0


class OctantIdentifier(IntEnum):
    """Octant of a cube, numbered as the octants of Euclidean space."""

    ZERO = 0
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7

    @property
    def axis_signs(self) -> Tuple[bool, bool, bool]:
        """(x, y, z) signs, True meaning the positive half."""
        return _OCTANT_SIGNS[self]

    def __str__(self) -> str:
        return str(int(self))


_OCTANT_SIGNS = {
    OctantIdentifier.ZERO: (True, True, True),
    OctantIdentifier.ONE: (False, True, True),
    OctantIdentifier.TWO: (False, False, True),
    OctantIdentifier.THREE: (True, False, True),
    OctantIdentifier.FOUR: (True, True, False),
    OctantIdentifier.FIVE: (False, True, False),
    OctantIdentifier.SIX: (False, False, False),
    OctantIdentifier.SEVEN: (True, False, False),
}


@dataclass(frozen=True)
class CellIdentifier:
    """Path of octant labels from the root cell (empty tuple = root)."""
    octants: Tuple[OctantIdentifier, ...] = ()

    @classmethod
    def origin(cls) -> "CellIdentifier":
        return cls()

    @classmethod
    def parse(cls, text: str) -> "CellIdentifier":
        """Parse the digit string produced by to_string()."""
        try:
            return cls(tuple(OctantIdentifier(int(char)) for char in text))
        except ValueError as e:
            raise InvalidNumberError(f"invalid cell identifier '{text}'") from e

    @property
    def level(self) -> int:
        return len(self.octants)

    def append(self, octant: OctantIdentifier) -> "CellIdentifier":
        return CellIdentifier(self.octants + (OctantIdentifier(octant),))

    def children(self) -> List["CellIdentifier"]:
        return [self.append(octant) for octant in OctantIdentifier]

    def to_string(self) -> str:
        return "".join(str(octant) for octant in self.octants)

    def __str__(self) -> str:
        return self.to_string()


class OctreeCell(NamedTuple):
    cube: AxisAlignedBoundingCube
    point_data: PointData


def _derive_cells(
    points: np.ndarray,
    root_cube: AxisAlignedBoundingCube,
    max_size: int,
    seed: Optional[int],
) -> Dict[CellIdentifier, Tuple[AxisAlignedBoundingCube, np.ndarray]]:
    """
    Assign row indices to cells.

    A point goes to the positive child along an axis if its coordinate is
    >= the parent center, else to the negative child, so every point lands
    in exactly one child even on shared faces.
    """
    cells: Dict[CellIdentifier, Tuple[AxisAlignedBoundingCube, np.ndarray]] = {}
    stack = [(CellIdentifier.origin(), root_cube, np.arange(len(points), dtype=np.int64))]

    while stack:
        cell_id, cube, row_indices = stack.pop()
        if len(row_indices) <= max_size:
            cells[cell_id] = (cube, row_indices)
            continue

        retained, remaining = split_row_indices(row_indices, max_size, seed)
        cells[cell_id] = (cube, retained)

        positive = points[remaining] >= cube.center
        for octant in OctantIdentifier:
            mask = np.all(positive == np.array(octant.axis_signs), axis=1)
            if mask.any():
                stack.append((cell_id.append(octant), cube.sub_cube(*octant.axis_signs), remaining[mask]))

    return cells


def _root_cube(point_data: PointData) -> AxisAlignedBoundingCube:
    """Bounding cube of the store; coincident points get a unit cube around them."""
    local_min = point_data.get_local_min()
    local_max = point_data.get_local_max()
    edge_length = float((local_max - local_min).max())
    if edge_length <= 0.0:
        return AxisAlignedBoundingCube(local_min, DEGENERATE_EDGE_LENGTH)
    return AxisAlignedBoundingCube(local_min + (local_max - local_min) / 2.0, edge_length)


class PointCloudOctree:
    """
    Octree of point subsets keyed by CellIdentifier.

    Example:
        octree = PointCloudOctree.from_point_cloud(cloud, max_size=100_000, seed=42)
        root = octree.cell(CellIdentifier.origin())
        print(octree.number_of_cells(), root.point_data.height)
    """

    def __init__(self, cells: Dict[CellIdentifier, OctreeCell]):
        self._cells = dict(cells)

    @classmethod
    def from_point_data(
        cls,
        point_data: PointData,
        max_size: int,
        seed: Optional[int] = None,
    ) -> "PointCloudOctree":
        """
        Build the octree of a point store.

        When all points coincide the root is a unit cube centered on them.

        Args:
            point_data: Points to partition
            max_size: Maximum number of points held directly by a cell (>= 1)
            seed: Sampling seed (None = 0); equal inputs give equal octrees

        Raises:
            InvalidNumberError: If max_size < 1
        """
        if max_size < 1:
            raise InvalidNumberError(f"max_size must be at least 1, got {max_size}")

        root_cube = _root_cube(point_data)
        assignments = _derive_cells(point_data.get_all_points(), root_cube, max_size, seed)

        cells = {
            cell_id: OctreeCell(cube, point_data.take(row_indices))
            for cell_id, (cube, row_indices) in assignments.items()
        }
        depth = max(cell_id.level for cell_id in cells)
        logger.info(
            f"Built octree with {len(cells)} cells (depth {depth}) "
            f"from {point_data.height} points, max_size={max_size}"
        )
        return cls(cells)

    @classmethod
    def from_point_cloud(
        cls,
        point_cloud: PointCloud,
        max_size: int,
        seed: Optional[int] = None,
    ) -> "PointCloudOctree":
        return cls.from_point_data(point_cloud.point_data, max_size, seed)

    @classmethod
    def from_config(cls, point_cloud: PointCloud, octree_config) -> "PointCloudOctree":
        """Build with the max_points_per_cell and seed of an OctreeConfig section."""
        return cls.from_point_cloud(point_cloud, octree_config.max_points_per_cell, octree_config.seed)

    @property
    def cells(self) -> Dict[CellIdentifier, OctreeCell]:
        return dict(self._cells)

    def cell(self, cell_id: CellIdentifier) -> Optional[OctreeCell]:
        return self._cells.get(cell_id)

    def cell_indices(self) -> List[CellIdentifier]:
        return list(self._cells)

    def number_of_cells(self) -> int:
        return len(self._cells)

    def total_number_of_points(self) -> int:
        return sum(cell.point_data.height for cell in self._cells.values())

    def __eq__(self, other) -> bool:
        if not isinstance(other, PointCloudOctree):
            return NotImplemented
        if self._cells.keys() != other._cells.keys():
            return False
        return all(
            self._cells[k].cube == other._cells[k].cube and self._cells[k].point_data == other._cells[k].point_data
            for k in self._cells
        )
