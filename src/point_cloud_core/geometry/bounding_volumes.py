"""
Axis-aligned bounding volumes used by the spatial index.

Both volumes are immutable. Corners and centers are stored as float
triples and exposed as NumPy arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..errors import (
    InvalidNumberError,
    LowerBoundEqualsUpperBoundError,
    LowerBoundExceedsUpperBoundError,
)

Triple = Tuple[float, float, float]


def _as_triple(values, name: str) -> Triple:
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise InvalidNumberError(f"{name} must have exactly 3 components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidNumberError(f"{name} must be finite, got {arr.tolist()}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass(frozen=True)
class AxisAlignedBoundingBox:
    """Box spanned by a lower and an upper corner.

    The lower corner must not exceed the upper corner on any axis and the
    two corners must not coincide.
    """

    lower: Triple
    upper: Triple

    def __init__(self, lower_bound, upper_bound):
        lower = _as_triple(lower_bound, "lower_bound")
        upper = _as_triple(upper_bound, "upper_bound")
        if any(lo > up for lo, up in zip(lower, upper)):
            raise LowerBoundExceedsUpperBoundError(lower, upper)
        if lower == upper:
            raise LowerBoundEqualsUpperBoundError(lower, upper)
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @classmethod
    def from_points(cls, points: np.ndarray) -> "AxisAlignedBoundingBox":
        """Tightest box around an Nx3 array of points."""
        if points.size == 0:
            raise InvalidNumberError("cannot compute bounds of an empty point set")
        return cls(points.min(axis=0), points.max(axis=0))

    @property
    def lower_bound(self) -> np.ndarray:
        return np.array(self.lower)

    @property
    def upper_bound(self) -> np.ndarray:
        return np.array(self.upper)

    def diagonal(self) -> np.ndarray:
        return self.upper_bound - self.lower_bound

    def center(self) -> np.ndarray:
        return self.lower_bound + self.diagonal() / 2.0


@dataclass(frozen=True)
class AxisAlignedBoundingCube:
    """Cube given by its center and a positive edge length."""

    center_point: Triple
    edge_length: float

    def __init__(self, center, edge_length: float):
        center_point = _as_triple(center, "center")
        edge_length = float(edge_length)
        if not np.isfinite(edge_length) or edge_length <= 0.0:
            raise InvalidNumberError(f"edge length must be positive, got {edge_length}")
        object.__setattr__(self, "center_point", center_point)
        object.__setattr__(self, "edge_length", edge_length)

    @classmethod
    def from_bounding_box(cls, bounding_box: AxisAlignedBoundingBox) -> "AxisAlignedBoundingCube":
        """Smallest cube sharing the box center that contains the box.

        The edge length is the largest component of the box diagonal.
        """
        diagonal = bounding_box.diagonal()
        return cls(bounding_box.center(), float(diagonal.max()))

    @property
    def center(self) -> np.ndarray:
        return np.array(self.center_point)

    @property
    def half_edge_length(self) -> float:
        return self.edge_length / 2.0

    @property
    def lower_bound(self) -> np.ndarray:
        return self.center - self.half_edge_length

    @property
    def upper_bound(self) -> np.ndarray:
        return self.center + self.half_edge_length

    def diagonal(self) -> np.ndarray:
        return self.upper_bound - self.lower_bound

    def to_bounding_box(self) -> AxisAlignedBoundingBox:
        return AxisAlignedBoundingBox(self.lower_bound, self.upper_bound)

    def sub_cube(self, x_positive: bool, y_positive: bool, z_positive: bool) -> "AxisAlignedBoundingCube":
        """Return the octant cube selected by the three sign flags.

        The sub cube has half the edge length and its center is offset by a
        quarter of the parent edge length along each axis.
        """
        sub_edge_length = self.half_edge_length
        signs = np.array([
            1.0 if x_positive else -1.0,
            1.0 if y_positive else -1.0,
            1.0 if z_positive else -1.0,
        ])
        return AxisAlignedBoundingCube(self.center + signs * sub_edge_length / 2.0, sub_edge_length)

    def contains(self, points: np.ndarray) -> np.ndarray:
        """Boolean mask of the Nx3 points inside the cube (faces inclusive)."""
        return np.all((points >= self.lower_bound) & (points <= self.upper_bound), axis=1)
