"""
Seeded deterministic sampling.

The seed is always passed explicitly and a fresh generator is created per
call, so results are reproducible independent of call order or threads.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from ..data.point_data import PointData
from ..errors import InvalidNumberError


def generate_random_indices(number_max: int, count: int, seed: Optional[int] = None) -> np.ndarray:
    """
    Draw count distinct indices from [0, number_max) uniformly without replacement.

    Args:
        number_max: Exclusive upper bound of the indices
        count: Number of indices to draw
        seed: Generator seed (None = 0)

    Returns:
        Sorted int64 array of distinct indices

    Raises:
        InvalidNumberError: If more indices are requested than available
    """
    if count < 0 or number_max < count:
        raise InvalidNumberError(f"cannot draw {count} distinct indices from {number_max}")
    rng = np.random.default_rng(seed if seed is not None else 0)
    return np.sort(rng.choice(number_max, size=count, replace=False)).astype(np.int64)


def split_row_indices(
    row_indices: np.ndarray, target_size: int, seed: Optional[int] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """Split row indices into a retained sample of target_size and the remainder (orders kept)."""
    selected = np.zeros(len(row_indices), dtype=bool)
    selected[generate_random_indices(len(row_indices), target_size, seed)] = True
    return row_indices[selected], row_indices[~selected]


def deterministic_divide(
    point_data: PointData, target_size: int, seed: Optional[int] = None
) -> Tuple[Optional[PointData], Optional[PointData]]:
    """
    Divide a store into a random sample of target_size rows and the rest.

    Returns:
        Tuple of (sample, remainder); either is None when it has no rows
    """
    selected = np.zeros(point_data.height, dtype=bool)
    selected[generate_random_indices(point_data.height, target_size, seed)] = True
    return point_data.filter_by_boolean_mask(selected), point_data.filter_by_boolean_mask(~selected)
