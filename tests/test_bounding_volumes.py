"""Tests for axis-aligned bounding boxes and cubes."""

import numpy as np
import pytest

from point_cloud_core.errors import (
    InvalidNumberError,
    LowerBoundEqualsUpperBoundError,
    LowerBoundExceedsUpperBoundError,
)
from point_cloud_core.geometry import AxisAlignedBoundingBox, AxisAlignedBoundingCube


class TestAxisAlignedBoundingBox:
    """Construction invariants and derived quantities of the box."""

    def test_valid_box(self):
        box = AxisAlignedBoundingBox([0.0, -1.0, 2.0], [4.0, 1.0, 3.0])
        assert box.lower == (0.0, -1.0, 2.0)
        np.testing.assert_allclose(box.diagonal(), [4.0, 2.0, 1.0])
        np.testing.assert_allclose(box.center(), [2.0, 0.0, 2.5])

    def test_flat_box_is_allowed(self):
        """Equal bounds on a single axis are fine, only identical corners are rejected."""
        box = AxisAlignedBoundingBox([0.0, 0.0, 0.0], [1.0, 1.0, 0.0])
        assert box.diagonal()[2] == 0.0

    def test_reversed_bounds_rejected(self):
        with pytest.raises(LowerBoundExceedsUpperBoundError):
            AxisAlignedBoundingBox([0.0, 2.0, 0.0], [1.0, 1.0, 1.0])

    def test_degenerate_box_rejected(self):
        with pytest.raises(LowerBoundEqualsUpperBoundError):
            AxisAlignedBoundingBox([1.0, 1.0, 1.0], [1.0, 1.0, 1.0])

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidNumberError):
            AxisAlignedBoundingBox([0.0, 0.0, np.nan], [1.0, 1.0, 1.0])

    def test_wrong_shape_rejected(self):
        with pytest.raises(InvalidNumberError, match="3 components"):
            AxisAlignedBoundingBox([0.0, 0.0], [1.0, 1.0])

    def test_from_points(self):
        points = np.array([[1.0, 5.0, -2.0], [3.0, 0.0, 4.0], [2.0, 2.0, 0.0]])
        box = AxisAlignedBoundingBox.from_points(points)
        np.testing.assert_allclose(box.lower_bound, [1.0, 0.0, -2.0])
        np.testing.assert_allclose(box.upper_bound, [3.0, 5.0, 4.0])


class TestAxisAlignedBoundingCube:
    """Cube derivation from boxes and octant sub cubes."""

    def test_from_bounding_box_uses_largest_diagonal(self):
        box = AxisAlignedBoundingBox([0.0, 0.0, 0.0], [4.0, 2.0, 1.0])
        cube = AxisAlignedBoundingCube.from_bounding_box(box)

        assert cube.edge_length == pytest.approx(4.0)
        np.testing.assert_allclose(cube.center, [2.0, 1.0, 0.5])
        np.testing.assert_allclose(cube.lower_bound, [0.0, -1.0, -1.5])
        np.testing.assert_allclose(cube.upper_bound, [4.0, 3.0, 2.5])

    def test_cube_contains_box(self):
        rng = np.random.default_rng(0)
        points = rng.uniform(-10, 10, size=(200, 3)) * np.array([1.0, 0.3, 0.1])
        cube = AxisAlignedBoundingCube.from_bounding_box(AxisAlignedBoundingBox.from_points(points))
        assert cube.contains(points).all()

    def test_non_positive_edge_length_rejected(self):
        with pytest.raises(InvalidNumberError):
            AxisAlignedBoundingCube([0.0, 0.0, 0.0], 0.0)
        with pytest.raises(InvalidNumberError):
            AxisAlignedBoundingCube([0.0, 0.0, 0.0], -1.0)

    def test_sub_cube(self):
        cube = AxisAlignedBoundingCube([0.0, 0.0, 0.0], 4.0)

        positive = cube.sub_cube(True, True, True)
        assert positive.edge_length == pytest.approx(2.0)
        np.testing.assert_allclose(positive.center, [1.0, 1.0, 1.0])

        mixed = cube.sub_cube(False, True, False)
        np.testing.assert_allclose(mixed.center, [-1.0, 1.0, -1.0])
        np.testing.assert_allclose(mixed.lower_bound, [-2.0, 0.0, -2.0])
        np.testing.assert_allclose(mixed.upper_bound, [0.0, 2.0, 0.0])

    def test_cube_is_immutable(self):
        cube = AxisAlignedBoundingCube([0.0, 0.0, 0.0], 1.0)
        with pytest.raises(AttributeError):
            cube.edge_length = 2.0

    def test_to_bounding_box(self):
        cube = AxisAlignedBoundingCube([1.0, 1.0, 1.0], 2.0)
        box = cube.to_bounding_box()
        assert box.lower == (0.0, 0.0, 0.0)
        assert box.upper == (2.0, 2.0, 2.0)
