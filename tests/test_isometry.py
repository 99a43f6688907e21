"""Tests for isometries and spherical coordinates."""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from point_cloud_core.geometry import Isometry, SphericalPoints


def _rotation_z(degrees):
    return Rotation.from_euler("z", degrees, degrees=True)


class TestIsometry:
    """Composition, inversion and application of rigid transforms."""

    def test_identity(self):
        points = np.array([[1.0, 2.0, 3.0], [-4.0, 0.5, 0.0]])
        np.testing.assert_allclose(Isometry.identity().transform_points(points), points)

    def test_translation_only(self):
        iso = Isometry(translation=[1.0, -2.0, 0.5])
        result = iso.transform_points(np.array([[0.0, 0.0, 0.0]]))
        np.testing.assert_allclose(result, [[1.0, -2.0, 0.5]])

    def test_rotation_then_translation(self):
        iso = Isometry([10.0, 0.0, 0.0], _rotation_z(90))
        result = iso.transform_points(np.array([[1.0, 0.0, 0.0]]))
        np.testing.assert_allclose(result, [[10.0, 1.0, 0.0]], atol=1e-12)

    def test_inverse_round_trip(self):
        iso = Isometry([1.0, 2.0, 3.0], Rotation.from_euler("xyz", [10, 20, 30], degrees=True))
        points = np.random.default_rng(3).normal(size=(20, 3))
        back = iso.inverse().transform_points(iso.transform_points(points))
        np.testing.assert_allclose(back, points, atol=1e-12)

    def test_composition_order(self):
        """(a * b)(p) == a(b(p))."""
        a = Isometry([1.0, 0.0, 0.0], _rotation_z(90))
        b = Isometry([0.0, 2.0, 0.0], _rotation_z(-45))
        points = np.array([[1.0, 1.0, 1.0], [0.0, -3.0, 2.0]])
        np.testing.assert_allclose(
            (a * b).transform_points(points),
            a.transform_points(b.transform_points(points)),
            atol=1e-12,
        )

    def test_matrix_round_trip(self):
        iso = Isometry([4.0, 5.0, 6.0], _rotation_z(30))
        assert Isometry.from_matrix(iso.as_matrix()).is_close(iso)

    def test_from_parts_uses_xyzw(self):
        # 180 degrees about z in scalar-last order
        iso = Isometry.from_parts([0.0, 0.0, 0.0], [0.0, 0.0, 1.0, 0.0])
        np.testing.assert_allclose(
            iso.transform_points(np.array([[1.0, 0.0, 0.0]])), [[-1.0, 0.0, 0.0]], atol=1e-12
        )

    def test_rotate_quaternions_ignores_translation(self):
        iso = Isometry([100.0, 200.0, 300.0], _rotation_z(90))
        identity_quaternion = np.array([[0.0, 0.0, 0.0, 1.0]])
        rotated = iso.rotate_quaternions(identity_quaternion)
        assert Rotation.from_quat(rotated[0]).approx_equal(_rotation_z(90))

    def test_interpolate_halfway(self):
        start = Isometry([0.0, 0.0, 0.0], _rotation_z(0))
        end = Isometry([2.0, 0.0, 0.0], _rotation_z(90))
        halfway = start.interpolate(end, 0.5)
        np.testing.assert_allclose(halfway.translation, [1.0, 0.0, 0.0])
        assert halfway.rotation.approx_equal(_rotation_z(45))

    def test_invalid_translation_shape(self):
        with pytest.raises(ValueError, match="3 components"):
            Isometry(translation=[1.0, 2.0])


class TestSphericalPoints:
    """Cartesian to spherical conversion."""

    def test_axes(self):
        points = np.array([[2.0, 0.0, 0.0], [0.0, 3.0, 0.0], [0.0, 0.0, 4.0]])
        spherical = SphericalPoints.from_cartesian(points)
        np.testing.assert_allclose(spherical.range, [2.0, 3.0, 4.0])
        np.testing.assert_allclose(spherical.azimuth[:2], [0.0, np.pi / 2])
        np.testing.assert_allclose(spherical.elevation, [0.0, 0.0, np.pi / 2])

    def test_origin_has_zero_angles(self):
        spherical = SphericalPoints.from_cartesian(np.zeros((1, 3)))
        assert spherical.range[0] == 0.0
        assert spherical.elevation[0] == 0.0
        assert spherical.azimuth[0] == 0.0

    def test_round_trip(self):
        points = np.random.default_rng(7).normal(size=(50, 3))
        back = SphericalPoints.from_cartesian(points).to_cartesian()
        np.testing.assert_allclose(back, points, atol=1e-12)
