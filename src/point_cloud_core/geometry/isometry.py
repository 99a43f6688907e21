"""
Rigid transformations (rotation + translation) between coordinate frames.

Rotations are handled with scipy.spatial.transform.Rotation; quaternions
are always in scalar-last (x, y, z, w) order, matching the sensor rotation
columns of the point store.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

if TYPE_CHECKING:
    from numpy.typing import NDArray


class Isometry:
    """Distance-preserving transform p' = R * p + t.

    Example:
        >>> iso = Isometry(translation=[1.0, 0.0, 0.0])
        >>> iso.transform_points(np.array([[0.0, 0.0, 0.0]]))
        array([[1., 0., 0.]])
    """

    __slots__ = ("_translation", "_rotation")

    def __init__(self, translation=None, rotation: Optional[Rotation] = None):
        if translation is None:
            translation = np.zeros(3)
        t = np.asarray(translation, dtype=np.float64).reshape(-1)
        if t.shape != (3,):
            raise ValueError(f"Expected translation with 3 components, got shape {t.shape}")
        self._translation = t
        self._rotation = rotation if rotation is not None else Rotation.identity()

    @classmethod
    def identity(cls) -> "Isometry":
        return cls()

    @classmethod
    def from_parts(cls, translation, quaternion) -> "Isometry":
        """Create from a translation vector and an (x, y, z, w) quaternion."""
        return cls(translation, Rotation.from_quat(np.asarray(quaternion, dtype=np.float64)))

    @classmethod
    def from_matrix(cls, matrix: "NDArray[np.floating]") -> "Isometry":
        """Create from a 4x4 homogeneous transformation matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected 4x4 matrix, got shape {matrix.shape}")
        return cls(matrix[:3, 3], Rotation.from_matrix(matrix[:3, :3]))

    @property
    def translation(self) -> np.ndarray:
        return self._translation.copy()

    @property
    def rotation(self) -> Rotation:
        return self._rotation

    @property
    def quaternion(self) -> np.ndarray:
        """Rotation as (x, y, z, w) quaternion."""
        return self._rotation.as_quat()

    def as_matrix(self) -> np.ndarray:
        matrix = np.eye(4)
        matrix[:3, :3] = self._rotation.as_matrix()
        matrix[:3, 3] = self._translation
        return matrix

    def inverse(self) -> "Isometry":
        inverse_rotation = self._rotation.inv()
        return Isometry(-inverse_rotation.apply(self._translation), inverse_rotation)

    def __mul__(self, other: "Isometry") -> "Isometry":
        """Compose: (self * other)(p) == self(other(p))."""
        if not isinstance(other, Isometry):
            return NotImplemented
        return Isometry(
            self._rotation.apply(other._translation) + self._translation,
            self._rotation * other._rotation,
        )

    def transform_points(self, points: "NDArray[np.floating]") -> np.ndarray:
        """Apply rotation and translation to an Nx3 array of positions."""
        points = np.asarray(points, dtype=np.float64)
        if points.size == 0:
            return points.reshape(0, 3).copy()
        return self._rotation.apply(points) + self._translation

    def rotate_quaternions(self, quaternions: "NDArray[np.floating]") -> np.ndarray:
        """Left-multiply an Nx4 array of (x, y, z, w) orientations by the rotation.

        The translation is not involved; orientations have no position.
        """
        quaternions = np.asarray(quaternions, dtype=np.float64)
        if quaternions.size == 0:
            return quaternions.reshape(0, 4).copy()
        return (self._rotation * Rotation.from_quat(quaternions)).as_quat()

    def interpolate(self, other: "Isometry", fraction: float) -> "Isometry":
        """Blend towards other: linear for translation, SLERP for rotation."""
        fraction = float(fraction)
        translation = (1.0 - fraction) * self._translation + fraction * other._translation
        key_rotations = Rotation.concatenate([self._rotation, other._rotation])
        rotation = Slerp([0.0, 1.0], key_rotations)([fraction])[0]
        return Isometry(translation, rotation)

    def is_close(self, other: "Isometry", atol: float = 1e-9) -> bool:
        return bool(np.allclose(self.as_matrix(), other.as_matrix(), atol=atol))

    def __repr__(self) -> str:
        t = np.array2string(self._translation, precision=4)
        q = np.array2string(self.quaternion, precision=4)
        return f"Isometry(translation={t}, quaternion={q})"
