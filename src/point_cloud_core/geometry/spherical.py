"""Cartesian to spherical coordinate conversion."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class SphericalPoints:
    """Columnar spherical coordinates of N points.

    Attributes:
        range: Euclidean distance to the frame origin
        elevation: Angle above the XY plane in radians, within [-pi/2, pi/2]
        azimuth: Angle in the XY plane from the X axis in radians, within (-pi, pi]
    """
    range: np.ndarray
    elevation: np.ndarray
    azimuth: np.ndarray

    def __len__(self) -> int:
        return len(self.range)

    @classmethod
    def from_cartesian(cls, points: np.ndarray) -> "SphericalPoints":
        points = np.asarray(points, dtype=np.float64)
        x, y, z = points[:, 0], points[:, 1], points[:, 2]
        r = np.sqrt(x * x + y * y + z * z)
        # Points at the origin get an elevation of 0
        with np.errstate(invalid="ignore", divide="ignore"):
            elevation = np.where(r > 0.0, np.arcsin(np.clip(z / r, -1.0, 1.0)), 0.0)
        azimuth = np.arctan2(y, x)
        return cls(range=r, elevation=elevation, azimuth=azimuth)

    def to_cartesian(self) -> np.ndarray:
        horizontal = self.range * np.cos(self.elevation)
        return np.column_stack([
            horizontal * np.cos(self.azimuth),
            horizontal * np.sin(self.azimuth),
            self.range * np.sin(self.elevation),
        ])
