"""
Geometry Module

Pure geometric building blocks:
- Axis-aligned bounding box and cube (spatial index volumes)
- Isometries between coordinate frames
- Spherical coordinate conversion
- Octant index grid addresses
"""

from .bounding_volumes import AxisAlignedBoundingBox, AxisAlignedBoundingCube
from .isometry import Isometry
from .octant_index import OctantIndex, derive_octant_indices
from .spherical import SphericalPoints

__all__ = [
    "AxisAlignedBoundingBox",
    "AxisAlignedBoundingCube",
    "Isometry",
    "OctantIndex",
    "derive_octant_indices",
    "SphericalPoints",
]
