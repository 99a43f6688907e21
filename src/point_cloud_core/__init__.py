"""
Point Cloud Core Package

In-memory representation and processing of 3D point clouds.
Points and their optional attributes are kept in a type-checked columnar
store, wrapped with cloud-wide metadata and a time-aware transform graph.
On top of that the package provides a seeded, reproducible octree for
tiling and a resolution engine that expresses points recorded in varying
frames (per point and per time) in one target frame.
"""

__version__ = "0.1.0"

from . import errors
from .errors import PointCloudError
from .geometry import *
from .data import *
from .frames import *
from .indexing import *
from .acceleration import *
from .utils import *

__all__ = [
    "errors",
    "geometry",
    "data",
    "frames",
    "indexing",
    "acceleration",
    "utils",
]
