"""
Indexing Module

Spatial partitioning of point sets:
- Seeded deterministic sampling
- PointCloudOctree addressed by CellIdentifier paths
"""

from .sampling import deterministic_divide, generate_random_indices
from .octree import DEGENERATE_EDGE_LENGTH, CellIdentifier, OctantIdentifier, OctreeCell, PointCloudOctree

__all__ = [
    "deterministic_divide",
    "generate_random_indices",
    "DEGENERATE_EDGE_LENGTH",
    "CellIdentifier",
    "OctantIdentifier",
    "OctreeCell",
    "PointCloudOctree",
]
