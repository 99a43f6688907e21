"""
Data Module

In-memory point representation:
- Column registry of recognized point attributes
- PointData: typed columnar point store
- PointCloud: store + cloud-wide info + transform graph
- Declarative filter chain driven by configuration
"""

from .columns import PointDataColumnType
from .point_data import PointData
from .point_cloud import PointCloud, PointCloudInfo
from .filters import apply_filter_config, get_filter_statistics

__all__ = [
    "PointDataColumnType",
    "PointData",
    "PointCloud",
    "PointCloudInfo",
    "apply_filter_config",
    "get_filter_statistics",
]
