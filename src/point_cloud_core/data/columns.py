"""
Registry of the recognized point attribute columns.

Every recognized column has a canonical name and a mandatory data type.
Only x, y and z are obligatory; all other columns are optional, but must
match their registered type whenever they are present. Columns with names
outside of this registry are carried along untouched.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

import numpy as np
import pandas as pd

FRAME_ID_DTYPE = "category"


class PointDataColumnType(Enum):
    """Closed set of recognized columns as (name, dtype) pairs."""

    X = ("x", "float64")
    Y = ("y", "float64")
    Z = ("z", "float64")
    ID = ("id", "uint64")
    FRAME_ID = ("frame_id", FRAME_ID_DTYPE)
    # UNIX timestamp: non-leap seconds since 1970-01-01 00:00:00 UTC
    TIMESTAMP_SEC = ("timestamp_sec", "int64")
    # Nanoseconds since the last whole non-leap second
    TIMESTAMP_NANOSEC = ("timestamp_nanosec", "uint32")
    INTENSITY = ("intensity", "float32")
    SENSOR_TRANSLATION_X = ("sensor_translation_x", "float64")
    SENSOR_TRANSLATION_Y = ("sensor_translation_y", "float64")
    SENSOR_TRANSLATION_Z = ("sensor_translation_z", "float64")
    SENSOR_ROTATION_X = ("sensor_rotation_x", "float64")
    SENSOR_ROTATION_Y = ("sensor_rotation_y", "float64")
    SENSOR_ROTATION_Z = ("sensor_rotation_z", "float64")
    SENSOR_ROTATION_W = ("sensor_rotation_w", "float64")
    COLOR_RED = ("color_red", "uint16")
    COLOR_GREEN = ("color_green", "uint16")
    COLOR_BLUE = ("color_blue", "uint16")
    SPHERICAL_AZIMUTH = ("spherical_azimuth", "float64")
    SPHERICAL_ELEVATION = ("spherical_elevation", "float64")
    SPHERICAL_RANGE = ("spherical_range", "float64")
    OCTANT_INDEX_LEVEL = ("octant_index_level", "uint32")
    OCTANT_INDEX_X = ("octant_index_x", "uint64")
    OCTANT_INDEX_Y = ("octant_index_y", "uint64")
    OCTANT_INDEX_Z = ("octant_index_z", "uint64")
    # Source the point originated from (flight line, setup, ...); 0 is reserved
    POINT_SOURCE_ID = ("point_source_id", "uint16")

    def __init__(self, column_name: str, dtype: str):
        self.column_name = column_name
        self.dtype = dtype

    def __str__(self) -> str:
        return self.column_name

    @classmethod
    def from_name(cls, name: str) -> Optional["PointDataColumnType"]:
        return _BY_NAME.get(name)

    @property
    def is_obligatory(self) -> bool:
        return self in XYZ_COLUMNS

    def matches(self, dtype) -> bool:
        """Check whether a pandas/NumPy dtype is the registered type."""
        if self.dtype == FRAME_ID_DTYPE:
            return isinstance(dtype, pd.CategoricalDtype)
        if isinstance(dtype, pd.api.extensions.ExtensionDtype):
            return False
        return np.dtype(dtype) == np.dtype(self.dtype)


_BY_NAME = {member.column_name: member for member in PointDataColumnType}

XYZ_COLUMNS: Tuple[PointDataColumnType, ...] = (
    PointDataColumnType.X,
    PointDataColumnType.Y,
    PointDataColumnType.Z,
)
TIMESTAMP_COLUMNS = (
    PointDataColumnType.TIMESTAMP_SEC,
    PointDataColumnType.TIMESTAMP_NANOSEC,
)
SENSOR_TRANSLATION_COLUMNS = (
    PointDataColumnType.SENSOR_TRANSLATION_X,
    PointDataColumnType.SENSOR_TRANSLATION_Y,
    PointDataColumnType.SENSOR_TRANSLATION_Z,
)
SENSOR_ROTATION_COLUMNS = (
    PointDataColumnType.SENSOR_ROTATION_X,
    PointDataColumnType.SENSOR_ROTATION_Y,
    PointDataColumnType.SENSOR_ROTATION_Z,
    PointDataColumnType.SENSOR_ROTATION_W,
)
COLOR_COLUMNS = (
    PointDataColumnType.COLOR_RED,
    PointDataColumnType.COLOR_GREEN,
    PointDataColumnType.COLOR_BLUE,
)
SPHERICAL_COLUMNS = (
    PointDataColumnType.SPHERICAL_AZIMUTH,
    PointDataColumnType.SPHERICAL_ELEVATION,
    PointDataColumnType.SPHERICAL_RANGE,
)
OCTANT_INDEX_COLUMNS = (
    PointDataColumnType.OCTANT_INDEX_LEVEL,
    PointDataColumnType.OCTANT_INDEX_X,
    PointDataColumnType.OCTANT_INDEX_Y,
    PointDataColumnType.OCTANT_INDEX_Z,
)


def column_names(columns) -> list[str]:
    return [column.column_name for column in columns]
