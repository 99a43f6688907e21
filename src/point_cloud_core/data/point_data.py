"""
Typed Columnar Point Store

PointData wraps a pandas DataFrame whose recognized columns (see
columns.PointDataColumnType) are guaranteed to carry their registered
types. The store is never empty. All operations that add, update, remove
or filter columns return a new PointData and leave the original untouched.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Type, TYPE_CHECKING

import numpy as np
import pandas as pd

from .columns import (
    COLOR_COLUMNS,
    FRAME_ID_DTYPE,
    OCTANT_INDEX_COLUMNS,
    SENSOR_ROTATION_COLUMNS,
    SENSOR_TRANSLATION_COLUMNS,
    SPHERICAL_COLUMNS,
    TIMESTAMP_COLUMNS,
    XYZ_COLUMNS,
    PointDataColumnType,
    column_names,
)
from ..errors import (
    ColumnAlreadyExistsError,
    ColumnNameMismatchError,
    LowerBoundEqualsUpperBoundError,
    LowerBoundExceedsUpperBoundError,
    MissingColumnError,
    NoColorColumnsError,
    NoDataError,
    NoFrameIdDefinitionsError,
    NoIdColumnError,
    NoIntensityColumnError,
    NoOctantIndicesColumnsError,
    NoRowIndicesError,
    NoSensorRotationColumnError,
    NoSensorTranslationColumnError,
    NoSphericalPointColumnsError,
    NoSphericalRangeColumnError,
    NoTimestampColumnsError,
    ObligatoryColumnError,
    RowIndexOutsideRangeError,
    ShapeMismatchError,
    TypeMismatchError,
)
from ..geometry.bounding_volumes import AxisAlignedBoundingBox, AxisAlignedBoundingCube
from ..geometry.isometry import Isometry
from ..geometry.octant_index import OctantIndex, derive_octant_index_arrays
from ..geometry.spherical import SphericalPoints

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

# Error raised when a column of the given type is required but absent
_MISSING_COLUMN_ERRORS: Dict[PointDataColumnType, Type[MissingColumnError]] = {
    PointDataColumnType.ID: NoIdColumnError,
    PointDataColumnType.TIMESTAMP_SEC: NoTimestampColumnsError,
    PointDataColumnType.TIMESTAMP_NANOSEC: NoTimestampColumnsError,
    PointDataColumnType.INTENSITY: NoIntensityColumnError,
    PointDataColumnType.SPHERICAL_RANGE: NoSphericalRangeColumnError,
    PointDataColumnType.SPHERICAL_AZIMUTH: NoSphericalPointColumnsError,
    PointDataColumnType.SPHERICAL_ELEVATION: NoSphericalPointColumnsError,
}
_MISSING_COLUMN_ERRORS.update({c: NoSensorTranslationColumnError for c in SENSOR_TRANSLATION_COLUMNS})
_MISSING_COLUMN_ERRORS.update({c: NoSensorRotationColumnError for c in SENSOR_ROTATION_COLUMNS})
_MISSING_COLUMN_ERRORS.update({c: NoColorColumnsError for c in COLOR_COLUMNS})
_MISSING_COLUMN_ERRORS.update({c: NoOctantIndicesColumnsError for c in OCTANT_INDEX_COLUMNS})


def _to_series_values(column: PointDataColumnType, values) -> "ArrayLike":
    """Cast raw values to the registered type of a recognized column."""
    if column.dtype == FRAME_ID_DTYPE:
        return pd.Categorical([str(v) for v in values])
    return np.asarray(values).astype(column.dtype, copy=False)


class PointData:
    """
    Type-checked columnar storage of N >= 1 points.

    Features:
    - Recognized columns are validated against the column registry
    - Group predicates and row extraction (points, poses, colors, ...)
    - Column derivation with shape and duplicate checks
    - Inclusive range filters returning None when nothing matched

    Example:
        >>> data = PointData.from_points(np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]]))
        >>> data.height
        2
    """

    __slots__ = ("_data_frame",)

    def __init__(self, data_frame: pd.DataFrame):
        """
        Validate and wrap a data frame.

        Args:
            data_frame: Table with the obligatory x, y, z columns first

        Raises:
            NoDataError: If the frame has no rows
            ColumnNameMismatchError: If x, y, z are not the first three columns
            TypeMismatchError: If a recognized column has the wrong type
        """
        if len(data_frame.index) == 0:
            raise NoDataError("point_data")

        names = [str(name) for name in data_frame.columns]
        for index, column in enumerate(XYZ_COLUMNS):
            actual = names[index] if index < len(names) else "<missing>"
            if actual != column.column_name:
                raise ColumnNameMismatchError(index, column.column_name, actual)

        for name in names:
            column = PointDataColumnType.from_name(name)
            if column is None:
                continue
            dtype = data_frame[name].dtype
            if not column.matches(dtype):
                raise TypeMismatchError(column.column_name, column.dtype, str(dtype))

        self._data_frame = data_frame.reset_index(drop=True)

    @classmethod
    def _wrap(cls, data_frame: pd.DataFrame) -> "PointData":
        """Wrap a frame derived from an already validated store."""
        instance = cls.__new__(cls)
        instance._data_frame = data_frame.reset_index(drop=True)
        return instance

    @classmethod
    def from_points(cls, points: "ArrayLike", **columns) -> "PointData":
        """
        Build a store from an Nx3 position array and optional columns.

        Recognized column names are cast to their registered type; other
        names are stored as given.

        Args:
            points: Nx3 array of positions [X, Y, Z]
            **columns: Additional per-point columns keyed by column name

        Returns:
            Validated PointData
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ShapeMismatchError(f"expected Nx3 points, got shape {points.shape}")

        data = {
            PointDataColumnType.X.column_name: points[:, 0],
            PointDataColumnType.Y.column_name: points[:, 1],
            PointDataColumnType.Z.column_name: points[:, 2],
        }
        for name, values in columns.items():
            if len(values) != len(points):
                raise ShapeMismatchError(f"column '{name}' has {len(values)} values for {len(points)} points")
            column = PointDataColumnType.from_name(name)
            data[name] = _to_series_values(column, values) if column is not None else values
        return cls(pd.DataFrame(data))

    # -----------------------
    # Basic properties
    # -----------------------

    @property
    def data_frame(self) -> pd.DataFrame:
        """Copy of the underlying table."""
        return self._data_frame.copy()

    @property
    def height(self) -> int:
        return len(self._data_frame.index)

    def __len__(self) -> int:
        return self.height

    @property
    def column_names(self) -> List[str]:
        return [str(name) for name in self._data_frame.columns]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PointData):
            return NotImplemented
        return self._data_frame.equals(other._data_frame)

    def __repr__(self) -> str:
        return f"PointData(height={self.height}, columns={self.column_names})"

    # -----------------------
    # Column presence
    # -----------------------

    def contains_column(self, column) -> bool:
        name = column.column_name if isinstance(column, PointDataColumnType) else str(column)
        return name in self._data_frame.columns

    def _contains_all(self, columns: Iterable[PointDataColumnType]) -> bool:
        return all(self.contains_column(column) for column in columns)

    def contains_id_column(self) -> bool:
        return self.contains_column(PointDataColumnType.ID)

    def contains_frame_id_column(self) -> bool:
        return self.contains_column(PointDataColumnType.FRAME_ID)

    def contains_intensity_column(self) -> bool:
        return self.contains_column(PointDataColumnType.INTENSITY)

    def contains_timestamps(self) -> bool:
        return self._contains_all(TIMESTAMP_COLUMNS)

    def contains_sensor_translation(self) -> bool:
        return self._contains_all(SENSOR_TRANSLATION_COLUMNS)

    def contains_sensor_rotation(self) -> bool:
        return self._contains_all(SENSOR_ROTATION_COLUMNS)

    def contains_sensor_pose(self) -> bool:
        return self.contains_sensor_translation() and self.contains_sensor_rotation()

    def contains_colors(self) -> bool:
        return self._contains_all(COLOR_COLUMNS)

    def contains_spherical_points(self) -> bool:
        return self._contains_all(SPHERICAL_COLUMNS)

    def contains_octant_indices(self) -> bool:
        return self._contains_all(OCTANT_INDEX_COLUMNS)

    # -----------------------
    # Value access
    # -----------------------

    def get_values(self, column: PointDataColumnType) -> np.ndarray:
        """
        Return the values of a recognized column as a NumPy array.

        Raises:
            MissingColumnError: Subclass matching the missing column group
        """
        if not self.contains_column(column):
            if column == PointDataColumnType.FRAME_ID:
                raise NoFrameIdDefinitionsError()
            raise _MISSING_COLUMN_ERRORS.get(column, MissingColumnError)()
        series = self._data_frame[column.column_name]
        if column.dtype == FRAME_ID_DTYPE:
            return series.astype(str).to_numpy()
        return series.to_numpy()

    def _stack(self, columns: Sequence[PointDataColumnType]) -> np.ndarray:
        return np.column_stack([self.get_values(column) for column in columns])

    def get_all_points(self) -> np.ndarray:
        """Return all positions as Nx3 float64 array."""
        return self._data_frame[column_names(XYZ_COLUMNS)].to_numpy(dtype=np.float64)

    def get_all_frame_ids(self) -> List[str]:
        return self.get_values(PointDataColumnType.FRAME_ID).tolist()

    def get_all_timestamp_nanoseconds(self) -> np.ndarray:
        """Return timestamps as int64 nanoseconds since the UNIX epoch."""
        if not self.contains_timestamps():
            raise NoTimestampColumnsError()
        seconds = self.get_values(PointDataColumnType.TIMESTAMP_SEC).astype(np.int64)
        nanoseconds = self.get_values(PointDataColumnType.TIMESTAMP_NANOSEC).astype(np.int64)
        return seconds * np.int64(1_000_000_000) + nanoseconds

    def get_all_timestamps(self) -> pd.DatetimeIndex:
        """Return timestamps as UTC DatetimeIndex."""
        return pd.to_datetime(self.get_all_timestamp_nanoseconds(), unit="ns", utc=True)

    def get_all_sensor_translations(self) -> np.ndarray:
        if not self.contains_sensor_translation():
            raise NoSensorTranslationColumnError()
        return self._stack(SENSOR_TRANSLATION_COLUMNS)

    def get_all_sensor_rotations(self) -> np.ndarray:
        """Return sensor orientations as Nx4 (x, y, z, w) quaternions."""
        if not self.contains_sensor_rotation():
            raise NoSensorRotationColumnError()
        return self._stack(SENSOR_ROTATION_COLUMNS)

    def get_all_sensor_poses(self) -> List[Isometry]:
        translations = self.get_all_sensor_translations()
        rotations = self.get_all_sensor_rotations()
        return [Isometry.from_parts(t, q) for t, q in zip(translations, rotations)]

    def get_all_colors(self) -> np.ndarray:
        """Return colors as Nx3 uint16 (red, green, blue) array."""
        if not self.contains_colors():
            raise NoColorColumnsError()
        return self._stack(COLOR_COLUMNS)

    def get_all_spherical_points(self) -> SphericalPoints:
        if not self.contains_spherical_points():
            raise NoSphericalPointColumnsError()
        return SphericalPoints(
            range=self.get_values(PointDataColumnType.SPHERICAL_RANGE),
            elevation=self.get_values(PointDataColumnType.SPHERICAL_ELEVATION),
            azimuth=self.get_values(PointDataColumnType.SPHERICAL_AZIMUTH),
        )

    def get_all_octant_indices(self) -> List[OctantIndex]:
        if not self.contains_octant_indices():
            raise NoOctantIndicesColumnsError()
        stacked = self._stack(OCTANT_INDEX_COLUMNS)
        return [OctantIndex(int(l), int(x), int(y), int(z)) for l, x, y, z in stacked]

    # -----------------------
    # Statistics
    # -----------------------

    def get_distinct_frame_ids(self) -> Set[str]:
        return set(self.get_values(PointDataColumnType.FRAME_ID).tolist())

    def get_timestamp_min(self) -> pd.Timestamp:
        return self.get_all_timestamps().min()

    def get_timestamp_max(self) -> pd.Timestamp:
        return self.get_all_timestamps().max()

    def get_median_time(self) -> pd.Timestamp:
        """Timestamp at index n // 2 of the sorted timestamps."""
        nanoseconds = np.sort(self.get_all_timestamp_nanoseconds())
        return pd.Timestamp(int(nanoseconds[len(nanoseconds) // 2]), unit="ns", tz="UTC")

    def get_local_min(self) -> np.ndarray:
        return self.get_all_points().min(axis=0)

    def get_local_max(self) -> np.ndarray:
        return self.get_all_points().max(axis=0)

    def get_local_center(self) -> np.ndarray:
        local_min = self.get_local_min()
        return local_min + (self.get_local_max() - local_min) / 2.0

    def get_axis_aligned_bounding_box(self) -> AxisAlignedBoundingBox:
        """
        Return the axis-aligned bounding box of all positions.

        Raises:
            LowerBoundEqualsUpperBoundError: If all points coincide
        """
        return AxisAlignedBoundingBox(self.get_local_min(), self.get_local_max())

    def get_local_sensor_translation_min(self) -> np.ndarray:
        return self.get_all_sensor_translations().min(axis=0)

    def get_local_sensor_translation_max(self) -> np.ndarray:
        return self.get_all_sensor_translations().max(axis=0)

    def get_id_min(self) -> int:
        return int(self.get_values(PointDataColumnType.ID).min())

    def get_id_max(self) -> int:
        return int(self.get_values(PointDataColumnType.ID).max())

    def get_intensity_min(self) -> float:
        return float(self.get_values(PointDataColumnType.INTENSITY).min())

    def get_intensity_max(self) -> float:
        return float(self.get_values(PointDataColumnType.INTENSITY).max())

    # -----------------------
    # Column derivation and removal
    # -----------------------

    def _check_length(self, values, what: str) -> None:
        if len(values) != self.height:
            raise ShapeMismatchError(
                f"{what} has {len(values)} entries, but the point data has {self.height} rows"
            )

    def _check_matrix(self, values: np.ndarray, n_columns: int, what: str) -> None:
        if values.ndim != 2 or values.shape[1] != n_columns:
            raise ShapeMismatchError(f"{what} must be an Nx{n_columns} array, got shape {values.shape}")
        self._check_length(values, what)

    def _check_absent(self, columns: Iterable[PointDataColumnType]) -> None:
        for column in columns:
            if self.contains_column(column):
                raise ColumnAlreadyExistsError(column.column_name)

    def _with_columns(self, columns: Dict[PointDataColumnType, "ArrayLike"]) -> "PointData":
        data_frame = self._data_frame.copy()
        for column, values in columns.items():
            data_frame[column.column_name] = _to_series_values(column, values)
        return PointData._wrap(data_frame)

    def add_column(self, name: str, values: "ArrayLike", dtype=None) -> "PointData":
        """
        Add a single column.

        Args:
            name: Column name (recognized or custom)
            values: One value per point
            dtype: Optional dtype to cast the values to before validation

        Raises:
            ShapeMismatchError: If the length differs from the row count
            ColumnAlreadyExistsError: If the column already exists
            TypeMismatchError: If a recognized column receives the wrong type
        """
        self._check_length(values, name)
        if name in self._data_frame.columns:
            raise ColumnAlreadyExistsError(name)

        column = PointDataColumnType.from_name(name)
        if column is not None and column.dtype == FRAME_ID_DTYPE:
            series = pd.Series(pd.Categorical([str(v) for v in values]))
        else:
            series = pd.Series(np.asarray(values) if dtype is None else np.asarray(values, dtype=dtype))
        if column is not None and not column.matches(series.dtype):
            raise TypeMismatchError(column.column_name, column.dtype, str(series.dtype))

        data_frame = self._data_frame.copy()
        data_frame[name] = series.values
        return PointData._wrap(data_frame)

    def add_sequential_id(self) -> "PointData":
        """Add an id column counting 0..N-1."""
        self._check_absent([PointDataColumnType.ID])
        return self._with_columns({PointDataColumnType.ID: np.arange(self.height, dtype=np.uint64)})

    def add_frame_ids(self, frame_ids: Sequence[str]) -> "PointData":
        self._check_length(frame_ids, "frame_ids")
        self._check_absent([PointDataColumnType.FRAME_ID])
        return self._with_columns({PointDataColumnType.FRAME_ID: frame_ids})

    def add_unique_frame_id(self, frame_id: str) -> "PointData":
        return self.add_frame_ids([frame_id] * self.height)

    def add_sensor_translations(self, sensor_translations: "ArrayLike") -> "PointData":
        sensor_translations = np.asarray(sensor_translations, dtype=np.float64)
        self._check_matrix(sensor_translations, len(SENSOR_TRANSLATION_COLUMNS), "sensor_translations")
        self._check_absent(SENSOR_TRANSLATION_COLUMNS)
        return self._with_columns(
            {column: sensor_translations[:, i] for i, column in enumerate(SENSOR_TRANSLATION_COLUMNS)}
        )

    def add_unique_sensor_translation(self, sensor_translation: "ArrayLike") -> "PointData":
        return self.add_sensor_translations(np.tile(np.asarray(sensor_translation, dtype=np.float64), (self.height, 1)))

    def add_sensor_rotations(self, sensor_rotations: "ArrayLike") -> "PointData":
        """Add sensor orientations given as Nx4 (x, y, z, w) quaternions."""
        sensor_rotations = np.asarray(sensor_rotations, dtype=np.float64)
        self._check_matrix(sensor_rotations, len(SENSOR_ROTATION_COLUMNS), "sensor_rotations")
        self._check_absent(SENSOR_ROTATION_COLUMNS)
        return self._with_columns(
            {column: sensor_rotations[:, i] for i, column in enumerate(SENSOR_ROTATION_COLUMNS)}
        )

    def add_unique_sensor_rotation(self, sensor_rotation: "ArrayLike") -> "PointData":
        return self.add_sensor_rotations(np.tile(np.asarray(sensor_rotation, dtype=np.float64), (self.height, 1)))

    def add_sensor_poses(self, sensor_poses: Sequence[Isometry]) -> "PointData":
        self._check_length(sensor_poses, "sensor_poses")
        self._check_absent(SENSOR_TRANSLATION_COLUMNS + SENSOR_ROTATION_COLUMNS)
        translations = np.array([pose.translation for pose in sensor_poses])
        rotations = np.array([pose.quaternion for pose in sensor_poses])
        return self.add_sensor_translations(translations).add_sensor_rotations(rotations)

    def add_unique_sensor_pose(self, sensor_pose: Isometry) -> "PointData":
        return self.add_sensor_poses([sensor_pose] * self.height)

    def add_colors(self, colors: "ArrayLike") -> "PointData":
        """Add Nx3 (red, green, blue) uint16 colors."""
        colors = np.asarray(colors)
        self._check_matrix(colors, len(COLOR_COLUMNS), "colors")
        self._check_absent(COLOR_COLUMNS)
        return self._with_columns({column: colors[:, i] for i, column in enumerate(COLOR_COLUMNS)})

    def add_unique_color(self, color: "ArrayLike") -> "PointData":
        return self.add_colors(np.tile(np.asarray(color), (self.height, 1)))

    def add_spherical_points(self, spherical_points: SphericalPoints) -> "PointData":
        self._check_length(spherical_points, "spherical_points")
        self._check_absent(SPHERICAL_COLUMNS)
        return self._with_columns({
            PointDataColumnType.SPHERICAL_AZIMUTH: spherical_points.azimuth,
            PointDataColumnType.SPHERICAL_ELEVATION: spherical_points.elevation,
            PointDataColumnType.SPHERICAL_RANGE: spherical_points.range,
        })

    def derive_spherical_points(self) -> "PointData":
        """Add spherical coordinates computed from the positions."""
        return self.add_spherical_points(SphericalPoints.from_cartesian(self.get_all_points()))

    def add_octant_indices(self, octant_indices: Sequence[OctantIndex]) -> "PointData":
        self._check_length(octant_indices, "octant_indices")
        self._check_absent(OCTANT_INDEX_COLUMNS)
        return self._with_columns({
            PointDataColumnType.OCTANT_INDEX_LEVEL: [index.level for index in octant_indices],
            PointDataColumnType.OCTANT_INDEX_X: [index.x for index in octant_indices],
            PointDataColumnType.OCTANT_INDEX_Y: [index.y for index in octant_indices],
            PointDataColumnType.OCTANT_INDEX_Z: [index.z for index in octant_indices],
        })

    def derive_octant_indices(self, level: int, cube: Optional[AxisAlignedBoundingCube] = None) -> "PointData":
        """
        Add octant index columns for a subdivision level.

        Args:
            level: Subdivision level (2^level cells per axis)
            cube: Cube to subdivide (default: bounding cube of the positions)
        """
        self._check_absent(OCTANT_INDEX_COLUMNS)
        if cube is None:
            cube = AxisAlignedBoundingCube.from_bounding_box(self.get_axis_aligned_bounding_box())
        xs, ys, zs = derive_octant_index_arrays(self.get_all_points(), cube, level)
        return self._with_columns({
            PointDataColumnType.OCTANT_INDEX_LEVEL: np.full(self.height, level, dtype=np.uint32),
            PointDataColumnType.OCTANT_INDEX_X: xs,
            PointDataColumnType.OCTANT_INDEX_Y: ys,
            PointDataColumnType.OCTANT_INDEX_Z: zs,
        })

    def remove_column(self, name: str) -> "PointData":
        """
        Remove a column.

        Raises:
            ObligatoryColumnError: For x, y and z
            MissingColumnError: If the column does not exist
        """
        if name in column_names(XYZ_COLUMNS):
            raise ObligatoryColumnError(name)
        if name not in self._data_frame.columns:
            raise MissingColumnError(name)
        return PointData._wrap(self._data_frame.drop(columns=[name]))

    def remove_colors(self) -> "PointData":
        present = [name for name in column_names(COLOR_COLUMNS) if name in self._data_frame.columns]
        return PointData._wrap(self._data_frame.drop(columns=present))

    # -----------------------
    # In-value updates
    # -----------------------

    def _replace(self, columns: Sequence[PointDataColumnType], values: np.ndarray, what: str) -> "PointData":
        self._check_matrix(values, len(columns), what)
        return self._with_columns({column: values[:, i] for i, column in enumerate(columns)})

    def update_points(self, points: "ArrayLike") -> "PointData":
        """Replace the positions with an Nx3 array."""
        return self._replace(XYZ_COLUMNS, np.asarray(points, dtype=np.float64), "points")

    def update_sensor_translations(self, sensor_translations: "ArrayLike") -> "PointData":
        if not self.contains_sensor_translation():
            raise NoSensorTranslationColumnError()
        return self._replace(
            SENSOR_TRANSLATION_COLUMNS, np.asarray(sensor_translations, dtype=np.float64), "sensor_translations"
        )

    def update_sensor_rotations(self, sensor_rotations: "ArrayLike") -> "PointData":
        if not self.contains_sensor_rotation():
            raise NoSensorRotationColumnError()
        return self._replace(
            SENSOR_ROTATION_COLUMNS, np.asarray(sensor_rotations, dtype=np.float64), "sensor_rotations"
        )

    def update_sensor_poses(self, sensor_poses: Sequence[Isometry]) -> "PointData":
        self._check_length(sensor_poses, "sensor_poses")
        translations = np.array([pose.translation for pose in sensor_poses])
        rotations = np.array([pose.quaternion for pose in sensor_poses])
        return self.update_sensor_translations(translations).update_sensor_rotations(rotations)

    # -----------------------
    # Ordering
    # -----------------------

    def sort_by(self, columns: Sequence[PointDataColumnType]) -> "PointData":
        """Stable ascending sort by the given columns."""
        sorted_frame = self._data_frame.sort_values(
            by=column_names(columns), kind="stable", ignore_index=True
        )
        return PointData._wrap(sorted_frame)

    def take(self, row_indices: np.ndarray) -> "PointData":
        """Rows at the given positions, in the given order."""
        return PointData._wrap(self._data_frame.take(np.asarray(row_indices)))

    def group_row_indices(self, columns: Sequence[PointDataColumnType]) -> Dict[tuple, np.ndarray]:
        """
        Group rows sharing identical values across the given columns.

        Returns:
            Mapping of value tuple (in column order) to ascending row positions.
            Null categorical values are reported as None.
        """
        keys: Dict[str, pd.Series] = {}
        categories: Dict[str, pd.Index] = {}
        for name in column_names(columns):
            series = self._data_frame[name]
            # Group categorical columns by their codes (-1 marks null)
            if isinstance(series.dtype, pd.CategoricalDtype):
                categories[name] = series.cat.categories
                series = series.cat.codes
            keys[name] = series

        grouped = pd.DataFrame(keys).groupby(list(keys), sort=True).indices
        result = {}
        for key, indices in grouped.items():
            key = key if isinstance(key, tuple) else (key,)
            values = tuple(
                (categories[name][value] if value >= 0 else None) if name in categories else value
                for name, value in zip(keys, key)
            )
            result[values] = np.asarray(indices, dtype=np.int64)
        return result

    # -----------------------
    # Filters
    # -----------------------

    def _filtered(self, mask: np.ndarray) -> Optional["PointData"]:
        if not mask.any():
            return None
        return PointData._wrap(self._data_frame.loc[mask])

    def filter_by_row_indices(self, row_indices: Iterable[int]) -> Optional["PointData"]:
        """
        Keep the rows at the given indices (original order is preserved).

        Raises:
            NoRowIndicesError: If no index is given
            RowIndexOutsideRangeError: If an index is negative or >= N
        """
        indices = np.fromiter((int(i) for i in row_indices), dtype=np.int64)
        if indices.size == 0:
            raise NoRowIndicesError()
        if indices.min() < 0 or indices.max() >= self.height:
            raise RowIndexOutsideRangeError(
                f"indices must be within [0, {self.height}), got [{indices.min()}, {indices.max()}]"
            )
        mask = np.zeros(self.height, dtype=bool)
        mask[indices] = True
        return self._filtered(mask)

    def filter_by_boolean_mask(self, boolean_mask: "ArrayLike") -> Optional["PointData"]:
        mask = np.asarray(boolean_mask, dtype=bool)
        if len(mask) > self.height:
            raise RowIndexOutsideRangeError(f"mask has {len(mask)} entries for {self.height} rows")
        self._check_length(mask, "boolean_mask")
        return self._filtered(mask)

    def filter_by_bounds(self, bound_min: "ArrayLike", bound_max: "ArrayLike") -> Optional["PointData"]:
        """Keep points with bound_min <= p <= bound_max on every axis."""
        points = self.get_all_points()
        bound_min = np.asarray(bound_min, dtype=np.float64)
        bound_max = np.asarray(bound_max, dtype=np.float64)
        mask = np.all((points >= bound_min) & (points <= bound_max), axis=1)
        return self._filtered(mask)

    def _filter_column(self, column: PointDataColumnType, minimum=None, maximum=None) -> Optional["PointData"]:
        values = self.get_values(column)
        mask = np.ones(self.height, dtype=bool)
        if minimum is not None:
            mask &= values >= minimum
        if maximum is not None:
            mask &= values <= maximum
        return self._filtered(mask)

    def filter_by_x_min(self, x_min: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.X, minimum=x_min)

    def filter_by_x_max(self, x_max: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.X, maximum=x_max)

    def filter_by_y_min(self, y_min: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.Y, minimum=y_min)

    def filter_by_y_max(self, y_max: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.Y, maximum=y_max)

    def filter_by_z_min(self, z_min: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.Z, minimum=z_min)

    def filter_by_z_max(self, z_max: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.Z, maximum=z_max)

    def filter_by_spherical_range_min(self, spherical_range_min: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.SPHERICAL_RANGE, minimum=spherical_range_min)

    def filter_by_spherical_range_max(self, spherical_range_max: float) -> Optional["PointData"]:
        return self._filter_column(PointDataColumnType.SPHERICAL_RANGE, maximum=spherical_range_max)

    def filter_by_spherical_range(self, range_min: float, range_max: float) -> Optional["PointData"]:
        """Keep points with range_min <= spherical range <= range_max (range_min < range_max)."""
        _check_bounds(range_min, range_max)
        return self._filter_column(PointDataColumnType.SPHERICAL_RANGE, minimum=range_min, maximum=range_max)

    def filter_by_beam_length(self, beam_length_min: float, beam_length_max: float) -> Optional["PointData"]:
        """
        Keep points whose distance to the sensor translation lies within the bounds.

        Raises:
            LowerBoundExceedsUpperBoundError: If min > max
            LowerBoundEqualsUpperBoundError: If min == max
            NoSensorTranslationColumnError: If the sensor translation is missing
        """
        _check_bounds(beam_length_min, beam_length_max)
        if not self.contains_sensor_translation():
            raise NoSensorTranslationColumnError()

        offsets = self.get_all_points() - self.get_all_sensor_translations()
        squared_lengths = np.einsum("ij,ij->i", offsets, offsets)
        mask = (squared_lengths >= beam_length_min * beam_length_min) & (
            squared_lengths <= beam_length_max * beam_length_max
        )
        return self._filtered(mask)

    def filter_by_octant_index(self, index: OctantIndex) -> Optional["PointData"]:
        if not self.contains_octant_indices():
            raise NoOctantIndicesColumnsError()
        mask = (
            (self.get_values(PointDataColumnType.OCTANT_INDEX_LEVEL) == index.level)
            & (self.get_values(PointDataColumnType.OCTANT_INDEX_X) == index.x)
            & (self.get_values(PointDataColumnType.OCTANT_INDEX_Y) == index.y)
            & (self.get_values(PointDataColumnType.OCTANT_INDEX_Z) == index.z)
        )
        return self._filtered(mask)

    def filter_null_values(self, name: str) -> Optional["PointData"]:
        """Drop rows whose value in the given column is null."""
        if name not in self._data_frame.columns:
            raise MissingColumnError(name)
        return self._filtered(self._data_frame[name].notna().to_numpy())


def _check_bounds(lower: float, upper: float) -> None:
    if lower > upper:
        raise LowerBoundExceedsUpperBoundError(lower, upper)
    if lower == upper:
        raise LowerBoundEqualsUpperBoundError(lower, upper)
