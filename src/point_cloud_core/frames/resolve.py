"""
Coordinate-frame resolution engine.

Re-expresses the points of a store, which may be defined per point and per
time in different frames, in a single target frame:

1. Partition the rows by (frame_id, timestamp_sec, timestamp_nanosec)
2. Resolve one isometry per partition from the transform graph
3. Transform positions and sensor translations with the full isometry,
   sensor rotations with its rotation only
4. Write the results back into copies of the original columns and
   restore a canonical row order

Nothing is written until every partition has been resolved, so a failing
transform lookup leaves the input untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from .reference_frames import ReferenceFrames
from ..acceleration.parallel_executor import PartitionParallelExecutor
from ..data.columns import SPHERICAL_COLUMNS, TIMESTAMP_COLUMNS, PointDataColumnType
from ..data.point_data import PointData
from ..errors import NoFrameIdDefinitionsError
from ..geometry.isometry import Isometry
from ..utils.logging import log_duration

logger = logging.getLogger(__name__)

PARTITION_COLUMNS = (
    PointDataColumnType.FRAME_ID,
    PointDataColumnType.TIMESTAMP_SEC,
    PointDataColumnType.TIMESTAMP_NANOSEC,
)


@dataclass
class FramePartition:
    """Rows sharing one effective frame and timestamp (nanoseconds, or None)."""
    frame_id: str
    timestamp: Optional[int]
    row_indices: np.ndarray

    def __len__(self) -> int:
        return len(self.row_indices)


@dataclass
class PartitionResult:
    row_indices: np.ndarray
    isometry: Isometry
    points: np.ndarray
    sensor_translations: Optional[np.ndarray] = None
    sensor_rotations: Optional[np.ndarray] = None


def partition_point_data(point_data: PointData, frame_id: Optional[str]) -> List[FramePartition]:
    """
    Split the rows into maximal groups of identical frame and timestamp.

    Args:
        point_data: Store to partition
        frame_id: Cloud-wide frame id, used when there is no frame_id column

    Returns:
        List of partitions covering every row exactly once

    Raises:
        NoFrameIdDefinitionsError: If a row's frame cannot be determined
    """
    present = [column for column in PARTITION_COLUMNS if point_data.contains_column(column)]
    has_frame_column = PointDataColumnType.FRAME_ID in present
    if not has_frame_column and frame_id is None:
        raise NoFrameIdDefinitionsError()

    if not present:
        return [FramePartition(frame_id, None, np.arange(point_data.height, dtype=np.int64))]

    partitions = []
    for key, row_indices in point_data.group_row_indices(present).items():
        values = dict(zip(present, key))

        effective_frame_id = values.get(PointDataColumnType.FRAME_ID, frame_id)
        if effective_frame_id is None or pd.isna(effective_frame_id):
            raise NoFrameIdDefinitionsError()

        timestamp = None
        if PointDataColumnType.TIMESTAMP_SEC in values:
            nanoseconds = values.get(PointDataColumnType.TIMESTAMP_NANOSEC, 0)
            timestamp = int(values[PointDataColumnType.TIMESTAMP_SEC]) * 1_000_000_000 + int(nanoseconds)

        partitions.append(FramePartition(str(effective_frame_id), timestamp, row_indices))
    return partitions


def _transform_partition(
    partition: FramePartition,
    reference_frames: ReferenceFrames,
    target_frame_id: str,
    points: np.ndarray,
    sensor_translations: Optional[np.ndarray],
    sensor_rotations: Optional[np.ndarray],
) -> PartitionResult:
    isometry = reference_frames.get_isometry(partition.frame_id, target_frame_id, partition.timestamp)
    rows = partition.row_indices

    result = PartitionResult(rows, isometry, isometry.transform_points(points[rows]))
    if sensor_translations is not None:
        result.sensor_translations = isometry.transform_points(sensor_translations[rows])
    if sensor_rotations is not None:
        # Orientations only receive the rotation part
        result.sensor_rotations = isometry.rotate_quaternions(sensor_rotations[rows])
    return result


def canonicalize_row_order(point_data: PointData) -> PointData:
    """
    Sort rows by timestamp when there is no id column, else by id (stable).

    Stores with neither keep their order.
    """
    if point_data.contains_timestamps() and not point_data.contains_id_column():
        return point_data.sort_by(TIMESTAMP_COLUMNS)
    if point_data.contains_id_column():
        return point_data.sort_by([PointDataColumnType.ID])
    return point_data


def resolve_point_data(
    point_data: PointData,
    frame_id: Optional[str],
    reference_frames: ReferenceFrames,
    target_frame_id: str,
    executor: Optional[PartitionParallelExecutor] = None,
    canonicalize_order: bool = True,
) -> PointData:
    """
    Express all points of a store in the target frame.

    Args:
        point_data: Store to resolve (left unmodified)
        frame_id: Cloud-wide frame id (None when points carry a frame_id column)
        reference_frames: Transform graph used for isometry lookups
        target_frame_id: Frame to express the points in
        executor: Executor for the per-partition work (default: sequential)
        canonicalize_order: Restore a deterministic row order afterwards

    Returns:
        New PointData in the target frame, without a frame_id column. Derived
        spherical columns are recomputed from the resolved positions.

    Raises:
        NoFrameIdDefinitionsError: If the current frame of the points is unknown
        PathNotFoundError: If a frame is not connected to the target frame
        TimeOutOfRangeError: If a transform cannot be evaluated at a timestamp
    """
    if executor is None:
        executor = PartitionParallelExecutor(n_workers=1)

    with log_duration(logger, f"Resolving {point_data.height} points to frame '{target_frame_id}'"):
        partitions = partition_point_data(point_data, frame_id)
        logger.debug(f"Resolving {len(partitions)} partitions to frame '{target_frame_id}'")

        points = point_data.get_all_points()
        sensor_translations = (
            point_data.get_all_sensor_translations() if point_data.contains_sensor_translation() else None
        )
        sensor_rotations = (
            point_data.get_all_sensor_rotations() if point_data.contains_sensor_rotation() else None
        )

        results = executor.map_partitions(
            partitions,
            _transform_partition,
            worker_kwargs={
                "reference_frames": reference_frames,
                "target_frame_id": target_frame_id,
                "points": points,
                "sensor_translations": sensor_translations,
                "sensor_rotations": sensor_rotations,
            },
        )

        # All lookups succeeded; assemble the new columns
        resolved_points = points.copy()
        for result in results:
            resolved_points[result.row_indices] = result.points
        resolved = point_data.update_points(resolved_points)

        if sensor_translations is not None:
            resolved_translations = sensor_translations.copy()
            for result in results:
                resolved_translations[result.row_indices] = result.sensor_translations
            resolved = resolved.update_sensor_translations(resolved_translations)

        if sensor_rotations is not None:
            resolved_rotations = sensor_rotations.copy()
            for result in results:
                resolved_rotations[result.row_indices] = result.sensor_rotations
            resolved = resolved.update_sensor_rotations(resolved_rotations)

        if resolved.contains_spherical_points():
            for column in SPHERICAL_COLUMNS:
                resolved = resolved.remove_column(column.column_name)
            resolved = resolved.derive_spherical_points()

        if resolved.contains_frame_id_column():
            resolved = resolved.remove_column(PointDataColumnType.FRAME_ID.column_name)

        if canonicalize_order:
            resolved = canonicalize_row_order(resolved)

    return resolved
