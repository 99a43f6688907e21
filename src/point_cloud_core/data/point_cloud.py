"""
Point Cloud Aggregate

Combines a PointData store with cloud-wide metadata (PointCloudInfo) and
the transform graph (ReferenceFrames) the points can be resolved with.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Set

import numpy as np

from .point_data import PointData
from ..errors import MultipleFrameIdDefinitionsError, NoFrameIdDefinitionError, NoFrameIdDefinitionsError
from ..frames.reference_frames import ReferenceFrames
from ..frames.resolve import resolve_point_data
from ..geometry.bounding_volumes import AxisAlignedBoundingBox, AxisAlignedBoundingCube
from ..geometry.octant_index import OctantIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointCloudInfo:
    """Cloud-wide metadata. frame_id applies to every point when set."""
    frame_id: Optional[str] = None


class PointCloud:
    """
    Point cloud aggregate operated on by filtering, resolution and indexing.

    Invariant: a frame_id column in the point data and a cloud-wide
    frame_id in the info are mutually exclusive.

    Example:
        >>> data = PointData.from_points([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
        >>> cloud = PointCloud(data, PointCloudInfo(frame_id="map"))
        >>> cloud.size()
        2
    """

    def __init__(
        self,
        point_data: PointData,
        info: Optional[PointCloudInfo] = None,
        reference_frames: Optional[ReferenceFrames] = None,
    ):
        """
        Args:
            point_data: Validated point store
            info: Cloud-wide metadata (default: no frame_id)
            reference_frames: Transform graph (default: empty graph)

        Raises:
            MultipleFrameIdDefinitionsError: If both the points and the info define a frame_id
        """
        info = info if info is not None else PointCloudInfo()
        if point_data.contains_frame_id_column() and info.frame_id is not None:
            raise MultipleFrameIdDefinitionsError()

        self._point_data = point_data
        self._info = info
        self._reference_frames = reference_frames if reference_frames is not None else ReferenceFrames()

    @property
    def point_data(self) -> PointData:
        return self._point_data

    @property
    def info(self) -> PointCloudInfo:
        return self._info

    @property
    def reference_frames(self) -> ReferenceFrames:
        return self._reference_frames

    def size(self) -> int:
        return self._point_data.height

    def __len__(self) -> int:
        return self.size()

    def __eq__(self, other) -> bool:
        if not isinstance(other, PointCloud):
            return NotImplemented
        return (
            self._point_data == other._point_data
            and self._info == other._info
            and self._reference_frames == other._reference_frames
        )

    def __repr__(self) -> str:
        return f"PointCloud(size={self.size()}, frame_id={self._info.frame_id!r})"

    def _with_point_data(self, point_data: Optional[PointData]) -> Optional["PointCloud"]:
        if point_data is None:
            return None
        return PointCloud(point_data, self._info, self._reference_frames)

    # -----------------------
    # Frames
    # -----------------------

    def get_frame_ids(self) -> Set[str]:
        """
        All frame ids the points are currently defined in.

        Raises:
            NoFrameIdDefinitionsError: If neither info nor points define one
        """
        if self._point_data.contains_frame_id_column():
            return self._point_data.get_distinct_frame_ids()
        if self._info.frame_id is not None:
            return {self._info.frame_id}
        raise NoFrameIdDefinitionsError()

    def contains_frame_id(self, frame_id: str) -> bool:
        try:
            return frame_id in self.get_frame_ids()
        except NoFrameIdDefinitionsError:
            return False

    def set_reference_frames(self, reference_frames: ReferenceFrames) -> None:
        self._reference_frames = reference_frames

    def resolve_to_frame(
        self,
        target_frame_id: str,
        executor=None,
        canonicalize_order: bool = True,
    ) -> None:
        """
        Express all points in target_frame_id, updating the cloud in place.

        The cloud is left unmodified when any transform lookup fails.

        Args:
            target_frame_id: Frame to express the points in
            executor: Optional PartitionParallelExecutor for the partitions
            canonicalize_order: Restore a deterministic row order afterwards

        Raises:
            NoFrameIdDefinitionsError: If the current frame is unknown
            PathNotFoundError: If a frame is not connected to the target
            TimeOutOfRangeError: If a transform cannot be evaluated
        """
        if self._info.frame_id == target_frame_id and not self._point_data.contains_frame_id_column():
            logger.debug(f"Point cloud already in frame '{target_frame_id}'")
            return

        resolved = resolve_point_data(
            self._point_data,
            self._info.frame_id,
            self._reference_frames,
            target_frame_id,
            executor=executor,
            canonicalize_order=canonicalize_order,
        )
        self._point_data = resolved
        self._info = PointCloudInfo(frame_id=target_frame_id)
        logger.info(f"Resolved {resolved.height} points to frame '{target_frame_id}'")

    def resolve_from_config(self, resolution_config, executor=None) -> None:
        """Resolve with the target_frame_id and canonicalize_order of a ResolutionConfig section.

        Leaves the cloud untouched when no target frame is configured.
        """
        if resolution_config.target_frame_id is None:
            logger.debug("No target frame configured, skipping resolution")
            return
        self.resolve_to_frame(
            resolution_config.target_frame_id,
            executor=executor,
            canonicalize_order=resolution_config.canonicalize_order,
        )

    # -----------------------
    # Attribute derivation
    # -----------------------

    def get_axis_aligned_bounding_box(self) -> AxisAlignedBoundingBox:
        return self._point_data.get_axis_aligned_bounding_box()

    def get_axis_aligned_bounding_cube(self) -> AxisAlignedBoundingCube:
        return AxisAlignedBoundingCube.from_bounding_box(self.get_axis_aligned_bounding_box())

    def add_sequential_id(self) -> None:
        self._point_data = self._point_data.add_sequential_id()

    def derive_spherical_points(self) -> None:
        self._point_data = self._point_data.derive_spherical_points()

    def derive_octant_indices(self, level: int, cube: Optional[AxisAlignedBoundingCube] = None) -> None:
        self._point_data = self._point_data.derive_octant_indices(level, cube)

    def update_points(self, points: np.ndarray) -> None:
        self._point_data = self._point_data.update_points(points)

    # -----------------------
    # Filters
    # -----------------------

    def filter_by_frame_id(self, frame_id: str) -> Optional["PointCloud"]:
        """
        Keep the points defined in frame_id.

        Raises:
            NoFrameIdDefinitionError: If no point is defined in frame_id
        """
        if not self.contains_frame_id(frame_id):
            raise NoFrameIdDefinitionError(frame_id)
        if not self._point_data.contains_frame_id_column():
            return self._with_point_data(self._point_data)
        mask = np.asarray(self._point_data.get_all_frame_ids()) == frame_id
        return self._with_point_data(self._point_data.filter_by_boolean_mask(mask))

    def filter_by_row_indices(self, row_indices: Iterable[int]) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_row_indices(row_indices))

    def filter_by_boolean_mask(self, boolean_mask) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_boolean_mask(boolean_mask))

    def filter_by_bounds(self, bound_min, bound_max) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_bounds(bound_min, bound_max))

    def filter_by_x_min(self, x_min: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_x_min(x_min))

    def filter_by_x_max(self, x_max: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_x_max(x_max))

    def filter_by_y_min(self, y_min: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_y_min(y_min))

    def filter_by_y_max(self, y_max: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_y_max(y_max))

    def filter_by_z_min(self, z_min: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_z_min(z_min))

    def filter_by_z_max(self, z_max: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_z_max(z_max))

    def filter_by_spherical_range_min(self, spherical_range_min: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_spherical_range_min(spherical_range_min))

    def filter_by_spherical_range_max(self, spherical_range_max: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_spherical_range_max(spherical_range_max))

    def filter_by_beam_length(self, beam_length_min: float, beam_length_max: float) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_beam_length(beam_length_min, beam_length_max))

    def filter_by_octant_index(self, index: OctantIndex) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_by_octant_index(index))

    def filter_null_values(self, column_name: str) -> Optional["PointCloud"]:
        return self._with_point_data(self._point_data.filter_null_values(column_name))
