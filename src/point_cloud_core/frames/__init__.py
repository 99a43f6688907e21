"""
Frames Module

Reference frames and coordinate-frame resolution:
- ReferenceFrames: time-aware transform graph between named frames
- resolve_point_data: express per-point/per-time frames in one target frame
"""

from .reference_frames import (
    ReferenceFrames,
    Transform,
    TransformId,
    TransformInfo,
    merge_reference_frames,
    to_nanoseconds,
)
from .resolve import (
    FramePartition,
    canonicalize_row_order,
    partition_point_data,
    resolve_point_data,
)

__all__ = [
    "ReferenceFrames",
    "Transform",
    "TransformId",
    "TransformInfo",
    "merge_reference_frames",
    "to_nanoseconds",
    "FramePartition",
    "canonicalize_row_order",
    "partition_point_data",
    "resolve_point_data",
]
