"""
Time-aware transform graph between named reference frames.

A transform edge maps coordinates of its child frame into its parent frame.
Edges are sampled over time on one or more channels (e.g. different
estimation sources); an edge with a single sample is static. Queries
search the undirected frame graph and compose the edge isometries along
the path, traversing an edge from parent to child with its inverse.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Literal, Optional, Tuple, Union

import numpy as np
import pandas as pd

from ..errors import ConflictError, PathNotFoundError, TimeOutOfRangeError
from ..geometry.isometry import Isometry

logger = logging.getLogger(__name__)

TimestampLike = Union[int, np.integer, pd.Timestamp, datetime, np.datetime64, str]
InterpolationType = Literal["step", "linear"]
ExtrapolationType = Literal["constant", "none"]

DEFAULT_CHANNEL_ID = "default"


def to_nanoseconds(timestamp: TimestampLike) -> int:
    """
    Convert a timestamp to integer nanoseconds since the UNIX epoch (UTC).

    Integers are taken as nanoseconds; naive datetimes are taken as UTC.
    """
    if isinstance(timestamp, (int, np.integer)):
        return int(timestamp)
    ts = pd.Timestamp(timestamp)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value)


@dataclass(frozen=True, order=True)
class TransformId:
    """Directed edge: maps coordinates of child_frame_id into parent_frame_id."""
    parent_frame_id: str
    child_frame_id: str

    def __str__(self) -> str:
        return f"{self.parent_frame_id}->{self.child_frame_id}"


@dataclass(frozen=True)
class TransformInfo:
    interpolation: InterpolationType = "linear"
    extrapolation: ExtrapolationType = "constant"

    def __post_init__(self):
        if self.interpolation not in ("step", "linear"):
            raise ValueError(f"Unknown interpolation type: {self.interpolation}")
        if self.extrapolation not in ("constant", "none"):
            raise ValueError(f"Unknown extrapolation type: {self.extrapolation}")


@dataclass(frozen=True)
class Transform:
    """One time sample of an edge: translation and (x, y, z, w) rotation."""
    timestamp: int
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)

    def __post_init__(self):
        object.__setattr__(self, "timestamp", to_nanoseconds(self.timestamp))
        object.__setattr__(self, "translation", tuple(float(v) for v in self.translation))
        object.__setattr__(self, "rotation", tuple(float(v) for v in self.rotation))
        if len(self.translation) != 3 or len(self.rotation) != 4:
            raise ValueError("Transform requires 3 translation and 4 rotation components")

    @classmethod
    def from_isometry(cls, timestamp: TimestampLike, isometry: Isometry) -> "Transform":
        return cls(timestamp, tuple(isometry.translation), tuple(isometry.quaternion))

    @property
    def isometry(self) -> Isometry:
        return Isometry.from_parts(self.translation, self.rotation)


@dataclass
class _Edge:
    """Samples of one edge on its winning channel, sorted by time."""
    transform_id: TransformId
    info: TransformInfo
    timestamps: np.ndarray
    isometries: List[Isometry] = field(default_factory=list)

    @property
    def is_static(self) -> bool:
        return len(self.isometries) == 1

    def evaluate(self, timestamp: Optional[int]) -> Isometry:
        if self.is_static:
            return self.isometries[0]
        if timestamp is None:
            raise TimeOutOfRangeError(
                str(self.transform_id), None, "time-varying transform requires a timestamp"
            )

        first, last = int(self.timestamps[0]), int(self.timestamps[-1])
        if timestamp < first or timestamp > last:
            if self.info.extrapolation == "none":
                raise TimeOutOfRangeError(str(self.transform_id), timestamp)
            return self.isometries[0] if timestamp < first else self.isometries[-1]

        index = int(np.searchsorted(self.timestamps, timestamp, side="right")) - 1
        if int(self.timestamps[index]) == timestamp or self.info.interpolation == "step":
            return self.isometries[index]

        t0, t1 = int(self.timestamps[index]), int(self.timestamps[index + 1])
        fraction = (timestamp - t0) / (t1 - t0)
        return self.isometries[index].interpolate(self.isometries[index + 1], fraction)


class ReferenceFrames:
    """
    Transform graph consumed by the frame resolution engine.

    Args:
        transforms: Samples keyed by (channel_id, TransformId)
        transform_info: Interpolation/extrapolation per edge (default: linear, constant)
        channel_priorities: Higher priority channels win when several define
            the same edge (ties are broken by the lexicographically smallest id)

    The graph is immutable after construction and may be queried from
    several threads at once.
    """

    def __init__(
        self,
        transforms: Optional[Dict[Tuple[str, TransformId], Iterable[Transform]]] = None,
        transform_info: Optional[Dict[TransformId, TransformInfo]] = None,
        channel_priorities: Optional[Dict[str, int]] = None,
    ):
        self._transforms: Dict[Tuple[str, TransformId], Tuple[Transform, ...]] = {}
        for key, samples in (transforms or {}).items():
            samples = tuple(sorted(samples, key=lambda s: s.timestamp))
            if not samples:
                raise ValueError(f"Transform {key[1]} on channel '{key[0]}' has no samples")
            times = [s.timestamp for s in samples]
            if len(set(times)) != len(times):
                raise ValueError(f"Transform {key[1]} on channel '{key[0]}' has duplicate timestamps")
            self._transforms[key] = samples

        self._transform_info = dict(transform_info or {})
        self._channel_priorities = dict(channel_priorities or {})
        self._edges = self._select_edges()
        self._adjacency = self._build_adjacency()

    @classmethod
    def from_static_isometries(
        cls,
        isometries: Dict[TransformId, Isometry],
        channel_id: str = DEFAULT_CHANNEL_ID,
    ) -> "ReferenceFrames":
        """Create a graph of time-independent edges."""
        return cls({(channel_id, tid): [Transform.from_isometry(0, iso)] for tid, iso in isometries.items()})

    # -----------------------
    # Introspection
    # -----------------------

    @property
    def transforms(self) -> Dict[Tuple[str, TransformId], Tuple[Transform, ...]]:
        return dict(self._transforms)

    @property
    def transform_info(self) -> Dict[TransformId, TransformInfo]:
        return dict(self._transform_info)

    @property
    def channel_priorities(self) -> Dict[str, int]:
        return dict(self._channel_priorities)

    def is_empty(self) -> bool:
        return not self._transforms

    def channel_ids(self) -> List[str]:
        return sorted({channel_id for channel_id, _ in self._transforms})

    def transform_ids(self) -> List[TransformId]:
        return sorted({tid for _, tid in self._transforms})

    def frame_ids(self) -> List[str]:
        return sorted(self._adjacency)

    def contains_frame(self, frame_id: str) -> bool:
        return frame_id in self._adjacency

    def __eq__(self, other) -> bool:
        if not isinstance(other, ReferenceFrames):
            return NotImplemented
        return (
            self._transforms == other._transforms
            and self._transform_info == other._transform_info
            and self._channel_priorities == other._channel_priorities
        )

    def __repr__(self) -> str:
        return f"ReferenceFrames(frames={self.frame_ids()}, channels={self.channel_ids()})"

    # -----------------------
    # Graph construction
    # -----------------------

    def _channel_rank(self, channel_id: str):
        return (-self._channel_priorities.get(channel_id, 0), channel_id)

    def _edge_from_samples(self, transform_id: TransformId, samples: Tuple[Transform, ...]) -> _Edge:
        return _Edge(
            transform_id=transform_id,
            info=self._transform_info.get(transform_id, TransformInfo()),
            timestamps=np.array([s.timestamp for s in samples], dtype=np.int64),
            isometries=[s.isometry for s in samples],
        )

    def _select_edges(self) -> Dict[TransformId, _Edge]:
        winners: Dict[TransformId, str] = {}
        for channel_id, transform_id in self._transforms:
            current = winners.get(transform_id)
            if current is None or self._channel_rank(channel_id) < self._channel_rank(current):
                winners[transform_id] = channel_id
        return {
            tid: self._edge_from_samples(tid, self._transforms[(channel_id, tid)])
            for tid, channel_id in winners.items()
        }

    def _build_adjacency(self) -> Dict[str, List[str]]:
        adjacency: Dict[str, set] = {}
        for tid in self._edges:
            adjacency.setdefault(tid.parent_frame_id, set()).add(tid.child_frame_id)
            adjacency.setdefault(tid.child_frame_id, set()).add(tid.parent_frame_id)
        return {frame_id: sorted(neighbours) for frame_id, neighbours in adjacency.items()}

    def _find_path(self, source_frame_id: str, target_frame_id: str) -> List[str]:
        if source_frame_id not in self._adjacency or target_frame_id not in self._adjacency:
            raise PathNotFoundError(source_frame_id, target_frame_id)

        previous: Dict[str, Optional[str]] = {source_frame_id: None}
        queue = deque([source_frame_id])
        while queue:
            frame_id = queue.popleft()
            if frame_id == target_frame_id:
                break
            for neighbour in self._adjacency[frame_id]:
                if neighbour not in previous:
                    previous[neighbour] = frame_id
                    queue.append(neighbour)

        if target_frame_id not in previous:
            raise PathNotFoundError(source_frame_id, target_frame_id)

        path = [target_frame_id]
        while previous[path[-1]] is not None:
            path.append(previous[path[-1]])
        return path[::-1]

    # -----------------------
    # Queries
    # -----------------------

    def _edges_for_channel(self, channel_id: str) -> Dict[TransformId, _Edge]:
        edges = dict(self._edges)
        for (cid, tid), samples in self._transforms.items():
            if cid == channel_id:
                edges[tid] = self._edge_from_samples(tid, samples)
        return edges

    def get_isometry(
        self,
        source_frame_id: str,
        target_frame_id: str,
        timestamp: Optional[TimestampLike] = None,
        channel_id: Optional[str] = None,
    ) -> Isometry:
        """
        Isometry mapping coordinates of source_frame_id into target_frame_id.

        Args:
            source_frame_id: Frame the coordinates are currently given in
            target_frame_id: Frame the coordinates should be expressed in
            timestamp: Evaluation time (None for a time-independent query)
            channel_id: Prefer this channel's samples where it defines an edge

        Returns:
            Composed Isometry along the frame path

        Raises:
            PathNotFoundError: If the frames are not connected
            TimeOutOfRangeError: If a time-varying edge cannot be evaluated
        """
        if source_frame_id == target_frame_id:
            return Isometry.identity()

        nanoseconds = to_nanoseconds(timestamp) if timestamp is not None else None
        edges = self._edges if channel_id is None else self._edges_for_channel(channel_id)
        path = self._find_path(source_frame_id, target_frame_id)

        result = Isometry.identity()
        for current, following in zip(path[:-1], path[1:]):
            upward = TransformId(parent_frame_id=following, child_frame_id=current)
            if upward in edges:
                step = edges[upward].evaluate(nanoseconds)
            else:
                step = edges[TransformId(parent_frame_id=current, child_frame_id=following)].evaluate(nanoseconds).inverse()
            result = step * result
        return result


def merge_reference_frames(reference_frames: List[ReferenceFrames]) -> ReferenceFrames:
    """
    Combine several transform graphs into one.

    Raises:
        ConflictError: If two graphs define the same edge on the same
            channel, or disagree on an edge's TransformInfo or a channel priority
    """
    transforms: Dict[Tuple[str, TransformId], Tuple[Transform, ...]] = {}
    transform_info: Dict[TransformId, TransformInfo] = {}
    channel_priorities: Dict[str, int] = {}

    for frames in reference_frames:
        for (channel_id, tid), samples in frames.transforms.items():
            if (channel_id, tid) in transforms:
                raise ConflictError(channel_id, str(tid))
            transforms[(channel_id, tid)] = samples
        for tid, info in frames.transform_info.items():
            if transform_info.setdefault(tid, info) != info:
                raise ConflictError("*", str(tid))
        for channel_id, priority in frames.channel_priorities.items():
            if channel_priorities.setdefault(channel_id, priority) != priority:
                raise ConflictError(channel_id, "channel priority")

    logger.debug(f"Merged {len(reference_frames)} reference frame graphs into {len(transforms)} transforms")
    return ReferenceFrames(transforms, transform_info, channel_priorities)
