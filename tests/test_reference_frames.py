"""Tests for the time-aware transform graph."""

import numpy as np
import pandas as pd
import pytest
from scipy.spatial.transform import Rotation

from point_cloud_core.errors import ConflictError, PathNotFoundError, TimeOutOfRangeError
from point_cloud_core.frames import (
    ReferenceFrames,
    Transform,
    TransformId,
    TransformInfo,
    merge_reference_frames,
    to_nanoseconds,
)
from point_cloud_core.geometry import Isometry

SECOND = 1_000_000_000


def _apply(isometry, point):
    return isometry.transform_points(np.array([point], dtype=float))[0]


@pytest.fixture
def chain():
    """world <- base <- sensor, with a translation on each edge."""
    return ReferenceFrames.from_static_isometries({
        TransformId("world", "base"): Isometry([10.0, 0.0, 0.0]),
        TransformId("base", "sensor"): Isometry([0.0, 1.0, 0.0], Rotation.from_euler("z", 90, degrees=True)),
    })


class TestStaticGraph:
    """Path search and composition over static edges."""

    def test_identity_for_same_frame(self, chain):
        assert chain.get_isometry("base", "base").is_close(Isometry.identity())

    def test_child_to_parent(self, chain):
        np.testing.assert_allclose(_apply(chain.get_isometry("base", "world"), [0, 0, 0]), [10, 0, 0])

    def test_composed_path(self, chain):
        result = _apply(chain.get_isometry("sensor", "world"), [1, 0, 0])
        # rotate (1,0,0) -> (0,1,0), + (0,1,0) -> (0,2,0), + (10,0,0)
        np.testing.assert_allclose(result, [10.0, 2.0, 0.0], atol=1e-12)

    def test_parent_to_child_uses_inverse(self, chain):
        forward = chain.get_isometry("sensor", "world")
        backward = chain.get_isometry("world", "sensor")
        assert (backward * forward).is_close(Isometry.identity())

    def test_unknown_frame(self, chain):
        with pytest.raises(PathNotFoundError, match="mars"):
            chain.get_isometry("sensor", "mars")

    def test_disconnected_frames(self):
        frames = ReferenceFrames.from_static_isometries({
            TransformId("a", "b"): Isometry(),
            TransformId("c", "d"): Isometry(),
        })
        with pytest.raises(PathNotFoundError):
            frames.get_isometry("b", "d")

    def test_frame_ids(self, chain):
        assert chain.frame_ids() == ["base", "sensor", "world"]
        assert chain.contains_frame("sensor")


class TestTimeVaryingEdges:
    """Interpolation and extrapolation of sampled edges."""

    @staticmethod
    def _moving(interpolation="linear", extrapolation="constant"):
        tid = TransformId("world", "vehicle")
        return ReferenceFrames(
            {("gnss", tid): [
                Transform(0, (0.0, 0.0, 0.0)),
                Transform(10 * SECOND, (10.0, 0.0, 0.0)),
            ]},
            transform_info={tid: TransformInfo(interpolation, extrapolation)},
        )

    def test_linear_interpolation(self):
        iso = self._moving().get_isometry("vehicle", "world", 5 * SECOND)
        np.testing.assert_allclose(iso.translation, [5.0, 0.0, 0.0])

    def test_step_interpolation(self):
        iso = self._moving("step").get_isometry("vehicle", "world", 9 * SECOND)
        np.testing.assert_allclose(iso.translation, [0.0, 0.0, 0.0])

    def test_exact_sample(self):
        iso = self._moving().get_isometry("vehicle", "world", 10 * SECOND)
        np.testing.assert_allclose(iso.translation, [10.0, 0.0, 0.0])

    def test_constant_extrapolation(self):
        iso = self._moving().get_isometry("vehicle", "world", 20 * SECOND)
        np.testing.assert_allclose(iso.translation, [10.0, 0.0, 0.0])

    def test_no_extrapolation(self):
        with pytest.raises(TimeOutOfRangeError):
            self._moving(extrapolation="none").get_isometry("vehicle", "world", 20 * SECOND)

    def test_missing_timestamp(self):
        with pytest.raises(TimeOutOfRangeError, match="requires a timestamp"):
            self._moving().get_isometry("vehicle", "world")

    def test_pandas_timestamp(self):
        timestamp = pd.Timestamp("1970-01-01 00:00:05", tz="UTC")
        assert to_nanoseconds(timestamp) == 5 * SECOND
        iso = self._moving().get_isometry("vehicle", "world", timestamp)
        np.testing.assert_allclose(iso.translation, [5.0, 0.0, 0.0])

    def test_duplicate_timestamps_rejected(self):
        tid = TransformId("world", "vehicle")
        with pytest.raises(ValueError, match="duplicate"):
            ReferenceFrames({("gnss", tid): [Transform(0), Transform(0)]})


class TestChannels:
    """Channel priorities and merging."""

    def test_highest_priority_wins(self):
        tid = TransformId("world", "vehicle")
        frames = ReferenceFrames(
            {
                ("coarse", tid): [Transform(0, (1.0, 0.0, 0.0))],
                ("fine", tid): [Transform(0, (2.0, 0.0, 0.0))],
            },
            channel_priorities={"fine": 10, "coarse": 0},
        )
        assert frames.get_isometry("vehicle", "world").translation[0] == pytest.approx(2.0)
        assert frames.get_isometry("vehicle", "world", channel_id="coarse").translation[0] == pytest.approx(1.0)

    def test_equal_priority_uses_channel_name(self):
        tid = TransformId("world", "vehicle")
        frames = ReferenceFrames({
            ("b", tid): [Transform(0, (2.0, 0.0, 0.0))],
            ("a", tid): [Transform(0, (1.0, 0.0, 0.0))],
        })
        assert frames.get_isometry("vehicle", "world").translation[0] == pytest.approx(1.0)

    def test_merge(self, chain):
        other = ReferenceFrames.from_static_isometries(
            {TransformId("world", "map"): Isometry([0.0, 0.0, 1.0])}
        )
        merged = merge_reference_frames([chain, other])
        np.testing.assert_allclose(_apply(merged.get_isometry("base", "map"), [0, 0, 0]), [10.0, 0.0, -1.0])

    def test_merge_conflict(self, chain):
        with pytest.raises(ConflictError):
            merge_reference_frames([chain, chain])

    def test_merge_same_edge_on_other_channel(self, chain):
        other = ReferenceFrames.from_static_isometries(
            {TransformId("world", "base"): Isometry([0.0, 0.0, 0.0])}, channel_id="survey"
        )
        merged = merge_reference_frames([chain, other])
        assert merged.channel_ids() == ["default", "survey"]
