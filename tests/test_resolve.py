"""
Tests for the coordinate-frame resolution engine.

Covers per-frame and per-time partitioning, sensor pose handling,
canonical row order and atomic failure.
"""

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from point_cloud_core.acceleration import PartitionParallelExecutor
from point_cloud_core.data import PointCloud, PointCloudInfo, PointData, PointDataColumnType
from point_cloud_core.errors import NoFrameIdDefinitionsError, PathNotFoundError, TimeOutOfRangeError
from point_cloud_core.frames import (
    ReferenceFrames,
    Transform,
    TransformId,
    TransformInfo,
    partition_point_data,
)
from point_cloud_core.geometry import Isometry
from point_cloud_core.utils.config import ResolutionConfig, load_config

SECOND = 1_000_000_000
ROTATION_Z_90 = Rotation.from_euler("z", 90, degrees=True)


@pytest.fixture
def two_frame_graph():
    return ReferenceFrames.from_static_isometries({
        TransformId("target", "A"): Isometry([10.0, 0.0, 0.0]),
        TransformId("target", "B"): Isometry([0.0, 0.0, 0.0], ROTATION_Z_90),
    })


@pytest.fixture
def moving_graph():
    tid = TransformId("world", "vehicle")
    return ReferenceFrames(
        {("gnss", tid): [Transform(0, (0.0, 0.0, 0.0)), Transform(10 * SECOND, (10.0, 0.0, 0.0))]},
        transform_info={tid: TransformInfo("linear", "none")},
    )


class TestPartitioning:
    """Grouping rows by frame and timestamp."""

    def test_single_partition_without_columns(self):
        data = PointData.from_points(np.zeros((3, 3)))
        partitions = partition_point_data(data, "map")
        assert len(partitions) == 1
        assert partitions[0].frame_id == "map"
        assert partitions[0].timestamp is None
        np.testing.assert_array_equal(partitions[0].row_indices, [0, 1, 2])

    def test_partitions_by_frame_and_time(self):
        data = PointData.from_points(
            np.zeros((4, 3)),
            frame_id=["a", "b", "a", "a"],
            timestamp_sec=[1, 1, 1, 2],
            timestamp_nanosec=[0, 0, 0, 5],
        )
        partitions = partition_point_data(data, None)
        keys = sorted((p.frame_id, p.timestamp, tuple(p.row_indices)) for p in partitions)
        assert keys == [
            ("a", 1 * SECOND, (0, 2)),
            ("a", 2 * SECOND + 5, (3,)),
            ("b", 1 * SECOND, (1,)),
        ]

    def test_no_frame_definition(self):
        data = PointData.from_points(np.zeros((2, 3)))
        with pytest.raises(NoFrameIdDefinitionsError):
            partition_point_data(data, None)


class TestResolveToFrame:
    """Resolution of whole point clouds."""

    def test_two_frames_same_time(self, two_frame_graph):
        data = PointData.from_points(
            np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]),
            frame_id=["A", "B"],
            timestamp_sec=[0, 0],
            timestamp_nanosec=[0, 0],
        )
        cloud = PointCloud(data, reference_frames=two_frame_graph)

        cloud.resolve_to_frame("target")

        np.testing.assert_allclose(
            cloud.point_data.get_all_points(), [[11.0, 0.0, 0.0], [-1.0, 0.0, 0.0]], atol=1e-12
        )
        assert cloud.info.frame_id == "target"
        assert not cloud.point_data.contains_frame_id_column()

    def test_fast_path_leaves_cloud_untouched(self, two_frame_graph):
        data = PointData.from_points(np.array([[1.0, 2.0, 3.0]]))
        cloud = PointCloud(data, PointCloudInfo(frame_id="target"), two_frame_graph)

        cloud.resolve_to_frame("target")

        assert cloud.point_data is data

    def test_idempotent(self, two_frame_graph):
        data = PointData.from_points(np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]), frame_id=["A", "B"])
        cloud = PointCloud(data, reference_frames=two_frame_graph)

        cloud.resolve_to_frame("target")
        once = cloud.point_data
        cloud.resolve_to_frame("target")

        assert cloud.point_data == once

    def test_time_varying_transform(self, moving_graph):
        data = PointData.from_points(
            np.zeros((3, 3)), timestamp_sec=[5, 0, 10], timestamp_nanosec=[0, 0, 0]
        )
        cloud = PointCloud(data, PointCloudInfo(frame_id="vehicle"), moving_graph)

        cloud.resolve_to_frame("world")

        # Rows are sorted by timestamp afterwards
        np.testing.assert_allclose(cloud.point_data.get_all_points()[:, 0], [0.0, 5.0, 10.0])
        np.testing.assert_array_equal(
            cloud.point_data.get_values(PointDataColumnType.TIMESTAMP_SEC), [0, 5, 10]
        )

    def test_sorted_by_id_when_present(self, two_frame_graph):
        data = PointData.from_points(
            np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]]),
            id=[2, 0, 1],
            frame_id=["A", "B", "A"],
        )
        cloud = PointCloud(data, reference_frames=two_frame_graph)

        cloud.resolve_to_frame("target")

        np.testing.assert_array_equal(cloud.point_data.get_values(PointDataColumnType.ID), [0, 1, 2])
        np.testing.assert_allclose(
            cloud.point_data.get_all_points(),
            [[0.0, 1.0, 0.0], [12.0, 0.0, 0.0], [10.0, 0.0, 0.0]],
            atol=1e-12,
        )

    def test_sensor_pose(self):
        frames = ReferenceFrames.from_static_isometries(
            {TransformId("world", "sensor"): Isometry([0.0, 0.0, 5.0], ROTATION_Z_90)}
        )
        data = PointData.from_points(np.array([[1.0, 0.0, 0.0]])).add_unique_sensor_pose(
            Isometry([1.0, 0.0, 0.0])
        )
        cloud = PointCloud(data, PointCloudInfo(frame_id="sensor"), frames)

        cloud.resolve_to_frame("world")

        np.testing.assert_allclose(cloud.point_data.get_all_sensor_translations(), [[0.0, 1.0, 5.0]], atol=1e-12)
        rotation = Rotation.from_quat(cloud.point_data.get_all_sensor_rotations()[0])
        assert rotation.approx_equal(ROTATION_Z_90)

    def test_spherical_points_recomputed(self, two_frame_graph):
        data = PointData.from_points(np.array([[1.0, 0.0, 0.0]])).derive_spherical_points()
        cloud = PointCloud(data, PointCloudInfo(frame_id="A"), two_frame_graph)

        cloud.resolve_to_frame("target")

        np.testing.assert_allclose(cloud.point_data.get_values(PointDataColumnType.SPHERICAL_RANGE), [11.0])

    def test_missing_frame_definition(self, two_frame_graph):
        cloud = PointCloud(PointData.from_points(np.zeros((1, 3))), reference_frames=two_frame_graph)
        with pytest.raises(NoFrameIdDefinitionsError):
            cloud.resolve_to_frame("target")

    def test_failure_is_atomic(self, two_frame_graph):
        data = PointData.from_points(np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]), frame_id=["A", "C"])
        cloud = PointCloud(data, reference_frames=two_frame_graph)

        with pytest.raises(PathNotFoundError):
            cloud.resolve_to_frame("target")

        assert cloud.point_data is data
        assert cloud.info.frame_id is None

    def test_time_out_of_range_is_atomic(self, moving_graph):
        data = PointData.from_points(np.zeros((2, 3)), timestamp_sec=[5, 20], timestamp_nanosec=[0, 0])
        cloud = PointCloud(data, PointCloudInfo(frame_id="vehicle"), moving_graph)

        with pytest.raises(TimeOutOfRangeError):
            cloud.resolve_to_frame("world")

        assert cloud.point_data is data
        assert cloud.info.frame_id == "vehicle"

    def test_parallel_matches_sequential(self, moving_graph):
        rng = np.random.default_rng(0)
        n = 200
        seconds = rng.integers(0, 11, size=n)

        def build():
            data = PointData.from_points(
                rng.normal(size=(n, 3)), timestamp_sec=seconds, timestamp_nanosec=np.zeros(n)
            ).add_sequential_id()
            return PointCloud(data, PointCloudInfo(frame_id="vehicle"), moving_graph)

        sequential = build()
        parallel = PointCloud(sequential.point_data, sequential.info, moving_graph)

        sequential.resolve_to_frame("world")
        parallel.resolve_to_frame("world", executor=PartitionParallelExecutor(n_workers=4))

        assert parallel.point_data == sequential.point_data


class TestResolveFromConfig:
    """Resolution driven by the resolution section of the config."""

    def test_no_target_frame_is_noop(self, two_frame_graph):
        data = PointData.from_points(np.array([[1.0, 0.0, 0.0]]), frame_id=["A"])
        cloud = PointCloud(data, reference_frames=two_frame_graph)

        cloud.resolve_from_config(ResolutionConfig())

        assert cloud.point_data is data
        assert cloud.info.frame_id is None

    def test_resolves_to_configured_frame(self, moving_graph):
        data = PointData.from_points(
            np.zeros((3, 3)), timestamp_sec=[5, 0, 10], timestamp_nanosec=[0, 0, 0]
        )
        cloud = PointCloud(data, PointCloudInfo(frame_id="vehicle"), moving_graph)

        cloud.resolve_from_config(ResolutionConfig(target_frame_id="world", canonicalize_order=False))

        assert cloud.info.frame_id == "world"
        # Input row order is kept without canonicalization
        np.testing.assert_allclose(cloud.point_data.get_all_points()[:, 0], [5.0, 0.0, 10.0])

    def test_loaded_config(self, tmp_path, two_frame_graph):
        path = tmp_path / "resolve.yaml"
        path.write_text("resolution:\n  target_frame_id: target\n", encoding="utf-8")
        data = PointData.from_points(np.array([[1.0, 0.0, 0.0]]))
        cloud = PointCloud(data, PointCloudInfo(frame_id="A"), two_frame_graph)

        cloud.resolve_from_config(load_config(path).resolution, executor=PartitionParallelExecutor(n_workers=2))

        np.testing.assert_allclose(cloud.point_data.get_all_points(), [[11.0, 0.0, 0.0]])
