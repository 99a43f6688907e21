"""Tests for configuration loading and logging setup."""

import logging

import pytest

from point_cloud_core.utils.config import AppConfig, FilterConfig, OctreeConfig, load_config
from point_cloud_core.utils.logging import configure_from_config, log_duration, setup_logger


def test_default_config_file():
    """The shipped default.yaml matches the model defaults."""
    cfg = load_config(None)

    assert cfg.logging.level == "INFO"
    assert cfg.octree.max_points_per_cell == 100_000
    assert cfg.octree.seed is None
    assert cfg.resolution.target_frame_id is None
    assert cfg.resolution.canonicalize_order is True
    assert cfg.parallel.enabled is True
    assert cfg.filter.is_empty()


def test_missing_file_allowed(tmp_path):
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg == AppConfig()


def test_missing_file_not_allowed(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml", allow_missing=False)


def test_partial_yaml(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(
        "octree:\n"
        "  max_points_per_cell: 5000\n"
        "  seed: 42\n"
        "resolution:\n"
        "  target_frame_id: world\n"
        "filter:\n"
        "  z_min: -10.0\n",
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.octree.max_points_per_cell == 5000
    assert cfg.octree.seed == 42
    assert cfg.resolution.target_frame_id == "world"
    assert cfg.filter.z_min == -10.0
    assert not cfg.filter.is_empty()
    # Untouched sections keep their defaults
    assert cfg.logging.level == "INFO"


def test_invalid_yaml_values(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("octree:\n  max_points_per_cell: 0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(path)


def test_octree_seed_must_be_non_negative():
    with pytest.raises(ValueError):
        OctreeConfig(seed=-1)


def test_filter_config_empty():
    assert FilterConfig().is_empty()
    assert not FilterConfig(beam_length_min=1.0, beam_length_max=2.0).is_empty()


def test_setup_logger_no_duplicate_handlers():
    logger = setup_logger("point_cloud_core.tests.duplicate")
    n_handlers = len(logger.handlers)
    setup_logger("point_cloud_core.tests.duplicate")
    assert len(logger.handlers) == n_handlers


def test_configure_from_config(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    cfg = AppConfig.model_validate({"logging": {"level": "DEBUG", "file": str(log_file)}})

    logger = configure_from_config(cfg.logging, name="point_cloud_core.tests.configured")
    logger.debug("hello")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_log_duration(caplog):
    logger = logging.getLogger("point_cloud_core.tests.duration")
    with caplog.at_level(logging.DEBUG, logger="point_cloud_core.tests.duration"):
        with log_duration(logger, "step"):
            pass
    assert any("step took" in record.getMessage() for record in caplog.records)
