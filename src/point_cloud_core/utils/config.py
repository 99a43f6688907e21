"""
Configuration management for point-cloud-core.

Provides a typed pydantic model and YAML loader with sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Literal, Any, Dict

from pydantic import BaseModel, Field, ValidationError
import yaml


# -----------------------
# Typed config structures
# -----------------------


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    file: Optional[str] = Field(default=None)


class OctreeConfig(BaseModel):
    max_points_per_cell: int = Field(
        default=100_000,
        ge=1,
        description="Maximum number of points stored directly in a single octree cell",
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Seed for the deterministic point sampling (None = 0)",
    )


class ResolutionConfig(BaseModel):
    target_frame_id: Optional[str] = Field(
        default=None,
        description="Frame all points are resolved to (None = keep the current frame)",
    )
    canonicalize_order: bool = Field(
        default=True,
        description="Sort resolved points by timestamp or id to restore a deterministic order",
    )


class ParallelConfig(BaseModel):
    enabled: bool = Field(default=True, description="Process resolution partitions concurrently")
    n_workers: Optional[int] = Field(
        default=None,
        description="Number of worker threads (None = auto-detect: cpu_count - 1)",
    )


class FilterConfig(BaseModel):
    x_min: Optional[float] = Field(default=None)
    x_max: Optional[float] = Field(default=None)
    y_min: Optional[float] = Field(default=None)
    y_max: Optional[float] = Field(default=None)
    z_min: Optional[float] = Field(default=None)
    z_max: Optional[float] = Field(default=None)
    spherical_range_min: Optional[float] = Field(default=None)
    spherical_range_max: Optional[float] = Field(default=None)
    # Beam length filtering requires both bounds and sensor translation columns
    beam_length_min: Optional[float] = Field(default=None)
    beam_length_max: Optional[float] = Field(default=None)

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    octree: OctreeConfig = Field(default_factory=OctreeConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    parallel: ParallelConfig = Field(default_factory=ParallelConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)


# -----------------------
# Loader
# -----------------------


def _project_root() -> Path:
    """
    Resolve the repository root directory.

    File is at: repo_root/src/point_cloud_core/utils/config.py
    parents sequence:
      0 -> .../src/point_cloud_core/utils
      1 -> .../src/point_cloud_core
      2 -> .../src
      3 -> repo_root
    """
    return Path(__file__).resolve().parents[3]


def load_config(path: Optional[str | Path] = None, *, allow_missing: bool = True) -> AppConfig:
    """
    Load configuration from YAML into a typed AppConfig.

    Search order when path is None:
    1) repo_root/config/default.yaml
    2) if missing and allow_missing=True: return default AppConfig()

    Args:
        path: Explicit YAML file path.
        allow_missing: If True, returns defaults when file missing; otherwise raises.

    Returns:
        AppConfig instance
    """
    cfg_path: Path
    if path is None:
        cfg_path = _project_root() / "config" / "default.yaml"
    else:
        cfg_path = Path(path)

    if not cfg_path.exists():
        if allow_missing:
            return AppConfig()
        raise FileNotFoundError(f"Config file not found: {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        # Re-raise with context to help users fix the YAML
        raise ValueError(f"Invalid configuration in {cfg_path}: {e}") from e
