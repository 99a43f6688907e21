"""
Utility Functions Module

This module provides common utilities used across the point cloud core.
- Logging setup and step timing
- Typed configuration loading
"""

from .logging import setup_logger, configure_from_config, log_duration
from .config import AppConfig, load_config

__all__ = [
    "setup_logger",
    "configure_from_config",
    "log_duration",
    "AppConfig",
    "load_config",
]
