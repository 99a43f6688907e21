"""
Logging Utilities

This module sets up logging for the project and includes a helper to
log the wall-clock duration of a processing step.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional
from contextlib import contextmanager


def setup_logger(name: str,
                 level: int = logging.INFO,
                 log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__)
        level: Logging level (default: logging.INFO)
        log_file: Optional log file path. If provided, logs will be written to this file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers
    if logger.handlers:
        return logger

    logger.setLevel(level)

    console_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def configure_from_config(logging_config, name: str = "point_cloud_core") -> logging.Logger:
    """
    Configure the package logger from a LoggingConfig section.

    Args:
        logging_config: LoggingConfig instance (level name and optional file)
        name: Logger name to configure (default: package root logger)

    Returns:
        Configured logger instance
    """
    level = getattr(logging, logging_config.level)
    logger = setup_logger(name, level=level, log_file=logging_config.file)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


@contextmanager
def log_duration(logger: logging.Logger, label: str, level: int = logging.DEBUG):
    """
    Context manager that logs how long the enclosed block took.

    Args:
        logger: Target logger
        label: Short description of the step
        level: Logging level to use (default: DEBUG)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start_time
        logger.log(level, f"{label} took {elapsed:.3f}s")
