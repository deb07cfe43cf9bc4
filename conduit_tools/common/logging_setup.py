"""
================================================================================
Logging Setup
================================================================================

Centralized Loguru configuration for the harness.

Call `init_logger()` once at process start (pytest_configure and run_tests.py
both do). Subsequent calls are no-ops unless `force=True`.

Settings (from EnvironmentConfig):
    logging.level      DEBUG / INFO / WARNING / ERROR
    logging.format     Loguru format string
    logging.file       Optional log file path (rotated and zipped)
    logging.rotation   e.g. "10 MB"
    logging.retention  e.g. "7 days"

================================================================================
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .environment_config import EnvironmentConfig

DEFAULT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"

_logger_initialized: bool = False


def init_logger(
    config: Optional[EnvironmentConfig] = None,
    level: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Initializes the global Loguru logger with consistent configuration.

    Args:
        config: Resolved configuration. Defaults to EnvironmentConfig.instance().
        level: Log level override. Defaults to logging.level.
        force: Reconfigure even if already initialized.
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    config = config or EnvironmentConfig.instance()
    log_level = (level or config.get("logging.level", "INFO")).upper()
    log_format = config.get("logging.format", DEFAULT_FORMAT)

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    log_file = config.get("logging.file")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=log_level,
            format=log_format.replace("{level: <8}", "{level}"),
            rotation=config.get("logging.rotation", "10 MB"),
            retention=config.get("logging.retention", "7 days"),
            compression="zip",
            enqueue=True,
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")
