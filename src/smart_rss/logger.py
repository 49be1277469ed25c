"""
Logging configuration for Smart RSS.

Uses loguru for console output and an optional rotating log file.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

from smart_rss.config import LoggingConfig, get_config


def setup_logger(level: Optional[str] = None, log_config: Optional[LoggingConfig] = None) -> None:
    """Replace loguru's handlers with the ones the logging section asks for.

    Args:
        level: Minimum level for every sink; overrides ``log_config.level``
            (the CLI passes DEBUG for ``--verbose``)
        log_config: Logging section to use instead of the global config
    """
    log_config = log_config or get_config().logging
    level = level or log_config.level
    common = {"format": log_config.format, "level": level, "backtrace": True, "diagnose": False}

    _logger.remove()

    if log_config.console_enabled:
        _logger.add(sys.stderr, colorize=True, **common)

    if log_config.file_enabled:
        Path(log_config.file_path).parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            log_config.file_path,
            rotation=log_config.rotation,
            retention=log_config.retention,
            compression="zip",
            encoding="utf-8",
            enqueue=True,  # fetch workers log from several threads
            **common,
        )


def get_logger(name: Optional[str] = None):
    """Return the shared logger, bound to ``name`` when one is given."""
    if name:
        return _logger.bind(name=name)
    return _logger


__all__ = ["setup_logger", "get_logger"]
