"""Loguru sink configuration for the API and CLI entry points."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"


def configure_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Replace the default sink with a stderr sink (and optional rotating file)."""
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            rotation="10 MB",
            retention="14 days",
            enqueue=True,
        )
