"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(level: str = "INFO", log_dir: Optional[str | Path] = None) -> None:
    """Install the console sink and, optionally, a rotating file sink.

    Args:
        level: Minimum level for the console sink
        log_dir: Directory for ``camera_direction_{time}.log`` (DEBUG level), or None
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_CONSOLE_FORMAT, colorize=True)

    if log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / "camera_direction_{time}.log",
            rotation="50 MB",
            retention="10 days",
            level="DEBUG",
            format=_FILE_FORMAT,
            enqueue=True,  # Arbitration workers log from their own threads
        )


__all__ = ["logger", "configure_logging"]
