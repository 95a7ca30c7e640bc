"""Loguru sink setup shared by the CLI and embedding applications."""

from __future__ import annotations

import sys

from loguru import logger

_DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO", sink=None) -> int:
    """Replace loguru's default handler with a single sink at *level*.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...).
        sink: Destination; defaults to stderr.

    Returns:
        The loguru handler id, for later ``logger.remove()``.
    """
    logger.remove()
    return logger.add(sink or sys.stderr, level=level.upper(), format=_DEFAULT_FORMAT)
