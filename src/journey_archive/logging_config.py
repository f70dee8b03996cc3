"""Logging configuration for the journey archive."""

import sys
from pathlib import Path

from loguru import logger

_VERBOSE_FORMAT = "{time:HH:mm:ss} {level.icon} {name}:{line} {message}"


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> None:
    """Route loguru output to stderr, and optionally to a rotating file.

    The MCP server speaks over stdout, so nothing here may write there.
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    fmt = _VERBOSE_FORMAT if verbose else "{level.icon} {message}"
    logger.add(sys.stderr, level=level, format=fmt)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level="DEBUG", rotation="5 MB", retention=3)
