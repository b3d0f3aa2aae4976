"""Logger configuration for pipefold."""

from __future__ import annotations

import logging
import os
import sys
from typing import Final

__all__ = ["setup_logger"]

_DEFAULT_LEVEL: Final[str] = os.environ.get("PIPEFOLD_LOG_LEVEL", "WARNING")


def setup_logger(
    name: str = "pipefold",
    level: str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Args:
        name: Logger name; child modules log under ``pipefold.<module>``
        level: Log level name, defaults to ``PIPEFOLD_LOG_LEVEL`` or WARNING
        format_string: Custom format string

    Returns:
        Configured logger instance
    """
    level = level or _DEFAULT_LEVEL
    format_string = format_string or "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logger = logging.getLogger(name)

    # Only attach a stream handler once
    if not any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(fmt=format_string, datefmt="%Y-%m-%d %H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    return logger
