"""
Trash Clean - Logging Configuration
Console logging for the command line entry point.
"""

import logging
import sys
from typing import Optional, TextIO
from functools import lru_cache

from trashclean.core.config import settings

PACKAGE_LOGGER = "trashclean"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Libraries that log every request line at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Only loggers under ``trashclean`` are touched, so an embedding
    application keeps control of the root logger. Calling this again
    replaces the handler rather than adding a second one.

    Args:
        level: Log level name, defaults to ``settings.log_level``
        format_string: Custom format string for log messages
        stream: Output stream, defaults to stderr so command output stays clean

    Returns:
        The package logger
    """
    log_level = (level or settings.log_level).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Unknown log level: {log_level}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_trashclean_console", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, "%Y-%m-%d %H:%M:%S"))
    handler._trashclean_console = True
    logger.addHandler(handler)
    logger.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


@lru_cache()
def get_logger(name: str = PACKAGE_LOGGER) -> logging.Logger:
    """Logger under the package namespace, e.g. ``get_logger("cli")`` -> ``trashclean.cli``."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
