"""
Logging setup for the affinity propagation package.

Modules obtain their logger with ``get_logger(__name__)``. Applications
call ``setup_logging()`` once to attach a console handler to the package
logger.
"""

import logging
import os
import sys
from typing import Optional, TextIO, Union

PACKAGE_LOGGER_NAME = "affinity_propagation"

_DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_HANDLER_NAME = "affinity_propagation.console"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for *name* (usually ``__name__``)."""
    return logging.getLogger(name)


def setup_logging(
    level: Optional[Union[int, str]] = None,
    fmt: str = _DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configure the package logger with a single console handler.

    Args:
        level: Logging level name or number. Falls back to ``AP_LOG_LEVEL``
            and then to ``INFO``.
        fmt: Format string for the handler.
        stream: Output stream (defaults to ``sys.stderr``).

    Returns:
        The configured package logger.

    Raises:
        ValueError: If *level* is not a known logging level name
    """
    if level is None:
        level = os.getenv("AP_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level)

    # Re-running setup replaces the handler instead of stacking another one
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    return logger
