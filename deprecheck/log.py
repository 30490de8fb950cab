"""Logging setup for the deprecheck entry points."""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV_VAR = "DEPRECHECK_LOG_LEVEL"

_ROOT_LOGGER = "deprecheck"
_LOG_FORMAT = "%(levelname)s %(asctime)s [%(filename)s:%(lineno)d] %(message)s"
_LOG_DATE_FORMAT = "%m-%d %H:%M:%S"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``deprecheck`` hierarchy.

    Library modules call this at import time; only entry points attach
    handlers, through :func:`configure_logging`.
    """
    if not name or name == _ROOT_LOGGER:
        return logging.getLogger(_ROOT_LOGGER)
    if name.startswith(f"{_ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stderr handler to the ``deprecheck`` logger.

    Args:
        level: A level name or number. Falls back to ``DEPRECHECK_LOG_LEVEL``
            and then ``WARNING``.

    Returns:
        The configured package logger.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
    else:
        resolved = level

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(resolved)
    logger.propagate = False
    logger.handlers.clear()

    # stdout carries the report, logs go to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATE_FORMAT))
    logger.addHandler(handler)
    return logger
