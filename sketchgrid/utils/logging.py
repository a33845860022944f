"""Logging helpers for SketchGrid."""

import logging
from typing import Optional, Union

LOGGER_NAME = "sketchgrid"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LOGGER: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Return the package logger, attaching a stream handler on first use."""

    global _LOGGER
    if _LOGGER is None:
        _LOGGER = logging.getLogger(LOGGER_NAME)
        if not _LOGGER.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            _LOGGER.addHandler(handler)
        _LOGGER.setLevel(logging.INFO)
    return _LOGGER


def set_level(level: Union[int, str]) -> None:
    """Set the package log level from a number or a name like ``"DEBUG"``."""
    logger = get_logger()
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        if not isinstance(resolved, int):
            logger.warning("Unknown log level %r; keeping %s", level, logging.getLevelName(logger.level))
            return
        level = resolved
    logger.setLevel(level)
