from __future__ import annotations

"""radarfetch.utils.log – colourised logger helper"""

import logging
from typing import Optional, cast

import colorlog

from radarfetch.utils import config

# Map level names to logging constants
LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _get_level_from_config() -> int:
    """Gets the logging level from config, defaulting to INFO.

    An invalid config file also gives INFO here; the command line reports
    the error itself when it loads the settings for the run.
    """
    try:
        level_name = config.get_logging_level().upper()
    except ValueError:
        return logging.INFO
    return LOG_LEVEL_MAP.get(level_name, logging.INFO)


_LEVEL = _get_level_from_config()

_handler: Optional[logging.Handler] = None


def _build_handler() -> logging.Handler:
    handler = cast(logging.Handler, colorlog.StreamHandler())
    handler.setFormatter(
        colorlog.ColoredFormatter(
            fmt="%(log_color)s[%(levelname).1s] %(name)s: %(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "white",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bold",
            },
        )
    )
    return handler


def get_logger(name: str | None = None) -> logging.Logger:
    """Gets a logger instance wired to the shared coloured handler."""
    global _handler

    logger = logging.getLogger(name)
    logger.setLevel(_LEVEL)

    if _handler is None:
        _handler = _build_handler()
        _handler.setLevel(_LEVEL)

    if _handler not in logger.handlers:
        logger.addHandler(_handler)

    return logger


def set_global_log_level(level: int) -> None:
    """
    Set the level on the shared handler and every logger created through get_logger.
    """
    global _LEVEL
    _LEVEL = level

    if _handler:
        _handler.setLevel(level)

    for name in list(logging.Logger.manager.loggerDict):
        logger = logging.getLogger(name)
        if _handler is not None and _handler in logger.handlers:
            logger.setLevel(level)

    logging.getLogger(__name__).debug("Log level set to %s", logging.getLevelName(level))


def set_level(debug_mode: bool) -> None:
    """Set the global logging level based on debug mode."""
    set_global_log_level(logging.DEBUG if debug_mode else logging.INFO)
