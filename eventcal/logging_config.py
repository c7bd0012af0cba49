"""
Logger levels for eventcal.

Every module under the ``eventcal`` package logs through
``logging.getLogger(__name__)``, so the set of eventcal loggers is read
from the package itself rather than kept by hand. Those loggers run at
INFO normally and DEBUG when troubleshooting. A few third-party loggers
that are chatty at DEBUG are held at WARNING.
"""

import logging
import os
import pkgutil
from typing import Optional

import eventcal

_ROOT_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
_NOISY_LOGGERS = ("asyncio", "urllib3.connectionpool")


def eventcal_logger_names() -> list[str]:
    """Names of the package logger and every eventcal module logger.

    Subpackages are imported while walking; plain modules (``__main__``
    included) are only listed.
    """
    prefix = f"{eventcal.__name__}."
    names = [eventcal.__name__]
    names.extend(info.name for info in pkgutil.walk_packages(eventcal.__path__, prefix))
    return names


def _debug_requested(debug_mode: bool, force_debug: Optional[bool]) -> bool:
    if force_debug is not None:
        return force_debug
    if os.getenv("EVENTCAL_DEBUG", "").strip().lower() in ("1", "true", "yes", "on"):
        return True
    return debug_mode


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Set root, eventcal and third-party logger levels.

    Handlers are left alone; ``eventcal._init_logging`` installs the
    console handler.

    Args:
        debug_mode: Whether to enable debug logging for eventcal modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        EVENTCAL_DEBUG: Set to '1', 'true', 'yes' or 'on' to force debug logging
        EVENTCAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    debug = _debug_requested(debug_mode, force_debug)
    eventcal_level = logging.DEBUG if debug else logging.INFO

    requested = os.getenv("EVENTCAL_LOG_LEVEL", "").upper()
    root_level = getattr(logging, requested) if requested in _ROOT_LEVELS else eventcal_level
    logging.getLogger().setLevel(root_level)

    for name in eventcal_logger_names():
        logging.getLogger(name).setLevel(eventcal_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "eventcal loggers at %s, root at %s",
        logging.getLevelName(eventcal_level),
        logging.getLevelName(root_level),
    )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels, covering
        the root logger, every eventcal module and the quieted loggers
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for name in [*eventcal_logger_names(), *_NOISY_LOGGERS]:
        status[name] = logging.getLevelName(logging.getLogger(name).level)
    return status
