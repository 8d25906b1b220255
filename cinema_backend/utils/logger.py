"""Logging setup for the booking engine.

All engine loggers live under the ``cinema_backend`` namespace. One stdout
handler is attached to that namespace and its level follows
``Settings.log_level``, so an application built with its own settings
logs at that level without touching the global environment.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from cinema_backend.utils.config import Settings, get_settings


LOGGER_NAMESPACE = "cinema_backend"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Attach the stdout handler once and apply the settings' log level.

    Calling again with different settings only changes the level.
    """
    global _handler
    settings = settings or get_settings()
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(settings.log_level.upper())

    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        namespace_logger.addHandler(_handler)
    return namespace_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the engine namespace for ``name``."""
    if name != LOGGER_NAMESPACE and not name.startswith(LOGGER_NAMESPACE + "."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
