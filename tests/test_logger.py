from __future__ import annotations

import logging
from dataclasses import replace

from app import create_app
from cinema_backend.utils.config import get_settings
from cinema_backend.utils.logger import LOGGER_NAMESPACE, configure_logging, get_logger


def _stdout_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if isinstance(handler, logging.StreamHandler)]


def test_configure_logging_applies_settings_level_without_stacking_handlers():
    settings = get_settings()

    namespace_logger = configure_logging(replace(settings, log_level="debug"))
    handlers = _stdout_handlers(namespace_logger)
    configure_logging(replace(settings, log_level="WARNING"))

    assert namespace_logger.name == LOGGER_NAMESPACE
    assert namespace_logger.level == logging.WARNING
    assert _stdout_handlers(namespace_logger) == handlers
    assert len(handlers) == 1


def test_get_logger_places_module_loggers_under_namespace():
    assert get_logger("app").name == "cinema_backend.app"
    assert get_logger("cinema_backend.services.booking_service").name == (
        "cinema_backend.services.booking_service"
    )
    assert get_logger(LOGGER_NAMESPACE).name == LOGGER_NAMESPACE


def test_create_app_uses_the_settings_it_was_given():
    create_app(replace(get_settings(), log_level="ERROR"))
    assert logging.getLogger(LOGGER_NAMESPACE).level == logging.ERROR

    create_app(replace(get_settings(), log_level="INFO"))
    assert logging.getLogger(LOGGER_NAMESPACE).level == logging.INFO
