"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    host: str
    port: int
    cancellation_cutoff_minutes: int
    currency_code: str
    booking_id_prefix: str
    waitlist_id_prefix: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; call ``get_settings.cache_clear()`` to reload."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Cinema Booking Engine"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_env_int("PORT", 8000),
        cancellation_cutoff_minutes=_env_int("BOOKING_CANCELLATION_CUTOFF_MINUTES", 30),
        currency_code=os.getenv("CURRENCY_CODE", "INR"),
        booking_id_prefix=os.getenv("BOOKING_ID_PREFIX", "BK"),
        waitlist_id_prefix=os.getenv("WAITLIST_ID_PREFIX", "WL"),
    )
