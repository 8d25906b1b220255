from __future__ import annotations

import pytest

from cinema_backend.services.booking_service import BookingService
from cinema_backend.utils.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_apply_without_environment(monkeypatch):
    monkeypatch.delenv("BOOKING_CANCELLATION_CUTOFF_MINUTES", raising=False)
    monkeypatch.delenv("BOOKING_ID_PREFIX", raising=False)

    settings = get_settings()

    assert settings.cancellation_cutoff_minutes == 30
    assert settings.booking_id_prefix == "BK"
    assert settings.waitlist_id_prefix == "WL"


def test_environment_overrides_are_read(monkeypatch):
    monkeypatch.setenv("BOOKING_CANCELLATION_CUTOFF_MINUTES", "45")
    monkeypatch.setenv("APP_NAME", "Multiplex")

    settings = get_settings()

    assert settings.cancellation_cutoff_minutes == 45
    assert settings.app_name == "Multiplex"


def test_settings_are_cached(monkeypatch):
    first = get_settings()
    monkeypatch.setenv("APP_NAME", "Changed")
    assert get_settings() is first


def test_non_integer_cutoff_raises(monkeypatch):
    monkeypatch.setenv("BOOKING_CANCELLATION_CUTOFF_MINUTES", "half an hour")
    with pytest.raises(ValueError, match="BOOKING_CANCELLATION_CUTOFF_MINUTES"):
        get_settings()


def test_service_rejects_invalid_policy_from_settings(monkeypatch):
    monkeypatch.setenv("BOOKING_CANCELLATION_CUTOFF_MINUTES", "-5")
    with pytest.raises(ValueError):
        BookingService(settings=get_settings())
