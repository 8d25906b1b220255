from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cinema_backend.domain.models import (
    BookingStatus,
    FoodItem,
    Movie,
    ScreenTier,
    Theater,
)
from cinema_backend.repository.booking_repository import (
    DEFAULT_FOOD_ITEMS,
    DEFAULT_SCREEN_TIERS,
    BookingRepository,
)
from cinema_backend.services.booking_service import BookingService, InvalidSelectionError


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
SMALL_TIER = ScreenTier("SMALL", "Screening Room", Decimal("250"), 3, Decimal("0.20"))


def _build_service() -> tuple[BookingService, BookingRepository]:
    repository = BookingRepository()
    repository.load_catalog(
        theaters=[
            Theater(
                1,
                "PVR Cinemas",
                "Mumbai",
                (
                    Movie(1, "Inception", NOW + timedelta(days=1)),
                    Movie(2, "The Dark Knight", NOW + timedelta(days=1, hours=3)),
                ),
            ),
            Theater(2, "INOX", "Delhi", (Movie(3, "Interstellar", NOW + timedelta(days=2)),)),
        ],
        screen_tiers=list(DEFAULT_SCREEN_TIERS) + [SMALL_TIER],
        food_items=list(DEFAULT_FOOD_ITEMS) + [FoodItem("COLA", "Cola", Decimal("80"))],
    )
    return BookingService(repository=repository, clock=lambda: NOW), repository


def test_book_confirms_and_returns_quoted_total():
    service, repository = _build_service()

    result = service.book(1, 1, "GOLD", ["POPCORN", "SANDWICH"])

    assert result.status is BookingStatus.CONFIRMED
    assert result.total == Decimal("625.00")
    assert result.message == f"Booking confirmed! Booking ID: {result.reference_id}"
    booking = service.get_booking(result.reference_id)
    assert booking.theater_id == 1
    assert booking.movie_id == 1
    assert booking.tier_id == "GOLD"
    assert sorted(booking.food_ids) == ["POPCORN", "SANDWICH"]
    assert booking.created_at == NOW
    assert repository.list_waitlist() == []


def test_bookings_up_to_capacity_confirm_and_the_next_is_waitlisted():
    service, repository = _build_service()

    results = [service.book(1, 1, "SMALL") for _ in range(SMALL_TIER.capacity)]
    assert all(result.status is BookingStatus.CONFIRMED for result in results)
    assert service.is_sold_out(1, "SMALL") is True
    assert service.seats_available(1, "SMALL") == 0

    overflow = service.book(1, 1, "SMALL", ["COLA"])

    assert overflow.status is BookingStatus.WAITLISTED
    assert overflow.total is None
    assert overflow.message == "Show is sold out. You have been added to the waiting list."
    assert repository.count_bookings(1, "SMALL") == SMALL_TIER.capacity
    waitlist = service.list_waitlist()
    assert [entry.entry_id for entry in waitlist] == [overflow.reference_id]
    assert waitlist[0].food_ids == ("COLA",)


def test_confirmed_count_never_exceeds_capacity():
    service, repository = _build_service()

    for _ in range(SMALL_TIER.capacity * 3):
        service.book(1, 2, "SMALL")
        assert repository.count_bookings(2, "SMALL") <= SMALL_TIER.capacity

    assert len(service.list_waitlist()) == SMALL_TIER.capacity * 2


def test_capacity_is_tracked_per_movie_and_tier():
    service, _ = _build_service()
    for _ in range(SMALL_TIER.capacity):
        service.book(1, 1, "SMALL")

    assert service.is_sold_out(1, "SMALL") is True
    assert service.is_sold_out(1, "GOLD") is False
    assert service.is_sold_out(2, "SMALL") is False
    assert service.book(1, 2, "SMALL").status is BookingStatus.CONFIRMED
    assert service.seats_available(1, "GOLD") == 20


def test_booking_and_waitlist_ids_are_unique():
    service, _ = _build_service()
    ids = [service.book(1, 1, "SMALL").reference_id for _ in range(10)]

    assert len(set(ids)) == len(ids)
    assert all(reference_id.startswith("BK-") for reference_id in ids[:3])
    assert all(reference_id.startswith("WL-") for reference_id in ids[3:])


def test_ids_stay_unique_across_book_and_cancel_cycles():
    service, repository = _build_service()
    issued = []
    for _ in range(200):
        booking_id = service.book(1, 1, "SMALL").reference_id
        issued.append(booking_id)
        service.cancel(booking_id)

    assert len(set(issued)) == len(issued)
    assert all(re.fullmatch(r"BK-[0-9A-F]{32}", booking_id) for booking_id in issued)
    assert repository.list_bookings() == []


@pytest.mark.parametrize(
    ("theater_id", "movie_id", "tier_id", "food_ids", "fragment"),
    [
        (99, 1, "GOLD", [], "theater"),
        (1, 99, "GOLD", [], "not screened"),
        (2, 1, "GOLD", [], "not screened"),
        (1, 1, "IMAX", [], "screen tier"),
        (1, 1, "GOLD", ["NACHOS"], "food item"),
    ],
)
def test_invalid_selection_leaves_state_unchanged(theater_id, movie_id, tier_id, food_ids, fragment):
    service, _ = _build_service()
    service.book(1, 1, "GOLD")
    before_bookings = service.list_bookings()
    before_waitlist = service.list_waitlist()

    with pytest.raises(InvalidSelectionError, match=fragment):
        service.book(theater_id, movie_id, tier_id, food_ids)

    assert service.list_bookings() == before_bookings
    assert service.list_waitlist() == before_waitlist


def test_is_sold_out_rejects_unknown_references():
    service, _ = _build_service()
    with pytest.raises(InvalidSelectionError):
        service.is_sold_out(99, "GOLD")
    with pytest.raises(InvalidSelectionError):
        service.is_sold_out(1, "IMAX")


def test_sold_out_check_observes_current_bookings():
    service, _ = _build_service()
    assert service.is_sold_out(3, "SMALL") is False
    for _ in range(SMALL_TIER.capacity - 1):
        service.book(2, 3, "SMALL")
    assert service.is_sold_out(3, "SMALL") is False
    assert service.seats_available(3, "SMALL") == 1
    service.book(2, 3, "SMALL")
    assert service.is_sold_out(3, "SMALL") is True


def test_catalog_read_access():
    service, _ = _build_service()

    assert [theater.name for theater in service.list_theaters()] == ["PVR Cinemas", "INOX"]
    assert [tier.tier_id for tier in service.list_screen_tiers()] == [
        "GOLD",
        "MAX",
        "GENERAL",
        "SMALL",
    ]
    assert {item.food_id for item in service.list_food_items()} == {"POPCORN", "SANDWICH", "COLA"}


def test_concurrent_bookings_never_exceed_capacity():
    service, repository = _build_service()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: service.book(1, 1, "SMALL"), range(40)))

    confirmed = [result for result in results if result.status is BookingStatus.CONFIRMED]
    assert len(confirmed) == SMALL_TIER.capacity
    assert repository.count_bookings(1, "SMALL") == SMALL_TIER.capacity
    assert len(service.list_waitlist()) == 40 - SMALL_TIER.capacity
