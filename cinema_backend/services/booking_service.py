"""Booking engine: pricing, sold-out checks, booking, cancellation, waitlist promotion."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from threading import RLock
from typing import Callable, Iterable, Optional, Sequence
from uuid import uuid4

from cinema_backend.domain.constraints import EnginePolicy, validate_engine_policy
from cinema_backend.domain.models import (
    Booking,
    BookingResult,
    BookingStatus,
    CancellationResult,
    CancellationStatus,
    FoodItem,
    Movie,
    PriceQuote,
    ScreenTier,
    Theater,
    WaitlistEntry,
)
from cinema_backend.repository.booking_repository import BookingRepository
from cinema_backend.utils.config import Settings, get_settings
from cinema_backend.utils.logger import get_logger


logger = get_logger(__name__)

MONEY_QUANTUM = Decimal("0.01")

CONFIRMED_MESSAGE = "Booking confirmed! Booking ID: {booking_id}"
WAITLISTED_MESSAGE = "Show is sold out. You have been added to the waiting list."
CANCELLED_MESSAGE = "Booking cancelled successfully"
REASSIGNED_MESSAGE = "Booking cancelled and allocated to waiting list customer"


class BookingError(Exception):
    """Base exception for refused booking engine operations."""


class InvalidSelectionError(BookingError):
    """Raised when a theater, movie, screen tier, or food item is not in the catalog."""


class BookingNotFoundError(BookingError):
    """Raised when a booking id is not currently confirmed."""


class TooLateToCancelError(BookingError):
    """Raised when a cancellation falls inside the pre-show cut-off window."""

    def __init__(self, booking_id: str, minutes_remaining: float, cutoff_minutes: int) -> None:
        self.booking_id = booking_id
        self.minutes_remaining = minutes_remaining
        self.cutoff_minutes = cutoff_minutes
        super().__init__(
            f"Cannot cancel booking less than {cutoff_minutes} minutes before show time"
        )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_money(amount: Decimal) -> Decimal:
    """Quantize to two decimal places, rounding half up."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def compute_price_quote(tier: ScreenTier, food_items: Sequence[FoodItem]) -> PriceQuote:
    """Price a ticket; the tier discount applies to food only, never the base price."""
    food_subtotal = sum((item.price for item in food_items), Decimal("0"))
    food_discount = food_subtotal * tier.food_discount
    total = tier.price + food_subtotal - food_discount
    return PriceQuote(
        base_price=to_money(tier.price),
        food_subtotal=to_money(food_subtotal),
        food_discount=to_money(food_discount),
        total=to_money(total),
    )


def minutes_until_show(show_time: datetime, now: datetime) -> float:
    return (show_time - now).total_seconds() / 60.0


def select_promotion_candidate(entries: Sequence[WaitlistEntry]) -> Optional[WaitlistEntry]:
    """Earliest submission wins; ties go to the earlier waitlist insertion."""
    if not entries:
        return None
    # min() keeps the first of equal keys, so list order breaks ties.
    return min(entries, key=lambda entry: entry.created_at)


class BookingService:
    """Owns booking state transitions for one in-memory catalog.

    ``book`` and ``cancel`` run under one re-entrant lock so the capacity check
    and the list mutation happen as a single unit. Reads take the same lock to
    observe a consistent snapshot.
    """

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository()
        self._clock = clock or _utc_now
        self._policy = EnginePolicy(
            cancellation_cutoff_minutes=self._settings.cancellation_cutoff_minutes,
            booking_id_prefix=self._settings.booking_id_prefix,
            waitlist_id_prefix=self._settings.waitlist_id_prefix,
        )
        validate_engine_policy(self._policy)
        self._lock = RLock()

    @property
    def policy(self) -> EnginePolicy:
        return self._policy

    @property
    def currency_code(self) -> str:
        return self._settings.currency_code

    # --- Catalog read access ---

    def list_theaters(self) -> list[Theater]:
        return self._repository.list_theaters()

    def list_screen_tiers(self) -> list[ScreenTier]:
        return self._repository.list_screen_tiers()

    def list_food_items(self) -> list[FoodItem]:
        return self._repository.list_food_items()

    # --- Lookups ---

    def _require_tier(self, tier_id: str) -> ScreenTier:
        tier = self._repository.get_screen_tier(tier_id)
        if tier is None:
            raise InvalidSelectionError(f"Unknown screen tier '{tier_id}'")
        return tier

    def _require_movie(self, movie_id: int) -> Movie:
        movie = self._repository.get_movie(movie_id)
        if movie is None:
            raise InvalidSelectionError(f"Unknown movie id={movie_id}")
        return movie

    def _require_movie_at_theater(self, theater_id: int, movie_id: int) -> Movie:
        theater = self._repository.get_theater(theater_id)
        if theater is None:
            raise InvalidSelectionError(f"Unknown theater id={theater_id}")
        movie = theater.find_movie(movie_id)
        if movie is None:
            raise InvalidSelectionError(
                f"Movie id={movie_id} is not screened at theater id={theater_id}"
            )
        return movie

    def _require_food_items(self, food_ids: Iterable[str]) -> list[FoodItem]:
        items: list[FoodItem] = []
        for food_id in food_ids:
            item = self._repository.get_food_item(food_id)
            if item is None:
                raise InvalidSelectionError(f"Unknown food item '{food_id}'")
            items.append(item)
        return items

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{uuid4().hex.upper()}"

    # --- Pricing and availability ---

    def quote(self, tier_id: str, food_ids: Sequence[str]) -> PriceQuote:
        tier = self._require_tier(tier_id)
        food_items = self._require_food_items(food_ids)
        return compute_price_quote(tier, food_items)

    def quote_total(self, tier_id: str, food_ids: Sequence[str]) -> Decimal:
        return self.quote(tier_id, food_ids).total

    def _confirmed_count(self, movie_id: int, tier_id: str) -> tuple[ScreenTier, int]:
        self._require_movie(movie_id)
        tier = self._require_tier(tier_id)
        return tier, self._repository.count_bookings(movie_id, tier_id)

    def is_sold_out(self, movie_id: int, tier_id: str) -> bool:
        with self._lock:
            tier, confirmed = self._confirmed_count(movie_id, tier_id)
            return confirmed >= tier.capacity

    def seats_available(self, movie_id: int, tier_id: str) -> int:
        with self._lock:
            tier, confirmed = self._confirmed_count(movie_id, tier_id)
            return max(tier.capacity - confirmed, 0)

    # --- State transitions ---

    def book(
        self,
        theater_id: int,
        movie_id: int,
        tier_id: str,
        food_ids: Sequence[str] = (),
    ) -> BookingResult:
        food_ids = tuple(food_ids)
        with self._lock:
            self._require_movie_at_theater(theater_id, movie_id)
            tier = self._require_tier(tier_id)
            food_items = self._require_food_items(food_ids)
            now = self._clock()

            if self.is_sold_out(movie_id, tier_id):
                entry = WaitlistEntry(
                    entry_id=self._next_id(self._policy.waitlist_id_prefix),
                    theater_id=theater_id,
                    movie_id=movie_id,
                    tier_id=tier_id,
                    food_ids=food_ids,
                    created_at=now,
                )
                self._repository.add_waitlist_entry(entry)
                logger.info(
                    "Booking waitlisted | entry_id=%s | movie_id=%s | tier_id=%s | waitlist_size=%s",
                    entry.entry_id,
                    movie_id,
                    tier_id,
                    len(self._repository.list_waitlist_for(movie_id, tier_id)),
                )
                return BookingResult(
                    status=BookingStatus.WAITLISTED,
                    reference_id=entry.entry_id,
                    message=WAITLISTED_MESSAGE,
                )

            booking = Booking(
                booking_id=self._next_id(self._policy.booking_id_prefix),
                theater_id=theater_id,
                movie_id=movie_id,
                tier_id=tier_id,
                food_ids=food_ids,
                created_at=now,
            )
            total = compute_price_quote(tier, food_items).total
            self._repository.add_booking(booking)
            logger.info(
                "Booking confirmed | booking_id=%s | theater_id=%s | movie_id=%s | tier_id=%s | total=%s",
                booking.booking_id,
                theater_id,
                movie_id,
                tier_id,
                total,
            )
            return BookingResult(
                status=BookingStatus.CONFIRMED,
                reference_id=booking.booking_id,
                message=CONFIRMED_MESSAGE.format(booking_id=booking.booking_id),
                total=total,
            )

    def cancel(self, booking_id: str) -> CancellationResult:
        with self._lock:
            booking = self._repository.get_booking(booking_id)
            if booking is None:
                raise BookingNotFoundError(f"No confirmed booking with id '{booking_id}'")

            movie = self._require_movie(booking.movie_id)
            remaining = minutes_until_show(movie.show_time, self._clock())
            cutoff = self._policy.cancellation_cutoff_minutes
            if remaining < cutoff:
                logger.warning(
                    "Cancellation refused | booking_id=%s | minutes_remaining=%.1f | cutoff=%s",
                    booking_id,
                    remaining,
                    cutoff,
                )
                raise TooLateToCancelError(booking_id, remaining, cutoff)

            self._repository.remove_booking(booking_id)
            logger.info(
                "Booking cancelled | booking_id=%s | movie_id=%s | tier_id=%s",
                booking_id,
                booking.movie_id,
                booking.tier_id,
            )

            promoted = self._promote_from_waitlist(booking.movie_id, booking.tier_id)
            if promoted is None:
                return CancellationResult(
                    status=CancellationStatus.CANCELLED,
                    cancelled_booking_id=booking_id,
                    message=CANCELLED_MESSAGE,
                )
            return CancellationResult(
                status=CancellationStatus.CANCELLED_AND_REASSIGNED,
                cancelled_booking_id=booking_id,
                message=REASSIGNED_MESSAGE,
                promoted_booking_id=promoted.booking_id,
            )

    def _promote_from_waitlist(self, movie_id: int, tier_id: str) -> Optional[Booking]:
        candidate = select_promotion_candidate(
            self._repository.list_waitlist_for(movie_id, tier_id)
        )
        if candidate is None:
            return None
        # Capacity is re-read rather than assumed freed by the caller.
        if self.is_sold_out(movie_id, tier_id):
            logger.warning(
                "Waitlist promotion skipped | entry_id=%s | reason=no_free_slot",
                candidate.entry_id,
            )
            return None

        self._repository.remove_waitlist_entry(candidate.entry_id)
        promoted = Booking(
            booking_id=self._next_id(self._policy.booking_id_prefix),
            theater_id=candidate.theater_id,
            movie_id=candidate.movie_id,
            tier_id=candidate.tier_id,
            food_ids=candidate.food_ids,
            created_at=candidate.created_at,
        )
        self._repository.add_booking(promoted)
        logger.info(
            "Waitlist entry promoted | entry_id=%s | booking_id=%s | movie_id=%s | tier_id=%s",
            candidate.entry_id,
            promoted.booking_id,
            movie_id,
            tier_id,
        )
        return promoted

    # --- Booking state read access ---

    def get_booking(self, booking_id: str) -> Booking:
        with self._lock:
            booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"No confirmed booking with id '{booking_id}'")
        return booking

    def list_bookings(self) -> tuple[Booking, ...]:
        with self._lock:
            return tuple(self._repository.list_bookings())

    def list_waitlist(self) -> tuple[WaitlistEntry, ...]:
        with self._lock:
            return tuple(self._repository.list_waitlist())
