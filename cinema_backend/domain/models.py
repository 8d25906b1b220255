"""Domain models for the cinema catalog, bookings, and the waiting list."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ScreenTier:
    tier_id: str
    name: str
    price: Decimal
    capacity: int
    food_discount: Decimal


@dataclass(frozen=True)
class FoodItem:
    food_id: str
    name: str
    price: Decimal


@dataclass(frozen=True)
class Movie:
    movie_id: int
    title: str
    show_time: datetime


@dataclass(frozen=True)
class Theater:
    theater_id: int
    name: str
    location: str
    movies: tuple[Movie, ...]

    def find_movie(self, movie_id: int) -> Optional[Movie]:
        for movie in self.movies:
            if movie.movie_id == movie_id:
                return movie
        return None


@dataclass(frozen=True)
class Booking:
    booking_id: str
    theater_id: int
    movie_id: int
    tier_id: str
    food_ids: tuple[str, ...]
    created_at: datetime


@dataclass(frozen=True)
class WaitlistEntry:
    entry_id: str
    theater_id: int
    movie_id: int
    tier_id: str
    food_ids: tuple[str, ...]
    created_at: datetime


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"


class CancellationStatus(str, Enum):
    CANCELLED = "CANCELLED"
    CANCELLED_AND_REASSIGNED = "CANCELLED_AND_REASSIGNED"


@dataclass(frozen=True)
class PriceQuote:
    """Price breakdown; ``total`` is what ``quote_total`` returns."""

    base_price: Decimal
    food_subtotal: Decimal
    food_discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class BookingResult:
    status: BookingStatus
    reference_id: str
    message: str
    total: Optional[Decimal] = None


@dataclass(frozen=True)
class CancellationResult:
    status: CancellationStatus
    cancelled_booking_id: str
    message: str
    promoted_booking_id: Optional[str] = None
