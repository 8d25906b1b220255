"""In-memory repository for catalog reference data, bookings, and the waiting list."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from cinema_backend.domain.constraints import (
    CatalogValidationError,
    validate_food_items,
    validate_screen_tiers,
    validate_theaters,
)
from cinema_backend.domain.models import (
    Booking,
    FoodItem,
    Movie,
    ScreenTier,
    Theater,
    WaitlistEntry,
)
from cinema_backend.utils.logger import get_logger


logger = get_logger(__name__)


DEFAULT_SCREEN_TIERS: tuple[ScreenTier, ...] = (
    ScreenTier("GOLD", "Gold", Decimal("400"), 20, Decimal("0.10")),
    ScreenTier("MAX", "Max", Decimal("300"), 40, Decimal("0.05")),
    ScreenTier("GENERAL", "General", Decimal("200"), 100, Decimal("0")),
)

DEFAULT_FOOD_ITEMS: tuple[FoodItem, ...] = (
    FoodItem("POPCORN", "Popcorn", Decimal("150")),
    FoodItem("SANDWICH", "Sandwich", Decimal("100")),
)

# (theater_id, name, location, [(movie_id, title, show offset from seeding day start)])
_DEFAULT_THEATER_LAYOUT: Sequence[tuple[int, str, str, Sequence[tuple[int, str, timedelta]]]] = (
    (
        1,
        "PVR Cinemas",
        "Mumbai",
        (
            (1, "Inception", timedelta(days=2, hours=14, minutes=30)),
            (2, "The Dark Knight", timedelta(days=1, hours=18)),
        ),
    ),
    (
        2,
        "INOX",
        "Delhi",
        (
            (3, "Interstellar", timedelta(days=1, hours=15)),
            (4, "Dune", timedelta(days=1, hours=20)),
        ),
    ),
)


def build_default_theaters(reference_time: datetime) -> tuple[Theater, ...]:
    """Lay the demo schedule out from the start of ``reference_time``'s day (UTC)."""
    day_start = reference_time.astimezone(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    return tuple(
        Theater(
            theater_id=theater_id,
            name=name,
            location=location,
            movies=tuple(
                Movie(movie_id=movie_id, title=title, show_time=day_start + offset)
                for movie_id, title, offset in movies
            ),
        )
        for theater_id, name, location, movies in _DEFAULT_THEATER_LAYOUT
    )


class BookingRepository:
    """Keeps catalog lookup tables and ordered booking state in process memory.

    The repository does no locking; the booking service serializes access.
    """

    def __init__(self) -> None:
        self._theaters: dict[int, Theater] = {}
        self._movie_to_theater: dict[int, int] = {}
        self._tiers: dict[str, ScreenTier] = {}
        self._food_items: dict[str, FoodItem] = {}
        self._bookings: list[Booking] = []
        self._waitlist: list[WaitlistEntry] = []

    @property
    def catalog_loaded(self) -> bool:
        return bool(self._tiers)

    def load_catalog(
        self,
        *,
        theaters: Iterable[Theater],
        screen_tiers: Iterable[ScreenTier],
        food_items: Iterable[FoodItem],
    ) -> None:
        """Install reference data once; the catalog is read-only afterwards."""
        if self.catalog_loaded:
            raise CatalogValidationError("catalog is already loaded")

        theaters = tuple(theaters)
        screen_tiers = tuple(screen_tiers)
        food_items = tuple(food_items)
        validate_theaters(theaters)
        validate_screen_tiers(screen_tiers)
        validate_food_items(food_items)

        self._theaters = {theater.theater_id: theater for theater in theaters}
        self._movie_to_theater = {
            movie.movie_id: theater.theater_id
            for theater in theaters
            for movie in theater.movies
        }
        self._tiers = {tier.tier_id: tier for tier in screen_tiers}
        self._food_items = {item.food_id: item for item in food_items}
        logger.info(
            "Catalog loaded | theaters=%s | movies=%s | screen_tiers=%s | food_items=%s",
            len(self._theaters),
            len(self._movie_to_theater),
            len(self._tiers),
            len(self._food_items),
        )

    def seed_default_catalog_if_empty(self, reference_time: Optional[datetime] = None) -> bool:
        """Load the demo catalog unless one is already present."""
        if self.catalog_loaded:
            logger.info("Catalog seed skipped | reason=already_loaded")
            return False
        self.load_catalog(
            theaters=build_default_theaters(reference_time or datetime.now(timezone.utc)),
            screen_tiers=DEFAULT_SCREEN_TIERS,
            food_items=DEFAULT_FOOD_ITEMS,
        )
        return True

    # --- Catalog lookups ---

    def list_theaters(self) -> list[Theater]:
        return list(self._theaters.values())

    def list_screen_tiers(self) -> list[ScreenTier]:
        return list(self._tiers.values())

    def list_food_items(self) -> list[FoodItem]:
        return list(self._food_items.values())

    def get_theater(self, theater_id: int) -> Optional[Theater]:
        return self._theaters.get(theater_id)

    def get_movie(self, movie_id: int) -> Optional[Movie]:
        theater_id = self._movie_to_theater.get(movie_id)
        if theater_id is None:
            return None
        return self._theaters[theater_id].find_movie(movie_id)

    def get_screen_tier(self, tier_id: str) -> Optional[ScreenTier]:
        return self._tiers.get(tier_id)

    def get_food_item(self, food_id: str) -> Optional[FoodItem]:
        return self._food_items.get(food_id)

    # --- Confirmed bookings ---

    def add_booking(self, booking: Booking) -> None:
        self._bookings.append(booking)

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        for booking in self._bookings:
            if booking.booking_id == booking_id:
                return booking
        return None

    def remove_booking(self, booking_id: str) -> Optional[Booking]:
        for index, booking in enumerate(self._bookings):
            if booking.booking_id == booking_id:
                return self._bookings.pop(index)
        return None

    def list_bookings(self) -> list[Booking]:
        return list(self._bookings)

    def count_bookings(self, movie_id: int, tier_id: str) -> int:
        return sum(
            1
            for booking in self._bookings
            if booking.movie_id == movie_id and booking.tier_id == tier_id
        )

    # --- Waiting list ---

    def add_waitlist_entry(self, entry: WaitlistEntry) -> None:
        self._waitlist.append(entry)

    def remove_waitlist_entry(self, entry_id: str) -> Optional[WaitlistEntry]:
        for index, entry in enumerate(self._waitlist):
            if entry.entry_id == entry_id:
                return self._waitlist.pop(index)
        return None

    def list_waitlist(self) -> list[WaitlistEntry]:
        return list(self._waitlist)

    def list_waitlist_for(self, movie_id: int, tier_id: str) -> list[WaitlistEntry]:
        """Matching entries in insertion order."""
        return [
            entry
            for entry in self._waitlist
            if entry.movie_id == movie_id and entry.tier_id == tier_id
        ]
