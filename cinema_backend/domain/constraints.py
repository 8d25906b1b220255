"""Domain-level validation rules for catalog data and engine policy."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from cinema_backend.domain.models import FoodItem, ScreenTier, Theater


class CatalogValidationError(ValueError):
    """Raised when reference data supplied at construction is malformed."""


@dataclass(frozen=True)
class EnginePolicy:
    cancellation_cutoff_minutes: int
    booking_id_prefix: str
    waitlist_id_prefix: str


def validate_engine_policy(policy: EnginePolicy) -> None:
    if policy.cancellation_cutoff_minutes < 0:
        raise ValueError("cancellation_cutoff_minutes must be >= 0")
    if not policy.booking_id_prefix.strip():
        raise ValueError("booking_id_prefix must be non-empty")
    if not policy.waitlist_id_prefix.strip():
        raise ValueError("waitlist_id_prefix must be non-empty")
    if policy.booking_id_prefix == policy.waitlist_id_prefix:
        raise ValueError("booking_id_prefix and waitlist_id_prefix must differ")


def _duplicates(values: Iterable[object]) -> list[object]:
    return sorted(
        (value for value, count in Counter(values).items() if count > 1),
        key=str,
    )


def validate_screen_tiers(tiers: Iterable[ScreenTier]) -> None:
    tiers = list(tiers)
    if not tiers:
        raise CatalogValidationError("at least one screen tier is required")
    duplicated = _duplicates(tier.tier_id for tier in tiers)
    if duplicated:
        raise CatalogValidationError(f"duplicate screen tier ids: {duplicated}")
    for tier in tiers:
        if tier.price < 0:
            raise CatalogValidationError(f"screen tier {tier.tier_id} price must be >= 0")
        if tier.capacity <= 0:
            raise CatalogValidationError(f"screen tier {tier.tier_id} capacity must be > 0")
        if not Decimal("0") <= tier.food_discount <= Decimal("1"):
            raise CatalogValidationError(
                f"screen tier {tier.tier_id} food_discount must be between 0 and 1"
            )


def validate_food_items(items: Iterable[FoodItem]) -> None:
    items = list(items)
    duplicated = _duplicates(item.food_id for item in items)
    if duplicated:
        raise CatalogValidationError(f"duplicate food item ids: {duplicated}")
    for item in items:
        if item.price < 0:
            raise CatalogValidationError(f"food item {item.food_id} price must be >= 0")


def validate_theaters(theaters: Iterable[Theater]) -> None:
    theaters = list(theaters)
    duplicated_theaters = _duplicates(theater.theater_id for theater in theaters)
    if duplicated_theaters:
        raise CatalogValidationError(f"duplicate theater ids: {duplicated_theaters}")
    # A movie belongs to exactly one theater.
    duplicated_movies = _duplicates(
        movie.movie_id for theater in theaters for movie in theater.movies
    )
    if duplicated_movies:
        raise CatalogValidationError(f"duplicate movie ids: {duplicated_movies}")
    for theater in theaters:
        for movie in theater.movies:
            if movie.show_time.tzinfo is None:
                raise CatalogValidationError(
                    f"movie {movie.movie_id} show_time must be timezone-aware"
                )
