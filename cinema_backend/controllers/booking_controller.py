"""HTTP controller layer for catalog, pricing, booking, and cancellation."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from cinema_backend.controllers.dependencies import get_booking_service
from cinema_backend.domain.models import Booking, WaitlistEntry
from cinema_backend.services.booking_service import (
    BookingNotFoundError,
    BookingService,
    InvalidSelectionError,
    TooLateToCancelError,
    to_money,
)
from cinema_backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["booking"])


def _money(amount: Decimal) -> float:
    # JSON numbers drop trailing zeros, so 442.50 is sent as 442.5.
    return float(to_money(amount))


class ScreenTierResponse(BaseModel):
    tier_id: str
    name: str
    price: float = Field(ge=0.0)
    capacity: int = Field(gt=0)
    food_discount: float = Field(ge=0.0, le=1.0)


class FoodItemResponse(BaseModel):
    food_id: str
    name: str
    price: float = Field(ge=0.0)


class MovieResponse(BaseModel):
    movie_id: int
    title: str
    show_time: datetime


class TheaterResponse(BaseModel):
    theater_id: int
    name: str
    location: str
    movies: list[MovieResponse]


class CatalogResponse(BaseModel):
    currency: str
    theaters: list[TheaterResponse]
    screen_tiers: list[ScreenTierResponse]
    food_items: list[FoodItemResponse]


class FoodSelection(BaseModel):
    food_ids: list[str] = Field(default_factory=list)

    @field_validator("food_ids")
    @classmethod
    def validate_food_ids(cls, value: list[str]) -> list[str]:
        for food_id in value:
            if not food_id.strip():
                raise ValueError("food_ids values must be non-empty")
        return value


class QuoteRequest(FoodSelection):
    tier_id: str = Field(min_length=1)


class QuoteResponse(BaseModel):
    currency: str
    base_price: float = Field(ge=0.0)
    food_subtotal: float = Field(ge=0.0)
    food_discount: float = Field(ge=0.0)
    total: float = Field(ge=0.0)


class AvailabilityResponse(BaseModel):
    movie_id: int
    tier_id: str
    sold_out: bool
    seats_available: int = Field(ge=0)


class BookRequest(FoodSelection):
    theater_id: int
    movie_id: int
    tier_id: str = Field(min_length=1)


class BookResponse(BaseModel):
    status: str
    reference_id: str
    message: str
    total: float | None = Field(default=None, ge=0.0)


class BookingResponse(BaseModel):
    booking_id: str
    theater_id: int
    movie_id: int
    tier_id: str
    food_ids: list[str]
    created_at: datetime


class WaitlistEntryResponse(BaseModel):
    entry_id: str
    theater_id: int
    movie_id: int
    tier_id: str
    food_ids: list[str]
    created_at: datetime


class CancelResponse(BaseModel):
    status: str
    cancelled_booking_id: str
    promoted_booking_id: str | None = None
    message: str


def _to_booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        booking_id=booking.booking_id,
        theater_id=booking.theater_id,
        movie_id=booking.movie_id,
        tier_id=booking.tier_id,
        food_ids=list(booking.food_ids),
        created_at=booking.created_at,
    )


def _to_waitlist_response(entry: WaitlistEntry) -> WaitlistEntryResponse:
    return WaitlistEntryResponse(
        entry_id=entry.entry_id,
        theater_id=entry.theater_id,
        movie_id=entry.movie_id,
        tier_id=entry.tier_id,
        food_ids=list(entry.food_ids),
        created_at=entry.created_at,
    )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/catalog", response_model=CatalogResponse, status_code=status.HTTP_200_OK)
async def get_catalog(
    service: BookingService = Depends(get_booking_service),
) -> CatalogResponse:
    return CatalogResponse(
        currency=service.currency_code,
        theaters=[
            TheaterResponse(
                theater_id=theater.theater_id,
                name=theater.name,
                location=theater.location,
                movies=[
                    MovieResponse(
                        movie_id=movie.movie_id,
                        title=movie.title,
                        show_time=movie.show_time,
                    )
                    for movie in theater.movies
                ],
            )
            for theater in service.list_theaters()
        ],
        screen_tiers=[
            ScreenTierResponse(
                tier_id=tier.tier_id,
                name=tier.name,
                price=_money(tier.price),
                capacity=tier.capacity,
                food_discount=float(tier.food_discount),
            )
            for tier in service.list_screen_tiers()
        ],
        food_items=[
            FoodItemResponse(food_id=item.food_id, name=item.name, price=_money(item.price))
            for item in service.list_food_items()
        ],
    )


@router.post("/quote", response_model=QuoteResponse, status_code=status.HTTP_200_OK)
async def quote(
    payload: QuoteRequest,
    service: BookingService = Depends(get_booking_service),
) -> QuoteResponse:
    try:
        result = service.quote(payload.tier_id, payload.food_ids)
        return QuoteResponse(
            currency=service.currency_code,
            base_price=_money(result.base_price),
            food_subtotal=_money(result.food_subtotal),
            food_discount=_money(result.food_discount),
            total=_money(result.total),
        )
    except InvalidSelectionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/availability/{movie_id}/{tier_id}",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
async def availability(
    movie_id: int,
    tier_id: str,
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityResponse:
    try:
        # One read so both fields come from the same snapshot.
        seats = service.seats_available(movie_id, tier_id)
        return AvailabilityResponse(
            movie_id=movie_id,
            tier_id=tier_id,
            sold_out=seats == 0,
            seats_available=seats,
        )
    except InvalidSelectionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.post("/bookings", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookResponse:
    """Confirm a seat, or join the waiting list when the tier is sold out."""
    try:
        result = service.book(
            theater_id=payload.theater_id,
            movie_id=payload.movie_id,
            tier_id=payload.tier_id,
            food_ids=payload.food_ids,
        )
        return BookResponse(
            status=result.status.value,
            reference_id=result.reference_id,
            message=result.message,
            total=_money(result.total) if result.total is not None else None,
        )
    except InvalidSelectionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected booking failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking",
        ) from exc


@router.get("/bookings", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
async def list_bookings(
    service: BookingService = Depends(get_booking_service),
) -> list[BookingResponse]:
    return [_to_booking_response(booking) for booking in service.list_bookings()]


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return _to_booking_response(service.get_booking(booking_id))
    except BookingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.delete(
    "/bookings/{booking_id}",
    response_model=CancelResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
) -> CancelResponse:
    """Cancel a confirmed booking and hand the seat to the next waitlisted request."""
    try:
        result = service.cancel(booking_id)
        return CancelResponse(
            status=result.status.value,
            cancelled_booking_id=result.cancelled_booking_id,
            promoted_booking_id=result.promoted_booking_id,
            message=result.message,
        )
    except BookingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except TooLateToCancelError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - unexpected failure
        logger.exception("Unexpected cancellation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel booking",
        ) from exc


@router.get(
    "/waitlist",
    response_model=list[WaitlistEntryResponse],
    status_code=status.HTTP_200_OK,
)
async def list_waitlist(
    service: BookingService = Depends(get_booking_service),
) -> list[WaitlistEntryResponse]:
    return [_to_waitlist_response(entry) for entry in service.list_waitlist()]
