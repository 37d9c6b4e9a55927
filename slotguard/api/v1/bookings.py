"""Booking API endpoints.

Thin layer over the booking engine: validates input, calls the engine and
maps failure kinds to status codes.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from slotguard.api.deps import Engine
from slotguard.api.errors import raise_for_error
from slotguard.schemas.booking import BookingCreate, BookingRead, BookingUpdate

router = APIRouter()


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book a meeting",
    responses={
        404: {"description": "Owner not found"},
        409: {"description": "Time slot already booked"},
    },
)
async def create_booking(body: BookingCreate, engine: Engine) -> BookingRead:
    """Book a meeting for an owner, refusing overlapping slots."""
    outcome = await engine.create_booking(
        owner_id=str(body.owner_id),
        title=body.title,
        start_at=body.start_at,
        end_at=body.end_at,
    )
    if not outcome.ok:
        raise_for_error(outcome.error)

    return BookingRead.model_validate(outcome.value)


@router.get(
    "",
    response_model=list[BookingRead],
    summary="List bookings",
)
async def list_bookings(
    engine: Engine,
    owner_id: UUID | None = Query(None),
    start: datetime | None = Query(None, description="Lower bound of the range"),
    end: datetime | None = Query(None, description="Upper bound of the range"),
) -> list[BookingRead]:
    """List bookings ordered by start time, optionally filtered by owner and range."""
    bookings = await engine.list_bookings(
        owner_id=str(owner_id) if owner_id else None,
        range_start=start,
        range_end=end,
    )

    return [BookingRead.model_validate(b) for b in bookings]


@router.get(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Get a booking",
)
async def get_booking(booking_id: UUID, engine: Engine) -> BookingRead:
    """Get a single booking by ID."""
    outcome = await engine.get_booking(str(booking_id))
    if not outcome.ok:
        raise_for_error(outcome.error)

    return BookingRead.model_validate(outcome.value)


@router.patch(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Retitle or reschedule a booking",
    responses={
        404: {"description": "Booking not found"},
        409: {"description": "Time slot already booked"},
    },
)
async def update_booking(
    booking_id: UUID,
    body: BookingUpdate,
    engine: Engine,
) -> BookingRead:
    """Update a booking; moving it re-checks conflicts against the owner's other bookings."""
    outcome = await engine.update_booking(
        str(booking_id),
        title=body.title,
        start_at=body.start_at,
        end_at=body.end_at,
    )
    if not outcome.ok:
        raise_for_error(outcome.error)

    return BookingRead.model_validate(outcome.value)


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a booking",
)
async def delete_booking(booking_id: UUID, engine: Engine) -> Response:
    """Delete a booking permanently."""
    outcome = await engine.delete_booking(str(booking_id))
    if not outcome.ok:
        raise_for_error(outcome.error)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
