"""Booking schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from slotguard.booking.intervals import ensure_utc
from slotguard.booking.outcome import BookingErrorKind
from slotguard.schemas.owner import OwnerSummary


class BookingCreate(BaseModel):
    """Schema for booking a meeting.

    Timestamps without an offset are read as UTC.
    """

    owner_id: UUID
    title: str = Field(..., min_length=1, max_length=255)
    start_at: datetime
    end_at: datetime

    @field_validator("start_at", "end_at")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def validate_interval(self) -> "BookingCreate":
        """Validate start precedes end."""
        if self.start_at >= self.end_at:
            raise ValueError("Start time must be before end time")
        return self


class BookingUpdate(BaseModel):
    """Schema for retitling and/or rescheduling a booking.

    A missing bound keeps its stored value; the combined interval is
    checked by the booking engine.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    start_at: datetime | None = None
    end_at: datetime | None = None

    @field_validator("start_at", "end_at")
    @classmethod
    def normalize_to_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def validate_interval(self) -> "BookingUpdate":
        """Validate start precedes end when both are supplied."""
        if (
            self.start_at is not None
            and self.end_at is not None
            and self.start_at >= self.end_at
        ):
            raise ValueError("Start time must be before end time")
        return self


class BookingRead(BaseModel):
    """Schema for reading booking data."""

    id: str
    owner_id: str
    title: str
    start_at: datetime
    end_at: datetime
    created_at: datetime
    updated_at: datetime | None
    owner: OwnerSummary | None = None

    model_config = {"from_attributes": True}


class ErrorDetail(BaseModel):
    """Body of a domain failure response."""

    code: BookingErrorKind
    message: str
    conflicting_booking_id: str | None = None
