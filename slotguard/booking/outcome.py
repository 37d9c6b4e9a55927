"""Typed results for booking operations.

Not-found, invalid-interval and conflict are normal outcomes of a booking
request, so they are returned as values instead of raised. Only
infrastructure failures (``StoreUnavailableError``) are exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class BookingErrorKind(str, Enum):
    """Kinds of expected failure."""

    OWNER_NOT_FOUND = "owner_not_found"
    BOOKING_NOT_FOUND = "booking_not_found"
    INVALID_INTERVAL = "invalid_interval"
    SLOT_CONFLICT = "slot_conflict"
    DUPLICATE_IDENTITY = "duplicate_identity"


@dataclass(frozen=True)
class BookingError:
    """A domain failure.

    Attributes:
        kind: Failure category
        message: Human-readable explanation
        conflicting_booking_id: Booking that blocked the slot, for SLOT_CONFLICT
    """

    kind: BookingErrorKind
    message: str
    conflicting_booking_id: str | None = None


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or a ``BookingError``."""

    value: T | None = None
    error: BookingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: BookingErrorKind,
        message: str,
        conflicting_booking_id: str | None = None,
    ) -> "Outcome[T]":
        return cls(
            error=BookingError(
                kind=kind,
                message=message,
                conflicting_booking_id=conflicting_booking_id,
            )
        )


class StoreUnavailableError(Exception):
    """Raised when the store cannot be reached or timed out.

    Distinct from domain outcomes: the caller cannot tell whether a write
    committed and must re-read current state before retrying.
    """

    pass
