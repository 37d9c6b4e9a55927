"""Booking primitives: interval comparison, outcomes and owner locks."""

from slotguard.booking.intervals import Interval, ensure_utc, is_valid_interval, overlaps
from slotguard.booking.locks import OwnerLocks
from slotguard.booking.outcome import (
    BookingError,
    BookingErrorKind,
    Outcome,
    StoreUnavailableError,
)

__all__ = [
    "Interval",
    "ensure_utc",
    "is_valid_interval",
    "overlaps",
    "OwnerLocks",
    "BookingError",
    "BookingErrorKind",
    "Outcome",
    "StoreUnavailableError",
]
