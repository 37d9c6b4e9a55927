"""Database models for SlotGuard."""

from slotguard.models.booking import Booking
from slotguard.models.owner import Owner, normalize_email

__all__ = [
    "Owner",
    "normalize_email",
    "Booking",
]
