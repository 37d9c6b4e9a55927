"""Business logic services."""

from slotguard.services.booking import BookingEngine
from slotguard.services.owners import OwnerService

__all__ = [
    "BookingEngine",
    "OwnerService",
]
