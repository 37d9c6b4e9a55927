"""Pydantic schemas for request/response validation."""

from slotguard.schemas.booking import BookingCreate, BookingRead, BookingUpdate, ErrorDetail
from slotguard.schemas.owner import OwnerCreate, OwnerRead, OwnerSummary, OwnerUpdate

__all__ = [
    "OwnerCreate",
    "OwnerUpdate",
    "OwnerRead",
    "OwnerSummary",
    "BookingCreate",
    "BookingUpdate",
    "BookingRead",
    "ErrorDetail",
]
