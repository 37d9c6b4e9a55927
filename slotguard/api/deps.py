"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from slotguard.db.session import get_db
from slotguard.services.booking import BookingEngine
from slotguard.services.owners import OwnerService


def get_booking_engine(request: Request) -> BookingEngine:
    """Return the booking engine built at startup.

    Args:
        request: Incoming request

    Returns:
        The application's BookingEngine
    """
    return request.app.state.booking_engine


async def get_owner_service(
    session: Annotated[AsyncSession, Depends(get_db)],
) -> OwnerService:
    """Build an owner service bound to the request's session."""
    return OwnerService(session)


# Type aliases for common dependencies
DbSession = Annotated[AsyncSession, Depends(get_db)]
Engine = Annotated[BookingEngine, Depends(get_booking_engine)]
Owners = Annotated[OwnerService, Depends(get_owner_service)]
