"""Owner management service.

Owners are the users bookings belong to. Email addresses are unique,
compared after normalization (trimmed, lower-cased).
"""

import logging
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from slotguard.booking.outcome import BookingErrorKind, Outcome
from slotguard.db.base import utc_now
from slotguard.models.owner import Owner, normalize_email

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "Email already exists"


class OwnerService:
    """Service for creating, editing and removing owners."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def owner_exists(self, owner_id: str) -> bool:
        """Check whether an owner exists."""
        result = await self.session.execute(
            select(Owner.id).where(Owner.id == owner_id)
        )
        return result.scalar_one_or_none() is not None

    async def _get_by_email(self, email: str) -> Owner | None:
        result = await self.session.execute(
            select(Owner).where(Owner.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def create_owner(self, name: str, email: str) -> Outcome[Owner]:
        """Register a new owner.

        Fails with DUPLICATE_IDENTITY when the email is taken, including when
        a concurrent registration wins the unique constraint.
        """
        if await self._get_by_email(email) is not None:
            return Outcome.failure(BookingErrorKind.DUPLICATE_IDENTITY, DUPLICATE_EMAIL_MESSAGE)

        owner = Owner(name=name, email=normalize_email(email))
        self.session.add(owner)

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return Outcome.failure(BookingErrorKind.DUPLICATE_IDENTITY, DUPLICATE_EMAIL_MESSAGE)

        await self.session.refresh(owner)
        logger.info(f"Owner {owner.id} registered")

        return Outcome.success(owner)

    async def get_owner(self, owner_id: str) -> Outcome[Owner]:
        """Get a single owner by ID."""
        owner = await self.session.get(Owner, owner_id)
        if owner is None:
            return Outcome.failure(BookingErrorKind.OWNER_NOT_FOUND, "Owner not found")
        return Outcome.success(owner)

    async def list_owners(self) -> Sequence[Owner]:
        """List all owners in registration order."""
        result = await self.session.execute(
            select(Owner).order_by(Owner.created_at, Owner.id)
        )
        return result.scalars().all()

    async def update_owner(
        self,
        owner_id: str,
        name: str | None = None,
        email: str | None = None,
    ) -> Outcome[Owner]:
        """Edit an owner's profile.

        Email uniqueness is only re-checked when the email actually changes.
        """
        owner = await self.session.get(Owner, owner_id)
        if owner is None:
            return Outcome.failure(BookingErrorKind.OWNER_NOT_FOUND, "Owner not found")

        if email is not None and normalize_email(email) != owner.email:
            if await self._get_by_email(email) is not None:
                return Outcome.failure(
                    BookingErrorKind.DUPLICATE_IDENTITY, DUPLICATE_EMAIL_MESSAGE
                )
            owner.email = normalize_email(email)

        if name is not None:
            owner.name = name

        owner.updated_at = utc_now()

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            return Outcome.failure(BookingErrorKind.DUPLICATE_IDENTITY, DUPLICATE_EMAIL_MESSAGE)

        await self.session.refresh(owner)

        return Outcome.success(owner)

    async def delete_owner(self, owner_id: str) -> Outcome[bool]:
        """Delete an owner and, through the foreign key cascade, their bookings."""
        result = await self.session.execute(delete(Owner).where(Owner.id == owner_id))
        if result.rowcount == 0:
            await self.session.rollback()
            return Outcome.failure(BookingErrorKind.OWNER_NOT_FOUND, "Owner not found")

        await self.session.commit()
        logger.info(f"Owner {owner_id} deleted with their bookings")

        return Outcome.success(True)
