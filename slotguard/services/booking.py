"""Booking engine: conflict detection and atomic booking writes.

The engine is the only component that writes bookings. Every create or
reschedule runs "check for conflict, then write" as one unit per owner:

1. an in-process ``asyncio.Lock`` per owner serializes attempts in this
   worker;
2. ``SELECT ... FOR UPDATE`` on the owner row serializes attempts across
   workers sharing a PostgreSQL database;
3. the exclusion constraint on ``bookings`` rejects anything that slips
   past both, and the resulting ``IntegrityError`` is reported as a slot
   conflict after a fresh check.

Domain failures are returned as ``Outcome`` values. Store failures raise
``StoreUnavailableError``; only read paths retry them.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from slotguard.booking.intervals import ensure_utc, is_valid_interval
from slotguard.booking.locks import OwnerLocks
from slotguard.booking.outcome import BookingErrorKind, Outcome, StoreUnavailableError
from slotguard.core.config import settings
from slotguard.core.logging import booking_event_logger
from slotguard.db.base import utc_now
from slotguard.models.booking import Booking
from slotguard.models.owner import Owner

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures meaning "the store did not answer", as opposed to "the store said no"
STORE_ERRORS = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    TimeoutError,
    ConnectionError,
)

SLOT_CONFLICT_MESSAGE = "Time slot already booked"
INVALID_INTERVAL_MESSAGE = "Start time must be before end time"


class BookingEngine:
    """Creates, reschedules, deletes and lists bookings.

    Constructed once at startup with a session factory and shared by all
    requests. Holds no booking state; the store is the source of truth.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: OwnerLocks | None = None,
        read_retries: int | None = None,
        retry_backoff_seconds: float | None = None,
    ):
        self._session_factory = session_factory
        self._locks = OwnerLocks() if locks is None else locks
        self._read_retries = (
            settings.store_read_retries if read_retries is None else read_retries
        )
        self._retry_backoff_seconds = (
            settings.store_retry_backoff_seconds
            if retry_backoff_seconds is None
            else retry_backoff_seconds
        )

    # =========================================================================
    # CONFLICT QUERY
    # =========================================================================

    async def find_conflict(
        self,
        session: AsyncSession,
        owner_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_booking_id: str | None = None,
    ) -> Booking | None:
        """Find a booking of ``owner_id`` overlapping ``[start_at, end_at)``.

        Must run inside the transaction that performs the write. Returns the
        earliest overlapping booking, or None.
        """
        query = select(Booking).where(
            Booking.owner_id == owner_id,
            Booking.start_at < end_at,
            Booking.end_at > start_at,
        )

        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)

        query = query.order_by(Booking.start_at).limit(1)

        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def _lock_owner(self, session: AsyncSession, owner_id: str) -> Owner | None:
        """Load the owner row, locking it for the rest of the transaction."""
        result = await session.execute(
            select(Owner).where(Owner.id == owner_id).with_for_update()
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create_booking(
        self,
        owner_id: str,
        title: str,
        start_at: datetime,
        end_at: datetime,
    ) -> Outcome[Booking]:
        """Book ``[start_at, end_at)`` for an owner.

        Failure kinds: INVALID_INTERVAL, OWNER_NOT_FOUND, SLOT_CONFLICT.
        """
        start_at, end_at = ensure_utc(start_at), ensure_utc(end_at)
        if not is_valid_interval(start_at, end_at):
            return Outcome.failure(BookingErrorKind.INVALID_INTERVAL, INVALID_INTERVAL_MESSAGE)

        async with self._locks.hold(owner_id), self._store_access("create_booking"):
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        owner = await self._lock_owner(session, owner_id)
                        if owner is None:
                            return self._owner_not_found(owner_id)

                        conflict = await self.find_conflict(session, owner_id, start_at, end_at)
                        if conflict is not None:
                            return self._slot_conflict(conflict, owner_id)

                        booking = Booking(
                            owner_id=owner_id,
                            owner=owner,
                            title=title,
                            start_at=start_at,
                            end_at=end_at,
                        )
                        session.add(booking)
                        await session.flush()
                        await session.refresh(booking)
            except IntegrityError as exc:
                return await self._explain_integrity_error(exc, owner_id, start_at, end_at)

        booking_event_logger.log(
            action="booking.create",
            owner_id=owner_id,
            booking_id=booking.id,
            metadata={"start_at": start_at.isoformat(), "end_at": end_at.isoformat()},
        )
        return Outcome.success(booking)

    async def update_booking(
        self,
        booking_id: str,
        title: str | None = None,
        start_at: datetime | None = None,
        end_at: datetime | None = None,
    ) -> Outcome[Booking]:
        """Retitle and/or reschedule a booking.

        The conflict check only runs when start or end is supplied; a missing
        bound falls back to the stored value. The booking never conflicts
        with itself.

        Failure kinds: BOOKING_NOT_FOUND, INVALID_INTERVAL, SLOT_CONFLICT.
        """
        if start_at is None and end_at is None:
            return await self._retitle(booking_id, title)

        owner_id = await self._owner_of(booking_id)
        if owner_id is None:
            return self._booking_not_found(booking_id)

        async with self._locks.hold(owner_id), self._store_access("update_booking"):
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        await self._lock_owner(session, owner_id)

                        booking = await session.get(Booking, booking_id)
                        if booking is None:
                            return self._booking_not_found(booking_id)

                        new_start = ensure_utc(start_at) if start_at is not None else booking.start_at
                        new_end = ensure_utc(end_at) if end_at is not None else booking.end_at
                        if not is_valid_interval(new_start, new_end):
                            return Outcome.failure(
                                BookingErrorKind.INVALID_INTERVAL, INVALID_INTERVAL_MESSAGE
                            )

                        conflict = await self.find_conflict(
                            session,
                            owner_id,
                            new_start,
                            new_end,
                            exclude_booking_id=booking.id,
                        )
                        if conflict is not None:
                            return self._slot_conflict(conflict, owner_id)

                        booking.start_at = new_start
                        booking.end_at = new_end
                        if title is not None:
                            booking.title = title
                        booking.updated_at = utc_now()
                        await session.flush()
            except IntegrityError as exc:
                return await self._explain_integrity_error(
                    exc, owner_id, new_start, new_end, exclude_booking_id=booking_id
                )

        booking_event_logger.log(
            action="booking.update",
            owner_id=owner_id,
            booking_id=booking.id,
            metadata={"start_at": new_start.isoformat(), "end_at": new_end.isoformat()},
        )
        return Outcome.success(booking)

    async def _retitle(self, booking_id: str, title: str | None) -> Outcome[Booking]:
        """Change only the title; cannot affect the overlap invariant."""
        async with self._store_access("update_booking"):
            async with self._session_factory() as session:
                async with session.begin():
                    booking = await session.get(Booking, booking_id)
                    if booking is None:
                        return self._booking_not_found(booking_id)

                    if title is None:
                        return Outcome.success(booking)

                    booking.title = title
                    booking.updated_at = utc_now()

        booking_event_logger.log(
            action="booking.update",
            owner_id=booking.owner_id,
            booking_id=booking.id,
            metadata={"title": title},
        )
        return Outcome.success(booking)

    async def delete_booking(self, booking_id: str) -> Outcome[bool]:
        """Permanently remove a booking.

        Deleting an already-deleted booking fails with BOOKING_NOT_FOUND.
        """
        async with self._store_access("delete_booking"):
            async with self._session_factory() as session:
                async with session.begin():
                    owner_id = await session.scalar(
                        select(Booking.owner_id).where(Booking.id == booking_id)
                    )
                    if owner_id is None:
                        return self._booking_not_found(booking_id)

                    result = await session.execute(
                        delete(Booking).where(Booking.id == booking_id)
                    )
                    if result.rowcount == 0:
                        return self._booking_not_found(booking_id)

        booking_event_logger.log(
            action="booking.delete",
            owner_id=owner_id,
            booking_id=booking_id,
        )
        return Outcome.success(True)

    # =========================================================================
    # READS
    # =========================================================================

    async def get_booking(self, booking_id: str) -> Outcome[Booking]:
        """Get a single booking by ID."""

        async def load() -> Booking | None:
            async with self._session_factory() as session:
                return await session.get(Booking, booking_id)

        booking = await self._read_with_retry("get_booking", load)
        if booking is None:
            return self._booking_not_found(booking_id)
        return Outcome.success(booking)

    async def list_bookings(
        self,
        owner_id: str | None = None,
        range_start: datetime | None = None,
        range_end: datetime | None = None,
    ) -> Sequence[Booking]:
        """List bookings ordered by start time.

        Range filter:
        - lower bound only: bookings starting at or after ``range_start``;
        - upper bound only: bookings starting at or before ``range_end``;
        - both: bookings whose interval intersects ``[range_start, range_end)``.

        The combined filter is not a narrowing of the lower-bound one: a
        booking that started before ``range_start`` and is still running is
        returned once ``range_end`` is added, but not with ``range_start``
        alone.
        """
        query = select(Booking)

        if owner_id is not None:
            query = query.where(Booking.owner_id == owner_id)

        if range_start is not None and range_end is not None:
            query = query.where(
                Booking.start_at < ensure_utc(range_end),
                Booking.end_at > ensure_utc(range_start),
            )
        elif range_start is not None:
            query = query.where(Booking.start_at >= ensure_utc(range_start))
        elif range_end is not None:
            query = query.where(Booking.start_at <= ensure_utc(range_end))

        query = query.order_by(Booking.start_at, Booking.end_at, Booking.id)

        async def load() -> Sequence[Booking]:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return result.scalars().all()

        return await self._read_with_retry("list_bookings", load)

    async def _owner_of(self, booking_id: str) -> str | None:
        """Owner of a booking; ownership never changes so no lock is needed."""

        async def load() -> str | None:
            async with self._session_factory() as session:
                return await session.scalar(
                    select(Booking.owner_id).where(Booking.id == booking_id)
                )

        return await self._read_with_retry("update_booking", load)

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _explain_integrity_error(
        self,
        exc: IntegrityError,
        owner_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_booking_id: str | None = None,
    ) -> Outcome[Booking]:
        """Turn a storage constraint violation into a domain outcome.

        Re-runs the checks in a fresh transaction. A violation that neither a
        conflict nor a missing owner explains is re-raised.
        """
        logger.info(f"Booking write for owner {owner_id} rejected by the store: {exc.orig}")

        async with self._session_factory() as session:
            owner = await session.get(Owner, owner_id)
            if owner is None:
                return self._owner_not_found(owner_id)

            conflict = await self.find_conflict(
                session, owner_id, start_at, end_at, exclude_booking_id=exclude_booking_id
            )
            if conflict is not None:
                return self._slot_conflict(conflict, owner_id)

        raise exc

    @asynccontextmanager
    async def _store_access(self, operation: str) -> AsyncIterator[None]:
        """Translate store outages into ``StoreUnavailableError``."""
        try:
            yield
        except STORE_ERRORS as exc:
            logger.error(f"Store unavailable during {operation}: {exc!r}")
            raise StoreUnavailableError(f"Store unavailable during {operation}") from exc

    async def _read_with_retry(
        self,
        operation: str,
        load: Callable[[], Awaitable[T]],
    ) -> T:
        """Run a read-only load, retrying store outages a bounded number of times."""
        attempt = 0
        while True:
            try:
                async with self._store_access(operation):
                    return await load()
            except StoreUnavailableError:
                if attempt >= self._read_retries:
                    raise
                attempt += 1
                logger.warning(
                    f"Retrying {operation} after store failure "
                    f"(attempt {attempt}/{self._read_retries})"
                )
                await asyncio.sleep(self._retry_backoff_seconds * attempt)

    def _owner_not_found(self, owner_id: str) -> Outcome:
        logger.info(f"Booking rejected: owner {owner_id} not found")
        return Outcome.failure(BookingErrorKind.OWNER_NOT_FOUND, "Owner not found")

    def _booking_not_found(self, booking_id: str) -> Outcome:
        return Outcome.failure(BookingErrorKind.BOOKING_NOT_FOUND, "Booking not found")

    def _slot_conflict(self, conflict: Booking, owner_id: str) -> Outcome:
        logger.info(
            f"Booking rejected: owner {owner_id} already booked "
            f"{conflict.start_at.isoformat()}-{conflict.end_at.isoformat()}"
        )
        return Outcome.failure(
            BookingErrorKind.SLOT_CONFLICT,
            SLOT_CONFLICT_MESSAGE,
            conflicting_booking_id=conflict.id,
        )
