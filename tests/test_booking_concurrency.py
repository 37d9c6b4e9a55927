"""Tests for concurrent booking attempts.

Two attempts for the same owner and overlapping slots must never both
succeed, a cancelled attempt must leave nothing behind, and a write the
store rejects on its own constraint must still come back as a conflict.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from slotguard.booking.locks import OwnerLocks
from slotguard.booking.outcome import BookingErrorKind
from slotguard.models.owner import Owner
from slotguard.services.booking import BookingEngine


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 1, 7, hour, minute, tzinfo=timezone.utc)


class PausingEngine(BookingEngine):
    """Stops inside the write transaction until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def find_conflict(self, session, owner_id, start_at, end_at, exclude_booking_id=None):
        self.entered.set()
        await self.release.wait()
        return await super().find_conflict(
            session, owner_id, start_at, end_at, exclude_booking_id=exclude_booking_id
        )


class BlindEngine(BookingEngine):
    """Misses the first conflict check, as a second worker without the owner lock would."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.blind_checks = 1

    async def find_conflict(self, session, owner_id, start_at, end_at, exclude_booking_id=None):
        if self.blind_checks:
            self.blind_checks -= 1
            return None
        return await super().find_conflict(
            session, owner_id, start_at, end_at, exclude_booking_id=exclude_booking_id
        )


@pytest.mark.asyncio
async def test_overlapping_race_has_one_winner(
    booking_engine: BookingEngine, owner_a: Owner
) -> None:
    outcomes = await asyncio.gather(
        booking_engine.create_booking(owner_a.id, "First", at(9), at(10)),
        booking_engine.create_booking(owner_a.id, "Second", at(9, 30), at(10, 30)),
    )

    winners = [o for o in outcomes if o.ok]
    losers = [o for o in outcomes if not o.ok]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].error.kind == BookingErrorKind.SLOT_CONFLICT
    assert losers[0].error.conflicting_booking_id == winners[0].value.id

    bookings = await booking_engine.list_bookings(owner_id=owner_a.id)
    assert [b.id for b in bookings] == [winners[0].value.id]


@pytest.mark.asyncio
async def test_many_identical_attempts_book_once(
    booking_engine: BookingEngine, owner_a: Owner
) -> None:
    outcomes = await asyncio.gather(
        *(
            booking_engine.create_booking(owner_a.id, f"Attempt {n}", at(14), at(15))
            for n in range(5)
        )
    )

    assert sum(1 for o in outcomes if o.ok) == 1
    assert len(await booking_engine.list_bookings(owner_id=owner_a.id)) == 1


@pytest.mark.asyncio
async def test_reschedule_races_create(
    booking_engine: BookingEngine, owner_a: Owner
) -> None:
    """Moving a booking into a free slot while another request books it."""
    existing = await booking_engine.create_booking(owner_a.id, "Existing", at(9), at(10))

    moved, created = await asyncio.gather(
        booking_engine.update_booking(existing.value.id, start_at=at(11), end_at=at(12)),
        booking_engine.create_booking(owner_a.id, "New", at(11, 30), at(12, 30)),
    )

    assert moved.ok != created.ok
    bookings = await booking_engine.list_bookings(owner_id=owner_a.id, range_start=at(11))
    assert len(bookings) == 1


@pytest.mark.asyncio
async def test_cancelled_attempt_leaves_no_trace(session_factory, owner_a: Owner) -> None:
    locks = OwnerLocks()
    engine = PausingEngine(session_factory, locks=locks, retry_backoff_seconds=0)

    task = asyncio.create_task(engine.create_booking(owner_a.id, "Abandoned", at(9), at(10)))
    await engine.entered.wait()
    assert locks.is_locked(owner_a.id)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(locks) == 0
    assert await engine.list_bookings(owner_id=owner_a.id) == []

    engine.release.set()
    retry = await engine.create_booking(owner_a.id, "Second try", at(9), at(10))
    assert retry.ok


@pytest.mark.asyncio
async def test_store_rejection_is_reported_as_conflict(
    async_engine, session_factory, owner_a: Owner
) -> None:
    """A constraint violation on insert is explained by re-reading the conflict."""
    async with async_engine.begin() as conn:
        await conn.execute(
            text(
                """
                CREATE TRIGGER bookings_no_overlap BEFORE INSERT ON bookings
                WHEN EXISTS (
                    SELECT 1 FROM bookings
                    WHERE owner_id = NEW.owner_id
                      AND start_at < NEW.end_at
                      AND end_at > NEW.start_at
                )
                BEGIN
                    SELECT RAISE(ABORT, 'overlapping booking');
                END
                """
            )
        )

    seeded = await BookingEngine(session_factory).create_booking(
        owner_a.id, "Seeded", at(9), at(10)
    )
    engine = BlindEngine(session_factory, retry_backoff_seconds=0)

    outcome = await engine.create_booking(owner_a.id, "Sneaky", at(9, 30), at(10, 30))

    assert not outcome.ok
    assert outcome.error.kind == BookingErrorKind.SLOT_CONFLICT
    assert outcome.error.conflicting_booking_id == seeded.value.id
    assert len(await engine.list_bookings(owner_id=owner_a.id)) == 1


@pytest.mark.asyncio
async def test_engines_sharing_locks_serialize_an_owner(session_factory, owner_a: Owner) -> None:
    """Two engines over one lock registry behave as one for each owner."""
    locks = OwnerLocks()
    first = BookingEngine(session_factory, locks=locks, retry_backoff_seconds=0)
    second = BookingEngine(session_factory, locks=locks, retry_backoff_seconds=0)

    outcomes = await asyncio.gather(
        first.create_booking(owner_a.id, "First", at(9), at(10)),
        second.create_booking(owner_a.id, "Second", at(9, 30), at(10, 30)),
    )

    assert sorted(o.ok for o in outcomes) == [False, True]
    assert len(await first.list_bookings(owner_id=owner_a.id)) == 1
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_injected_registry_is_the_one_held(session_factory, owner_a: Owner) -> None:
    locks = OwnerLocks()
    engine = PausingEngine(session_factory, locks=locks, retry_backoff_seconds=0)

    task = asyncio.create_task(engine.create_booking(owner_a.id, "Held", at(9), at(10)))
    await engine.entered.wait()
    assert len(locks) == 1

    engine.release.set()
    assert (await task).ok
    assert len(locks) == 0
