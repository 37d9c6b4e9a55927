"""Tests for store outages: bounded retries on reads, none on writes."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from slotguard.booking.locks import OwnerLocks
from slotguard.booking.outcome import StoreUnavailableError
from slotguard.models.owner import Owner
from slotguard.services.booking import BookingEngine


def at(hour: int) -> datetime:
    return datetime(2030, 1, 7, hour, 0, tzinfo=timezone.utc)


def store_down() -> OperationalError:
    return OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))


class FlakyFactory:
    """Session factory that fails its first ``failures`` calls."""

    def __init__(self, session_factory, failures: int, error=None):
        self._session_factory = session_factory
        self.failures = failures
        self.error = error or store_down
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error()
        return self._session_factory()


@pytest.mark.asyncio
async def test_read_recovers_after_transient_failure(session_factory, owner_a: Owner) -> None:
    seeded = await BookingEngine(session_factory).create_booking(
        owner_a.id, "Standup", at(9), at(10)
    )
    factory = FlakyFactory(session_factory, failures=1)
    engine = BookingEngine(factory, read_retries=2, retry_backoff_seconds=0)

    outcome = await engine.get_booking(seeded.value.id)

    assert outcome.ok
    assert factory.calls == 2


@pytest.mark.asyncio
async def test_read_retries_are_bounded(session_factory) -> None:
    factory = FlakyFactory(session_factory, failures=100)
    engine = BookingEngine(factory, read_retries=2, retry_backoff_seconds=0)

    with pytest.raises(StoreUnavailableError):
        await engine.list_bookings()

    assert factory.calls == 3


@pytest.mark.asyncio
async def test_timeouts_count_as_outages(session_factory) -> None:
    factory = FlakyFactory(session_factory, failures=1, error=TimeoutError)
    engine = BookingEngine(factory, read_retries=1, retry_backoff_seconds=0)

    assert await engine.list_bookings() == []
    assert factory.calls == 2


@pytest.mark.asyncio
async def test_create_is_not_retried(session_factory, owner_a: Owner) -> None:
    locks = OwnerLocks()
    factory = FlakyFactory(session_factory, failures=1)
    engine = BookingEngine(factory, locks=locks, read_retries=5, retry_backoff_seconds=0)

    with pytest.raises(StoreUnavailableError):
        await engine.create_booking(owner_a.id, "Standup", at(9), at(10))

    assert factory.calls == 1
    assert len(locks) == 0

    # The store is back; nothing was written by the failed attempt
    assert (await engine.create_booking(owner_a.id, "Standup", at(9), at(10))).ok


@pytest.mark.asyncio
async def test_delete_is_not_retried(session_factory) -> None:
    factory = FlakyFactory(session_factory, failures=1)
    engine = BookingEngine(factory, read_retries=5, retry_backoff_seconds=0)

    with pytest.raises(StoreUnavailableError):
        await engine.delete_booking("1b4e28ba-2fa1-11d2-883f-0016d3cca427")

    assert factory.calls == 1


@pytest.mark.asyncio
async def test_constraint_errors_are_not_outages(session_factory) -> None:
    """Only connectivity failures are translated; other store errors propagate."""

    def rejected() -> IntegrityError:
        return IntegrityError("INSERT", {}, Exception("constraint failed"))

    factory = FlakyFactory(session_factory, failures=1, error=rejected)
    engine = BookingEngine(factory, read_retries=5, retry_backoff_seconds=0)

    with pytest.raises(IntegrityError):
        await engine.list_bookings()

    assert factory.calls == 1
