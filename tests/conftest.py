"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from slotguard.api.deps import get_booking_engine
from slotguard.db.base import Base
from slotguard.db.session import build_session_factory, enable_sqlite_foreign_keys, get_db
from slotguard.main import app
from slotguard.models.owner import Owner
from slotguard.services.booking import BookingEngine
from slotguard.services.owners import OwnerService

# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return build_session_factory(async_engine)


@pytest.fixture(scope="function")
async def async_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def booking_engine(session_factory) -> BookingEngine:
    """Booking engine over the test database, without retry delays."""
    return BookingEngine(session_factory, retry_backoff_seconds=0)


@pytest.fixture(scope="function")
def client(session_factory, booking_engine: BookingEngine) -> Generator[TestClient, None, None]:
    """Create FastAPI test client with overridden dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_engine] = lambda: booking_engine

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def create_owner(session_factory, name: str, email: str) -> Owner:
    """Register an owner through the owner service."""
    async with session_factory() as session:
        outcome = await OwnerService(session).create_owner(name=name, email=email)
    assert outcome.ok, outcome.error
    return outcome.value


@pytest.fixture
async def owner_a(session_factory) -> Owner:
    """First test owner."""
    return await create_owner(session_factory, "Ada Lovelace", "ada@example.com")


@pytest.fixture
async def owner_b(session_factory) -> Owner:
    """Second test owner."""
    return await create_owner(session_factory, "Grace Hopper", "grace@example.com")
