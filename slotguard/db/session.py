"""Async engine and session factory."""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from slotguard.core.config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection.

    SQLite ships with foreign keys off, which would leave bookings behind
    when their owner is deleted.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str | None = None, **kwargs) -> AsyncEngine:
    """Create the async engine for the configured store."""
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=settings.db_echo, **kwargs)
        enable_sqlite_foreign_keys(engine)
        return engine

    connect_args = kwargs.pop("connect_args", {})
    if "+asyncpg" in url:
        connect_args.setdefault("command_timeout", settings.db_command_timeout_seconds)

    return create_async_engine(
        url,
        echo=settings.db_echo,
        pool_pre_ping=True,
        pool_timeout=settings.db_pool_timeout_seconds,
        connect_args=connect_args,
        **kwargs,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for a single request."""
    async with AsyncSessionLocal() as session:
        yield session
