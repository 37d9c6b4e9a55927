"""Database initialization utilities."""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from slotguard.db.base import Base
from slotguard.db.session import engine as default_engine

# Register mapped tables on Base.metadata
import slotguard.models  # noqa: F401

logger = logging.getLogger(__name__)


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create all database tables."""
    async with (engine or default_engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def drop_tables(engine: AsyncEngine | None = None) -> None:
    """Drop all database tables (use with caution)."""
    async with (engine or default_engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database tables dropped")


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize database schema for local development.

    Production schemas are managed by Alembic; the exclusion constraint
    guarding overlapping bookings only exists there.
    """
    await create_tables(engine)
    logger.info("Database initialization complete")
