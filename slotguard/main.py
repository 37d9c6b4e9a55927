"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slotguard.api.errors import store_unavailable_handler
from slotguard.api.v1.router import api_router
from slotguard.booking.outcome import StoreUnavailableError
from slotguard.core.config import settings
from slotguard.core.logging import setup_logging
from slotguard.db.init_db import init_db
from slotguard.db.session import AsyncSessionLocal, engine
from slotguard.services.booking import BookingEngine

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(f"Starting SlotGuard API (env={settings.env})")

    if settings.init_db_on_startup and settings.is_dev:
        logger.info("Initializing database...")
        await init_db(engine)

    app.state.booking_engine = BookingEngine(AsyncSessionLocal)

    yield

    logger.info("Shutting down SlotGuard API")
    await engine.dispose()


app = FastAPI(
    title="SlotGuard API",
    description="Meeting booking without double-booking",
    version="0.1.0",
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
    openapi_url="/openapi.json" if settings.is_dev else None,
    lifespan=lifespan,
)

# CORS middleware (configure appropriately for production)
if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    # Don't expose internal errors in production
    if settings.is_prod:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Root endpoint with service info."""
    return {
        "service": "SlotGuard API",
        "version": "0.1.0",
        "docs": "/docs" if settings.is_dev else "Disabled in production",
    }
