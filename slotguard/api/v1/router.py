"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from slotguard.api.v1 import bookings, health, owners

api_router = APIRouter()

# Health check
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"],
)

# Owners
api_router.include_router(
    owners.router,
    prefix="/owners",
    tags=["owners"],
)

# Bookings
api_router.include_router(
    bookings.router,
    prefix="/bookings",
    tags=["bookings"],
)
