"""Health check endpoints."""

import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text

from slotguard.api.deps import DbSession
from slotguard.services.booking import STORE_ERRORS

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Returns service health status",
)
async def health_check() -> HealthResponse:
    """Check if the service is healthy.

    Returns:
        Health status response
    """
    return HealthResponse(status="ok")


@router.get(
    "/ready",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns service readiness status for k8s probes",
)
async def readiness_check(session: DbSession, response: Response) -> HealthResponse:
    """Check if the service can reach its database.

    Returns:
        Readiness status response, 503 when the store is unreachable
    """
    try:
        await session.execute(text("SELECT 1"))
    except STORE_ERRORS as exc:
        logger.warning(f"Readiness check failed: {exc!r}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="unavailable")

    return HealthResponse(status="ok")
