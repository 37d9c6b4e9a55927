"""Mapping of domain failures to HTTP responses."""

import logging
from typing import NoReturn

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from slotguard.booking.outcome import BookingError, BookingErrorKind, StoreUnavailableError
from slotguard.schemas.booking import ErrorDetail

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    BookingErrorKind.OWNER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorKind.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    BookingErrorKind.INVALID_INTERVAL: 422,
    BookingErrorKind.SLOT_CONFLICT: status.HTTP_409_CONFLICT,
    BookingErrorKind.DUPLICATE_IDENTITY: status.HTTP_409_CONFLICT,
}


def raise_for_error(error: BookingError) -> NoReturn:
    """Raise the HTTPException matching a domain failure."""
    detail = ErrorDetail(
        code=error.kind,
        message=error.message,
        conflicting_booking_id=error.conflicting_booking_id,
    )
    raise HTTPException(
        status_code=ERROR_STATUS[error.kind],
        detail=detail.model_dump(mode="json", exclude_none=True),
    )


async def store_unavailable_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    """Report store outages as 503; the client must re-read before retrying."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "code": "store_unavailable",
                "message": "Storage temporarily unavailable, re-check state before retrying",
            }
        },
    )
