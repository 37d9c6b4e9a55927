"""Structured logging configuration."""

import logging
import sys
from typing import Any

from slotguard.core.config import settings

# Record attributes set through ``extra=`` by booking events
EVENT_FIELDS = ("request_id", "action", "owner_id", "booking_id", "event_metadata")


class StructuredFormatter(logging.Formatter):
    """Key=value formatter that surfaces booking event fields."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured data."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
        }

        # Events carry their fields as attributes; the message only repeats them
        event_fields = {
            field: getattr(record, field)
            for field in EVENT_FIELDS
            if getattr(record, field, None) is not None
        }
        if "action" in event_fields:
            log_data.update(event_fields)
        else:
            log_data["message"] = record.getMessage()
            log_data.update(event_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        parts = [f"{k}={v}" for k, v in log_data.items()]
        return " ".join(parts)


def setup_logging() -> None:
    """Configure application logging.

    Dev gets a human-readable line per record; every other environment
    gets ``StructuredFormatter`` output for log shipping.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Idempotent: uvicorn reload and tests call this more than once
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.is_dev:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = StructuredFormatter()

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Per-request and per-statement lines drown out booking events
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


class BookingEventLogger:
    """Logger for committed booking mutations."""

    def __init__(self) -> None:
        self.logger = get_logger("slotguard.events")

    def log(
        self,
        action: str,
        owner_id: str,
        booking_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Log a booking event."""
        self.logger.info(
            f"EVENT: action={action} owner={owner_id} "
            f"booking={booking_id} metadata={metadata or {}}",
            extra={
                "action": action,
                "owner_id": owner_id,
                "booking_id": booking_id,
                "event_metadata": metadata or {},
            },
        )


booking_event_logger = BookingEventLogger()
