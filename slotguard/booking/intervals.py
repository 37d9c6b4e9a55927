"""Interval comparison for bookings.

Bookings occupy half-open intervals ``[start, end)``: a meeting ending at
10:00 and another starting at 10:00 do not conflict.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive datetimes are taken to already be UTC.

    Examples:
        >>> ensure_utc(datetime(2024, 1, 1, 9, 0)).tzinfo
        datetime.timezone.utc
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_valid_interval(start: datetime, end: datetime) -> bool:
    """Check that an interval has positive length."""
    return ensure_utc(start) < ensure_utc(end)


def overlaps(
    existing_start: datetime,
    existing_end: datetime,
    candidate_start: datetime,
    candidate_end: datetime,
) -> bool:
    """Check whether two intervals overlap.

    Args:
        existing_start: Start of the stored interval
        existing_end: End of the stored interval
        candidate_start: Start of the proposed interval
        candidate_end: End of the proposed interval

    Returns:
        True if the intervals share any instant

    Examples:
        >>> nine, ten, eleven = (datetime(2024, 1, 1, h) for h in (9, 10, 11))
        >>> overlaps(nine, ten, ten, eleven)
        False
        >>> overlaps(nine, eleven, ten, eleven)
        True
    """
    return (
        ensure_utc(existing_start) < ensure_utc(candidate_end)
        and ensure_utc(existing_end) > ensure_utc(candidate_start)
    )


@dataclass(frozen=True)
class Interval:
    """A half-open time interval in UTC."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))

    @property
    def is_valid(self) -> bool:
        return self.start < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)
