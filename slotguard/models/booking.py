"""Booking model: a titled time interval held by one owner."""

from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from slotguard.db.base import Base, TimestampMixin, UTCDateTime


class Booking(Base, TimestampMixin):
    """A meeting booked for an owner over ``[start_at, end_at)``.

    Invariants:
    - ``start_at < end_at`` (enforced by a check constraint).
    - No two bookings of the same owner overlap. The booking engine checks
      this inside an owner-scoped transaction; on PostgreSQL an exclusion
      constraint (see the initial alembic migration) backs it up.
    - ``owner_id`` never changes after creation.
    """

    __tablename__ = "bookings"

    owner_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("owners.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # Stored as UTC instants
    start_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )
    end_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    # Relationships
    owner: Mapped["Owner"] = relationship(
        "Owner",
        back_populates="bookings",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("start_at < end_at", name="start_before_end"),
        # Serves the conflict query and owner-scoped listing
        Index("ix_bookings_owner_interval", "owner_id", "start_at", "end_at"),
        Index("ix_bookings_start_at", "start_at"),
    )

    def __repr__(self) -> str:
        return f"<Booking {self.title} {self.start_at}-{self.end_at}>"
