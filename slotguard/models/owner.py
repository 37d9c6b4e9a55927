"""Owner model: the user who holds bookings."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from slotguard.db.base import Base, TimestampMixin


def normalize_email(email: str) -> str:
    """Canonical form used for storage and uniqueness checks."""
    return email.strip().lower()


class Owner(Base, TimestampMixin):
    """A user that exclusively owns zero or more bookings.

    Emails are stored normalized, so uniqueness is case-insensitive.
    """

    __tablename__ = "owners"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Owner {self.email}>"
