"""Initial schema: owners and bookings.

Revision ID: 001
Revises:
Create Date: 2026-10-16 00:00:00.000000

Adds:
- owners table with unique email
- bookings table with start < end check and (owner_id, start_at, end_at) index
- PostgreSQL exclusion constraint forbidding overlapping bookings per owner
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create owners and bookings tables."""

    op.create_table(
        "owners",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_owners"),
    )
    op.create_index("ix_owners_email", "owners", ["email"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_bookings"),
        sa.ForeignKeyConstraint(
            ["owner_id"],
            ["owners.id"],
            name="fk_bookings_owner_id_owners",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("start_at < end_at", name="ck_bookings_start_before_end"),
    )
    op.create_index(
        "ix_bookings_owner_interval",
        "bookings",
        ["owner_id", "start_at", "end_at"],
    )
    op.create_index("ix_bookings_start_at", "bookings", ["start_at"])

    # ========================================================================
    # NO-OVERLAP GUARD (PostgreSQL only)
    # ========================================================================

    if op.get_bind().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute("""
            ALTER TABLE bookings
            ADD CONSTRAINT ex_bookings_no_overlap
            EXCLUDE USING gist (
                owner_id WITH =,
                tstzrange(start_at, end_at, '[)') WITH &&
            )
        """)
        op.execute("""
            COMMENT ON CONSTRAINT ex_bookings_no_overlap ON bookings IS
            'No two bookings of the same owner may overlap. Touching intervals are allowed.';
        """)


def downgrade() -> None:
    """Drop bookings and owners tables."""

    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_no_overlap")

    op.drop_index("ix_bookings_start_at", table_name="bookings")
    op.drop_index("ix_bookings_owner_interval", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_owners_email", table_name="owners")
    op.drop_table("owners")
