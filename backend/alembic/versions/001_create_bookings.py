"""Create bookings table with slot and weekly lookup indexes.

Revision ID: 001
Revises: None
Create Date: 2025-03-01
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("purpose", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.Time(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    # Serves both the per-slot COUNT (date, time_slot) and the per-day COUNT (date prefix).
    op.create_index("ix_bookings_date_time_slot", "bookings", ["date", "time_slot"])
    # Weekly restriction: phone equality plus a date range within one week.
    op.create_index("ix_bookings_phone_date", "bookings", ["phone", "date"])


def downgrade() -> None:
    op.drop_index("ix_bookings_phone_date", table_name="bookings")
    op.drop_index("ix_bookings_date_time_slot", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")
