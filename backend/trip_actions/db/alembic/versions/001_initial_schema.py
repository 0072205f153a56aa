"""Initial schema

Revision ID: 001
Revises:
Create Date: 2025-11-13

Creates the itinerary ownership chain and the assistant action tables:
- user_trips, trip_days, trip_destinations
- assistant_action_logs
- processed_requests
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # user_trips table
    op.create_table(
        "user_trips",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_trip_user", "user_trips", ["user_id"])

    # trip_days table
    op.create_table(
        "trip_days",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("trip_id", sa.String(64), nullable=False),
        sa.Column("day_order", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("base_locations_json", sa.JSON(), nullable=True),
        sa.Column("version", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.ForeignKeyConstraint(["trip_id"], ["user_trips.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_day_trip", "trip_days", ["trip_id", "day_order"])

    # trip_destinations table
    op.create_table(
        "trip_destinations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("day_id", sa.String(64), nullable=False),
        sa.Column("order_index", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("city", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("estimated_duration_minutes", sa.Integer(), nullable=True),
        sa.Column("links_json", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["day_id"], ["trip_days.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_destination_day_order", "trip_destinations", ["day_id", "order_index"])

    # assistant_action_logs table
    op.create_table(
        "assistant_action_logs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("event_type", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("action_type", sa.String(64), nullable=False),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_action_log_user", "assistant_action_logs", ["user_id", "created_at"])

    # processed_requests table
    op.create_table(
        "processed_requests",
        sa.Column("request_id", sa.Text(), primary_key=True),
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("action_type", sa.String(64), nullable=False),
        sa.Column("ttl_until", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("processed_requests")
    op.drop_index("idx_action_log_user", table_name="assistant_action_logs")
    op.drop_table("assistant_action_logs")
    op.drop_index("idx_destination_day_order", table_name="trip_destinations")
    op.drop_table("trip_destinations")
    op.drop_index("idx_day_trip", table_name="trip_days")
    op.drop_table("trip_days")
    op.drop_index("idx_trip_user", table_name="user_trips")
    op.drop_table("user_trips")
