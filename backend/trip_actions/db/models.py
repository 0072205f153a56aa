"""SQLAlchemy ORM models for the itinerary ownership chain."""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UserTrip(Base):
    """Trip table - owned by exactly one user."""

    __tablename__ = "user_trips"
    __table_args__ = (Index("idx_trip_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    days: Mapped[list["TripDay"]] = relationship("TripDay", back_populates="trip")


class TripDay(Base):
    """Day table - ordered within a trip, versioned for reorder conflicts."""

    __tablename__ = "trip_days"
    __table_args__ = (Index("idx_day_trip", "trip_id", "day_order"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    trip_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("user_trips.id", ondelete="CASCADE"), nullable=False
    )
    day_order: Mapped[int] = mapped_column(Integer, nullable=False)
    day_date: Mapped[date | None] = mapped_column("date", Date, nullable=True)
    base_locations_json: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    trip: Mapped["UserTrip"] = relationship("UserTrip", back_populates="days")
    destinations: Mapped[list["TripDestination"]] = relationship(
        "TripDestination", back_populates="day"
    )


class TripDestination(Base):
    """Destination table - notes carry the schedule marker line on the wire."""

    __tablename__ = "trip_destinations"
    __table_args__ = (Index("idx_destination_day_order", "day_id", "order_index"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    day_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("trip_days.id", ondelete="CASCADE"), nullable=False
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    city: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimated_duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    links_json: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    # Relationships
    day: Mapped["TripDay"] = relationship("TripDay", back_populates="destinations")


class AssistantActionLog(Base):
    """Audit table - previewed and executed assistant actions."""

    __tablename__ = "assistant_action_logs"
    __table_args__ = (Index("idx_action_log_user", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    event_type: Mapped[str] = mapped_column(String(32), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action_type: Mapped[str] = mapped_column(String(64), nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class ProcessedRequest(Base):
    """Processed request table - replay protection for assistant request ids."""

    __tablename__ = "processed_requests"

    request_id: Mapped[str] = mapped_column(Text, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    action_type: Mapped[str] = mapped_column(String(64), nullable=False)
    ttl_until: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
