"""Itinerary domain models - the ownership chain Trip -> Day -> Destination."""

import datetime as dt

from pydantic import BaseModel, Field

from backend.trip_actions.models.common import Coordinates, LocationLink


class Schedule(BaseModel):
    """Advisory timing for a destination.

    Confidence is kept on the 0-1 scale; the notes wire format uses 0-100.
    """

    start_minute: int | None = Field(None, ge=0, le=23 * 60 + 59)
    duration_minutes: int | None = Field(None, ge=0)
    confidence: float | None = Field(None, ge=0, le=1)

    @property
    def is_empty(self) -> bool:
        return self.start_minute is None and self.duration_minutes is None and self.confidence is None


class BaseLocation(BaseModel):
    """Day-scoped home base, e.g. a hotel."""

    name: str
    coordinates: Coordinates | None = None
    context: str | None = None
    notes: str | None = None
    links: list[LocationLink] = Field(default_factory=list)


class DestinationDraft(BaseModel):
    """Destination that has not been assigned an id or position yet."""

    name: str
    coordinates: Coordinates | None = None
    category: str | None = None
    city: str | None = None
    notes: str | None = None  # user-authored text only
    estimated_duration_minutes: int | None = None
    links: list[LocationLink] = Field(default_factory=list)
    schedule: Schedule | None = None


class Destination(DestinationDraft):
    """Scheduled stop on a day."""

    id: str
    day_id: str
    order_index: int = 0

    @property
    def start_minute(self) -> int | None:
        return self.schedule.start_minute if self.schedule else None


class Trip(BaseModel):
    id: str
    user_id: str
    name: str


class Day(BaseModel):
    """Ordered unit of a trip; version is bumped on every reorder."""

    id: str
    trip_id: str
    day_order: int
    date: dt.date | None = None
    base_locations: list[BaseLocation] = Field(default_factory=list)
    version: int = 0


class DaySnapshot(Day):
    destinations: list[Destination] = Field(default_factory=list)


class TripSnapshot(Trip):
    """Fully loaded trip, as held by the client mirror."""

    days: list[DaySnapshot] = Field(default_factory=list)
