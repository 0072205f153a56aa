"""Ownership checks for the Trip -> Day -> Destination chain.

Every day or destination id that arrives from the assistant is resolved here
before it is read for a preview or written by the executor.
"""

from dataclasses import dataclass

from backend.trip_actions.db.repositories import ItineraryStore
from backend.trip_actions.errors import ForbiddenError, NotFoundError
from backend.trip_actions.models.itinerary import Day, Destination, Trip


@dataclass(frozen=True)
class DayAccess:
    trip: Trip
    day: Day
    label: str


@dataclass(frozen=True)
class DestinationAccess(DayAccess):
    destination: Destination


def format_day_label(day: Day) -> str:
    """Human-readable day label, e.g. ``Day 2 (Apr 11)``."""
    if day.date is None:
        return f"Day {day.day_order}"
    return f"Day {day.day_order} ({day.date.strftime('%b')} {day.date.day})"


def ensure_same_trip(first: DayAccess, second: DayAccess) -> None:
    """Raise ForbiddenError unless both accesses belong to one trip."""
    if first.trip.id != second.trip.id:
        raise ForbiddenError("Destination can only be moved within the same trip")


def ensure_trip(access: DayAccess, trip_id: str) -> None:
    """Raise ForbiddenError unless ``access`` is on the trip the action names."""
    if access.trip.id != trip_id:
        raise ForbiddenError("Day does not belong to the provided tripId")


class OwnershipResolver:
    """Resolves ids against the store and checks they belong to the caller."""

    def __init__(self, store: ItineraryStore) -> None:
        self._store = store

    def resolve_day_access(self, user_id: str, day_id: str) -> DayAccess:
        """Resolve a day and its trip for ``user_id``.

        Raises:
            NotFoundError: If the day or its trip does not exist
            ForbiddenError: If the trip belongs to another user
        """
        day = self._store.get_day(day_id)
        if day is None:
            raise NotFoundError("Day not found")

        trip = self._store.get_trip(day.trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")

        if trip.user_id != user_id:
            raise ForbiddenError("Day does not belong to this user")

        return DayAccess(trip=trip, day=day, label=format_day_label(day))

    def resolve_destination_access(self, user_id: str, destination_id: str) -> DestinationAccess:
        """Resolve a destination, then check its day like ``resolve_day_access``."""
        destination = self._store.get_destination(destination_id)
        if destination is None:
            raise NotFoundError("Destination not found")

        access = self.resolve_day_access(user_id, destination.day_id)
        return DestinationAccess(
            trip=access.trip,
            day=access.day,
            label=access.label,
            destination=destination,
        )
