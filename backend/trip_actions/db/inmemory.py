"""In-memory implementations of repository interfaces."""

import copy
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from backend.trip_actions.db.repositories import ActionAuditRecord, ProcessedRequestRecord
from backend.trip_actions.errors import ConcurrentModificationError, NotFoundError
from backend.trip_actions.models.itinerary import (
    BaseLocation,
    Day,
    Destination,
    DestinationDraft,
    Trip,
)


class InMemoryItineraryStore:
    """In-memory implementation of ItineraryStore."""

    def __init__(self) -> None:
        self._trips: dict[str, Trip] = {}
        self._days: dict[str, Day] = {}
        self._destinations: dict[str, Destination] = {}
        self._depth = 0

    # Seeding helpers

    def add_trip(self, trip: Trip) -> Trip:
        self._trips[trip.id] = trip
        return trip

    def add_day(self, day: Day) -> Day:
        self._days[day.id] = day
        return day

    def add_destination(self, destination: Destination) -> Destination:
        self._destinations[destination.id] = destination
        return destination

    # ItineraryStore

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        """Snapshot state and restore it if the block raises."""
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy((self._trips, self._days, self._destinations))
        self._depth = 1
        try:
            yield
        except BaseException:
            self._trips, self._days, self._destinations = snapshot
            raise
        finally:
            self._depth = 0

    def get_trip(self, trip_id: str) -> Trip | None:
        return self._trips.get(trip_id)

    def get_day(self, day_id: str) -> Day | None:
        return self._days.get(day_id)

    def get_destination(self, destination_id: str) -> Destination | None:
        return self._destinations.get(destination_id)

    def list_destinations(self, day_id: str) -> list[Destination]:
        destinations = [d for d in self._destinations.values() if d.day_id == day_id]
        destinations.sort(key=lambda d: d.order_index)
        return destinations

    def insert_destination(self, day_id: str, draft: DestinationDraft) -> Destination:
        if day_id not in self._days:
            raise NotFoundError("Day not found")

        destination = Destination(
            **dict(draft),
            id=str(uuid.uuid4()),
            day_id=day_id,
            order_index=len(self.list_destinations(day_id)),
        )
        self._destinations[destination.id] = destination
        return destination

    def update_destination(self, destination_id: str, changes: dict[str, Any]) -> Destination:
        existing = self._destinations.get(destination_id)
        if existing is None:
            raise NotFoundError("Destination not found")

        updated = existing.model_copy(update=changes)
        self._destinations[destination_id] = updated
        return updated

    def delete_destination(self, destination_id: str) -> None:
        if self._destinations.pop(destination_id, None) is None:
            raise NotFoundError("Destination not found")

    def reorder_day(self, day_id: str, ordered_ids: list[str], expected_version: int) -> Day:
        day = self._days.get(day_id)
        if day is None:
            raise NotFoundError("Day not found")

        # Compare-and-swap on the day version
        if day.version != expected_version:
            raise ConcurrentModificationError(
                f"Day {day_id} changed during the update (expected version "
                f"{expected_version}, found {day.version})"
            )

        for index, destination_id in enumerate(ordered_ids):
            existing = self._destinations.get(destination_id)
            if existing is None:
                raise NotFoundError("Destination not found")
            self._destinations[destination_id] = existing.model_copy(
                update={"day_id": day_id, "order_index": index}
            )

        updated = day.model_copy(update={"version": day.version + 1})
        self._days[day_id] = updated
        return updated

    def set_base_locations(self, day_id: str, locations: list[BaseLocation]) -> Day:
        day = self._days.get(day_id)
        if day is None:
            raise NotFoundError("Day not found")

        updated = day.model_copy(update={"base_locations": list(locations)})
        self._days[day_id] = updated
        return updated


class InMemoryAuditLog:
    """In-memory implementation of AuditLog."""

    def __init__(self) -> None:
        self.records: list[ActionAuditRecord] = []

    def record_audit(self, record: ActionAuditRecord) -> None:
        self.records.append(record)


class InMemoryProcessedRequestStore:
    """In-memory implementation of ProcessedRequestStore."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], ProcessedRequestRecord] = {}

    def get(self, request_id: str, user_id: str) -> ProcessedRequestRecord | None:
        """Get processed request record."""
        record = self._records.get((request_id, user_id))

        if record is None:
            return None

        # Check if expired
        if datetime.now() > record.ttl_until:
            del self._records[(request_id, user_id)]
            return None

        return record

    def set_processed(
        self, request_id: str, user_id: str, action_type: str, ttl_until: datetime
    ) -> None:
        """Remember that a request id produced a mutation."""
        self._records[(request_id, user_id)] = ProcessedRequestRecord(
            request_id=request_id,
            user_id=user_id,
            action_type=action_type,
            ttl_until=ttl_until,
        )
