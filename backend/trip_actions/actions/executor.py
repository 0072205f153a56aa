"""Server-side dispatch target backed by an ItineraryStore.

Every day or destination id is resolved for the authenticated user before it is
touched. Ordering writes go through ``reorder_day`` with the day version read
earlier in the same action, so a concurrent reorder of that day fails the
action instead of interleaving order indices.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from backend.trip_actions.actions.ownership import OwnershipResolver, ensure_same_trip, ensure_trip
from backend.trip_actions.db.repositories import ItineraryStore
from backend.trip_actions.errors import ActionValidationError, NotFoundError
from backend.trip_actions.models.actions import OverlayPayload
from backend.trip_actions.models.itinerary import BaseLocation, Day, Destination, DestinationDraft

logger = logging.getLogger(__name__)


def _clamp(index: int | None, length: int) -> int:
    if index is None:
        return length
    return max(0, min(index, length))


class StoreExecutor:
    """Applies actions to persisted itinerary data on behalf of one user."""

    def __init__(self, store: ItineraryStore, user_id: str) -> None:
        self._store = store
        self._user_id = user_id
        self._resolver = OwnershipResolver(store)
        # Day versions observed during the current unit of work
        self._versions: dict[str, int] = {}

    @property
    def resolver(self) -> OwnershipResolver:
        return self._resolver

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        self._versions = {}
        try:
            with self._store.unit_of_work():
                yield
        finally:
            self._versions = {}

    def _day(self, day_id: str) -> Day:
        day = self._resolver.resolve_day_access(self._user_id, day_id).day
        self._versions.setdefault(day.id, day.version)
        return day

    def _reorder(self, day_id: str, ordered_ids: list[str]) -> None:
        expected = self._versions.get(day_id)
        if expected is None:
            expected = self._day(day_id).version
        day = self._store.reorder_day(day_id, ordered_ids, expected)
        self._versions[day_id] = day.version

    def _ids(self, day_id: str, exclude_id: str | None = None) -> list[str]:
        return [d.id for d in self._store.list_destinations(day_id) if d.id != exclude_id]

    def day_destinations(self, day_id: str) -> list[Destination]:
        self._day(day_id)
        return self._store.list_destinations(day_id)

    def day_label(self, day_id: str) -> str:
        return self._resolver.resolve_day_access(self._user_id, day_id).label

    def ensure_trip(self, trip_id: str, day_id: str) -> None:
        ensure_trip(self._resolver.resolve_day_access(self._user_id, day_id), trip_id)

    def find_destination(self, day_id: str, destination_id: str) -> Destination:
        access = self._resolver.resolve_destination_access(self._user_id, destination_id)
        if access.day.id != day_id:
            raise ActionValidationError("Destination does not belong to supplied dayId")
        self._versions.setdefault(access.day.id, access.day.version)
        return access.destination

    def insert_destination(self, day_id: str, draft: DestinationDraft, index: int) -> Destination:
        self._day(day_id)
        ordered_ids = self._ids(day_id)

        created = self._store.insert_destination(day_id, draft)
        ordered_ids.insert(_clamp(index, len(ordered_ids)), created.id)
        self._reorder(day_id, ordered_ids)

        return self._reload(created.id)

    def update_destination(
        self, day_id: str, destination_id: str, changes: dict[str, Any]
    ) -> Destination:
        self.find_destination(day_id, destination_id)
        return self._store.update_destination(destination_id, changes)

    def move_destination(
        self, destination_id: str, from_day_id: str, to_day_id: str, index: int | None
    ) -> Destination:
        origin = self._resolver.resolve_destination_access(self._user_id, destination_id)
        if origin.day.id != from_day_id:
            raise ActionValidationError("Destination does not belong to supplied fromDayId")
        target = self._resolver.resolve_day_access(self._user_id, to_day_id)
        ensure_same_trip(origin, target)

        self._versions.setdefault(origin.day.id, origin.day.version)
        self._versions.setdefault(target.day.id, target.day.version)

        # Source list first (vacated position), then the receiving list
        source_ids = self._ids(from_day_id, exclude_id=destination_id)
        if from_day_id != to_day_id:
            self._reorder(from_day_id, source_ids)
            target_ids = self._ids(to_day_id, exclude_id=destination_id)
        else:
            target_ids = source_ids

        target_ids.insert(_clamp(index, len(target_ids)), destination_id)
        self._reorder(to_day_id, target_ids)

        return self._reload(destination_id)

    def remove_destination(self, day_id: str, destination_id: str) -> int:
        self.find_destination(day_id, destination_id)
        ordered_ids = self._ids(day_id)
        position = ordered_ids.index(destination_id)

        self._store.delete_destination(destination_id)
        ordered_ids.remove(destination_id)
        self._reorder(day_id, ordered_ids)

        return position

    def base_locations(self, day_id: str) -> list[BaseLocation]:
        return list(self._day(day_id).base_locations)

    def set_base_locations(self, day_id: str, locations: list[BaseLocation]) -> None:
        self._day(day_id)
        self._store.set_base_locations(day_id, locations)

    def focus(self, day_id: str, destination: Destination | None) -> None:
        # Selection is client view state
        return None

    def set_overlay(self, overlay: str, enabled: bool | None, payload: OverlayPayload | None) -> None:
        logger.debug("Overlay toggle has no server state: %s enabled=%s", overlay, enabled)

    def _reload(self, destination_id: str) -> Destination:
        destination = self._store.get_destination(destination_id)
        if destination is None:
            raise NotFoundError("Destination not found")
        return destination


def renormalize_day(store: ItineraryStore, day_id: str) -> Day:
    """Renumber a day's destinations to 0..n-1 in their current order.

    Safe to re-run; an already contiguous day keeps its ordering.
    """
    with store.unit_of_work():
        day = store.get_day(day_id)
        if day is None:
            raise NotFoundError("Day not found")
        ordered_ids = [destination.id for destination in store.list_destinations(day_id)]
        return store.reorder_day(day_id, ordered_ids, day.version)
