"""Client-side mirror of a loaded trip.

Applies the same actions as the server executor to an in-memory TripSnapshot,
typically after the authoritative mutation has already round-tripped, or while
editing drafts that have not been synced yet. Ordering uses the same schedule
codec and insertion algorithm as the server path.

Changes are published as MirrorDelta records to subscribers once an action has
completed; a failed or skipped action publishes nothing and leaves the snapshot
as it was.
"""

import copy
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake

from backend.trip_actions.actions import schedule as schedule_codec
from backend.trip_actions.actions.ownership import format_day_label
from backend.trip_actions.actions.schema import collect_issues
from backend.trip_actions.errors import ActionSkipped, ActionValidationError
from backend.trip_actions.models.actions import OverlayPayload
from backend.trip_actions.models.itinerary import (
    BaseLocation,
    DaySnapshot,
    Destination,
    DestinationDraft,
    TripSnapshot,
)

# Coordinates closer than this are considered the same place
COORDINATE_TOLERANCE = 1e-4

Entity = Literal["destination", "day", "overlay", "selection"]


@dataclass(frozen=True)
class MirrorDelta:
    """A single change to mirrored state."""

    entity: Entity
    entity_id: str
    before: Any
    after: Any


Subscriber = Callable[[MirrorDelta], None]


def new_temp_id() -> str:
    return f"temp_{uuid.uuid4().hex}"


def _same_place(candidate: Destination, reference: Destination) -> bool:
    if candidate.name != reference.name:
        return False
    if reference.coordinates is None or candidate.coordinates is None:
        return reference.coordinates is None and candidate.coordinates is None
    return (
        abs(candidate.coordinates[0] - reference.coordinates[0]) < COORDINATE_TOLERANCE
        and abs(candidate.coordinates[1] - reference.coordinates[1]) < COORDINATE_TOLERANCE
    )


class ItineraryMirror:
    """Dispatch target over a locally held trip snapshot."""

    def __init__(self, trip: TripSnapshot) -> None:
        self.trip = trip
        self.selected_day_id: str | None = None
        self.selected_destination_id: str | None = None
        self.overlays: dict[str, bool] = {}
        self._subscribers: list[Subscriber] = []
        self._pending: list[MirrorDelta] = []
        self._depth = 0

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a delta callback; returns a function that unsubscribes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snapshot = copy.deepcopy(
            (self.trip, self.selected_day_id, self.selected_destination_id, self.overlays)
        )
        self._pending = []
        self._depth = 1
        try:
            yield
        except BaseException:
            self.trip, self.selected_day_id, self.selected_destination_id, self.overlays = snapshot
            self._pending = []
            raise
        finally:
            self._depth = 0

        pending, self._pending = self._pending, []
        for delta in pending:
            for subscriber in list(self._subscribers):
                subscriber(delta)

    def _emit(self, entity: Entity, entity_id: str, before: Any, after: Any) -> None:
        self._pending.append(MirrorDelta(entity=entity, entity_id=entity_id, before=before, after=after))

    def _day(self, day_id: str) -> DaySnapshot:
        for day in self.trip.days:
            if day.id == day_id:
                return day
        raise ActionSkipped(f"Unknown dayId {day_id}")

    def _renumber(self, day: DaySnapshot) -> None:
        renumbered: list[Destination] = []
        for index, item in enumerate(day.destinations):
            if item.order_index != index or item.day_id != day.id:
                updated = item.model_copy(update={"order_index": index, "day_id": day.id})
                self._emit("destination", item.id, item, updated)
                item = updated
            renumbered.append(item)
        day.destinations = renumbered

    # DispatchTarget

    def day_destinations(self, day_id: str) -> list[Destination]:
        return list(self._day(day_id).destinations)

    def day_label(self, day_id: str) -> str:
        return format_day_label(self._day(day_id))

    def ensure_trip(self, trip_id: str, day_id: str) -> None:
        if trip_id != self.trip.id:
            raise ActionSkipped(f"Unknown tripId {trip_id}")
        self._day(day_id)

    def find_destination(self, day_id: str, destination_id: str) -> Destination:
        for item in self._day(day_id).destinations:
            if item.id == destination_id:
                return item
        raise ActionSkipped(f"Unable to locate itinerary item {destination_id}")

    def insert_destination(self, day_id: str, draft: DestinationDraft, index: int) -> Destination:
        day = self._day(day_id)
        position = max(0, min(index, len(day.destinations)))
        created = Destination(**dict(draft), id=new_temp_id(), day_id=day_id, order_index=position)

        day.destinations.insert(position, created)
        self._emit("destination", created.id, None, created)
        self._renumber(day)
        return created

    def update_destination(
        self, day_id: str, destination_id: str, changes: dict[str, Any]
    ) -> Destination:
        day = self._day(day_id)
        current = self.find_destination(day_id, destination_id)
        updated = current.model_copy(update=changes)

        day.destinations = [updated if item.id == destination_id else item for item in day.destinations]
        self._emit("destination", destination_id, current, updated)
        return updated

    def move_destination(
        self, destination_id: str, from_day_id: str, to_day_id: str, index: int | None
    ) -> Destination:
        source = self._day(from_day_id)
        target = self._day(to_day_id)
        item = self.find_destination(from_day_id, destination_id)

        source.destinations = [d for d in source.destinations if d.id != destination_id]
        receiving = target.destinations
        position = len(receiving) if index is None else max(0, min(index, len(receiving)))
        receiving.insert(position, item)

        self._renumber(source)
        if target is not source:
            self._renumber(target)
        return self.find_destination(to_day_id, destination_id)

    def remove_destination(self, day_id: str, destination_id: str) -> int:
        day = self._day(day_id)
        existing = self.find_destination(day_id, destination_id)
        position = day.destinations.index(existing)

        del day.destinations[position]
        self._emit("destination", destination_id, existing, None)
        self._renumber(day)
        return position

    def base_locations(self, day_id: str) -> list[BaseLocation]:
        return list(self._day(day_id).base_locations)

    def set_base_locations(self, day_id: str, locations: list[BaseLocation]) -> None:
        day = self._day(day_id)
        before = list(day.base_locations)
        day.base_locations = list(locations)
        self._emit("day", day_id, before, list(locations))

    def focus(self, day_id: str, destination: Destination | None) -> None:
        """Select a day and, when given, the latest item structurally matching ``destination``."""
        previous = (self.selected_day_id, self.selected_destination_id)
        self.selected_day_id = day_id

        if destination is None:
            self.selected_destination_id = None
        else:
            match = next(
                (item for item in reversed(self._day(day_id).destinations) if _same_place(item, destination)),
                None,
            )
            if match is not None:
                self.selected_destination_id = match.id

        current = (self.selected_day_id, self.selected_destination_id)
        if current != previous:
            self._emit("selection", day_id, previous, current)

    def set_overlay(self, overlay: str, enabled: bool | None, payload: OverlayPayload | None) -> None:
        before = self.overlays.get(overlay)
        self.overlays[overlay] = enabled is not False
        self._emit("overlay", overlay, before, self.overlays[overlay])


def _snake_keys(raw: dict[str, Any]) -> dict[str, Any]:
    return {to_snake(key): value for key, value in raw.items()}


def _camel_keys(raw: dict[str, Any]) -> dict[str, Any]:
    return {to_camel(key): value for key, value in raw.items()}


def snapshot_from_wire(raw: dict[str, Any]) -> TripSnapshot:
    """Load a camelCase trip payload, decoding schedule markers out of notes.

    Raises:
        ActionValidationError: If the payload does not describe a valid trip
    """
    try:
        days = []
        for raw_day in raw.get("days") or []:
            destinations = []
            for index, raw_item in enumerate(raw_day.get("destinations") or []):
                fields = _snake_keys(raw_item)
                fields.setdefault("day_id", raw_day.get("id"))
                fields.setdefault("order_index", index)
                fields["notes"], fields["schedule"] = schedule_codec.split_notes(fields.get("notes"))
                destinations.append(Destination.model_validate(fields))

            day_fields = _snake_keys(raw_day)
            day_fields["destinations"] = destinations
            day_fields["base_locations"] = [
                BaseLocation.model_validate(location) for location in day_fields.get("base_locations") or []
            ]
            days.append(DaySnapshot.model_validate(day_fields))

        trip_fields = _snake_keys(raw)
        trip_fields["days"] = days
        return TripSnapshot.model_validate(trip_fields)
    except PydanticValidationError as e:
        raise ActionValidationError("Invalid trip snapshot", collect_issues(e)) from e


def snapshot_to_wire(trip: TripSnapshot) -> dict[str, Any]:
    """Dump a trip as camelCase JSON with schedules encoded back into notes."""
    days = []
    for day in trip.days:
        destinations = []
        for item in day.destinations:
            body = item.model_dump(mode="json", exclude={"schedule", "notes"}, exclude_none=True)
            notes = schedule_codec.encode_schedule(item.notes, item.schedule)
            if notes is not None:
                body["notes"] = notes
            destinations.append(_camel_keys(body))

        day_body = day.model_dump(mode="json", exclude={"destinations"}, exclude_none=True)
        day_body["destinations"] = destinations
        days.append(_camel_keys(day_body))

    trip_body = trip.model_dump(mode="json", exclude={"days"})
    trip_body["days"] = days
    return _camel_keys(trip_body)
