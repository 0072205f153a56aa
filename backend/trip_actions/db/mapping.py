"""Row-to-domain mapping at the storage boundary.

ORM rows are converted into validated domain models here, and only here. The
schedule marker embedded in ``trip_destinations.notes`` is decoded on read and
re-encoded on write, so nothing past this module handles raw marker lines.
"""

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from backend.trip_actions.actions import schedule as schedule_codec
from backend.trip_actions.db.models import TripDay, TripDestination, UserTrip
from backend.trip_actions.models.common import LocationLink
from backend.trip_actions.models.itinerary import (
    BaseLocation,
    Day,
    Destination,
    DestinationDraft,
    Schedule,
    Trip,
)


class StorageMappingError(Exception):
    """A stored row does not satisfy the domain model."""

    pass


def _coordinates(longitude: float | None, latitude: float | None) -> tuple[float, float] | None:
    if longitude is None or latitude is None:
        return None
    return (longitude, latitude)


def _links(raw: list[dict[str, Any]] | None) -> list[LocationLink]:
    return [LocationLink.model_validate(link) for link in raw or []]


def _dump_links(links: list[LocationLink]) -> list[dict[str, Any]] | None:
    if not links:
        return None
    return [link.model_dump(mode="json") for link in links]


def trip_from_row(row: UserTrip) -> Trip:
    try:
        return Trip(id=row.id, user_id=row.user_id, name=row.name)
    except PydanticValidationError as e:
        raise StorageMappingError(f"Invalid trip row {row.id}") from e


def day_from_row(row: TripDay) -> Day:
    try:
        return Day(
            id=row.id,
            trip_id=row.trip_id,
            day_order=row.day_order,
            date=row.day_date,
            base_locations=[
                BaseLocation.model_validate(location) for location in row.base_locations_json or []
            ],
            version=row.version,
        )
    except PydanticValidationError as e:
        raise StorageMappingError(f"Invalid day row {row.id}") from e


def base_locations_to_json(locations: list[BaseLocation]) -> list[dict[str, Any]]:
    return [location.model_dump(mode="json", exclude_none=True) for location in locations]


def destination_from_row(row: TripDestination) -> Destination:
    user_notes, schedule = schedule_codec.split_notes(row.notes)
    try:
        return Destination(
            id=row.id,
            day_id=row.day_id,
            order_index=row.order_index,
            name=row.name,
            coordinates=_coordinates(row.longitude, row.latitude),
            category=row.category,
            city=row.city,
            notes=user_notes,
            estimated_duration_minutes=row.estimated_duration_minutes,
            links=_links(row.links_json),
            schedule=schedule,
        )
    except PydanticValidationError as e:
        raise StorageMappingError(f"Invalid destination row {row.id}") from e


def _encode_notes(notes: str | None, schedule: Schedule | None) -> str | None:
    return schedule_codec.encode_schedule(notes, schedule)


def destination_row_values(draft: DestinationDraft) -> dict[str, Any]:
    """Column values for a new destination row."""
    longitude, latitude = draft.coordinates if draft.coordinates else (None, None)
    return {
        "name": draft.name,
        "longitude": longitude,
        "latitude": latitude,
        "category": draft.category,
        "city": draft.city,
        "notes": _encode_notes(draft.notes, draft.schedule),
        "estimated_duration_minutes": draft.estimated_duration_minutes,
        "links_json": _dump_links(draft.links),
    }


def destination_change_values(current: Destination, changes: dict[str, Any]) -> dict[str, Any]:
    """Column values for a partial update expressed in domain field names."""
    merged = current.model_copy(update=changes)
    values: dict[str, Any] = {}

    for name in changes:
        if name == "coordinates":
            longitude, latitude = merged.coordinates if merged.coordinates else (None, None)
            values["longitude"] = longitude
            values["latitude"] = latitude
        elif name in ("notes", "schedule"):
            values["notes"] = _encode_notes(merged.notes, merged.schedule)
        elif name == "links":
            values["links_json"] = _dump_links(merged.links)
        elif name in ("name", "category", "city", "estimated_duration_minutes", "day_id", "order_index"):
            values[name] = getattr(merged, name)
        else:
            raise StorageMappingError(f"Unknown destination field: {name}")

    return values
