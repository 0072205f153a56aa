"""Translation from wire actions into server intents and domain values.

The LLM-facing vocabulary is rewritten into the server vocabulary here, so that
both are applied by the same handlers. Wire destination fields are turned into
domain drafts and change sets with the schedule already decoded.
"""

from typing import Any

from backend.trip_actions.actions import schedule as schedule_codec
from backend.trip_actions.config import get_settings
from backend.trip_actions.errors import ActionSkipped, ActionValidationError
from backend.trip_actions.models.actions import (
    ActionMetadata,
    AddDestinationAction,
    DestinationChanges,
    DestinationFields,
    MoveDestinationAction,
    UpdateDestinationAction,
)
from backend.trip_actions.models.itinerary import Destination, DestinationDraft, Schedule
from backend.trip_actions.models.ui_actions import (
    AddPlaceToItinerary,
    RemoveOrReplacePayload,
    ReschedulePayload,
)

MAX_DURATION_MINUTES = 24 * 60

# Attributes copied verbatim from a change set onto the destination
_PLAIN_FIELDS = ("name", "category", "city", "notes", "coordinates", "estimated_duration_minutes")


def _clip(value: str | None, limit: int) -> str | None:
    if not value:
        return None
    return value[:limit]


def _first_tag(tags: list[str] | None) -> str | None:
    return _clip(tags[0], 48) if tags else None


def _duration_between(start_minute: int | None, end_time: str | None) -> int | None:
    end_minute = schedule_codec.minutes_from_time(end_time)
    if start_minute is None or end_minute is None or end_minute <= start_minute:
        return None
    return end_minute - start_minute


def draft_from_fields(fields: DestinationFields, confidence: float | None = None) -> DestinationDraft:
    """Domain draft for a proposed destination.

    A start time becomes the schedule annotation; without one the draft carries
    no schedule at all.
    """
    start_minute = schedule_codec.minutes_from_time(fields.start_time_iso)
    duration = fields.estimated_duration_minutes or _duration_between(start_minute, fields.end_time_iso)

    schedule = None
    if start_minute is not None:
        schedule = Schedule(start_minute=start_minute, duration_minutes=duration, confidence=confidence)

    return DestinationDraft(
        name=fields.name,
        coordinates=fields.coordinates,
        category=fields.category,
        city=fields.city,
        notes=fields.notes,
        estimated_duration_minutes=fields.estimated_duration_minutes,
        links=fields.links or [],
        schedule=schedule,
    )


def destination_changes(current: Destination, changes: DestinationChanges) -> dict[str, Any]:
    """Domain field updates for a partial destination change.

    Raises:
        ActionValidationError: If nothing in the change set maps to a stored field
    """
    values: dict[str, Any] = {}
    for name in _PLAIN_FIELDS:
        value = getattr(changes, name)
        if value is not None:
            values[name] = value
    if changes.links is not None:
        values["links"] = list(changes.links)

    start_minute = schedule_codec.minutes_from_time(changes.start_time_iso)
    if start_minute is not None:
        previous = current.schedule
        duration = (
            changes.estimated_duration_minutes
            or _duration_between(start_minute, changes.end_time_iso)
            or (previous.duration_minutes if previous else None)
        )
        values["schedule"] = Schedule(start_minute=start_minute, duration_minutes=duration)
    elif changes.end_time_iso is not None and current.start_minute is not None:
        duration = _duration_between(current.start_minute, changes.end_time_iso)
        if duration is not None:
            values["schedule"] = current.schedule.model_copy(update={"duration_minutes": duration})

    if not values:
        raise ActionValidationError("No valid fields provided to update.")

    return values


def add_place_intent(action: AddPlaceToItinerary) -> AddDestinationAction:
    """Rewrite AddPlaceToItinerary as add_destination."""
    payload = action.payload
    confidence = action.meta.confidence if action.meta and action.meta.confidence is not None else None
    if confidence is None:
        confidence = payload.confidence

    coordinates = (payload.lng, payload.lat) if payload.lat is not None and payload.lng is not None else None

    return AddDestinationAction(
        type="add_destination",
        day_id=payload.day_id,
        destination=DestinationFields(
            name=payload.fallback_query[:160],
            category=_first_tag(payload.tags),
            notes=_clip(payload.notes, 2000),
            coordinates=coordinates,
            estimated_duration_minutes=min(payload.duration_minutes, MAX_DURATION_MINUTES),
            start_time_iso=payload.start_time,
        ),
        metadata=ActionMetadata(
            action_id=action.meta.request_id if action.meta else None,
            confidence=confidence,
        ),
    )


def reschedule_intents(
    payload: ReschedulePayload, insert_index: int
) -> tuple[MoveDestinationAction, UpdateDestinationAction]:
    """Rewrite RescheduleItineraryItem as a move followed by a timing update."""
    move = MoveDestinationAction(
        type="move_destination",
        destination_id=payload.item_id,
        from_day_id=payload.day_id,
        to_day_id=payload.new_day_id,
        insert_index=insert_index,
    )
    update = UpdateDestinationAction(
        type="update_destination",
        day_id=payload.new_day_id,
        destination_id=payload.item_id,
        changes=DestinationChanges(
            start_time_iso=payload.new_start_time,
            estimated_duration_minutes=min(payload.new_duration_minutes, MAX_DURATION_MINUTES),
        ),
    )
    return move, update


def replacement_intent(
    payload: RemoveOrReplacePayload, existing: Destination, insert_index: int
) -> AddDestinationAction:
    """add_destination for the replacement of ``existing`` at its old position.

    Timing the replacement leaves out is carried over from the original item.

    Raises:
        ActionSkipped: If the replacement has no coordinates
    """
    replacement = payload.replacement
    if replacement is None or replacement.lat is None or replacement.lng is None:
        raise ActionSkipped("Replacement missing coordinates; original item left in place.")

    start_time = replacement.start_time
    if start_time is None and existing.start_minute is not None:
        start_time = schedule_codec.format_minutes(existing.start_minute)

    previous = existing.schedule
    duration = (
        replacement.duration_minutes
        or (previous.duration_minutes if previous else None)
        or existing.estimated_duration_minutes
        or get_settings().default_replacement_duration_minutes
    )

    return AddDestinationAction(
        type="add_destination",
        day_id=payload.day_id,
        insert_index=insert_index,
        destination=DestinationFields(
            name=replacement.fallback_query[:160],
            category=_first_tag(replacement.tags),
            notes=_clip(replacement.notes, 2000),
            coordinates=(replacement.lng, replacement.lat),
            estimated_duration_minutes=min(duration, MAX_DURATION_MINUTES),
            start_time_iso=start_time,
        ),
    )
