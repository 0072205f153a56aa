"""Human-readable previews of proposed actions.

``build_preview`` is pure: it reads only the action and the labels the caller
resolved beforehand, and every action type requires confirmation.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from backend.trip_actions.actions import schedule as schedule_codec
from backend.trip_actions.actions.ownership import OwnershipResolver, ensure_same_trip, ensure_trip
from backend.trip_actions.errors import ActionValidationError
from backend.trip_actions.models import (
    AddDestinationAction,
    AddPlaceToItinerary,
    AnyAction,
    MoveDestinationAction,
    RemoveOrReplaceItem,
    RescheduleItineraryItem,
    SetBaseLocationAction,
    ToggleMapOverlayAction,
    UpdateDestinationAction,
)

FIELD_LABELS = {
    "name": "name",
    "category": "category",
    "city": "city",
    "notes": "notes",
    "coordinates": "location",
    "estimated_duration_minutes": "duration",
    "start_time_iso": "start time",
    "end_time_iso": "end time",
    "links": "links",
}


@dataclass
class PreviewContext:
    """Labels resolved by the caller; missing ones fall back to raw ids."""

    day_label: str | None = None
    destination_name: str | None = None
    from_day_label: str | None = None
    to_day_label: str | None = None


@dataclass
class ActionPreview:
    summary: str
    requires_confirmation: bool
    action: AnyAction
    details: dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "requiresConfirmation": self.requires_confirmation,
            "action": self.action.to_wire(),
            "details": self.details,
        }


def format_field_list(fields: list[str]) -> str:
    """Join field labels as ``a, b and c``."""
    if not fields:
        return "details"
    labels = [FIELD_LABELS.get(name, name) for name in fields]
    if len(labels) == 1:
        return labels[0]
    return f"{', '.join(labels[:-1])} and {labels[-1]}"


def _day(context_label: str | None, day_id: str) -> str:
    return context_label or f"day {day_id}"


def _at(time_value: str | None) -> str:
    minutes = schedule_codec.minutes_from_time(time_value)
    return f" at {schedule_codec.format_minutes(minutes)}" if minutes is not None else ""


def _preview_add_destination(action: AddDestinationAction, context: PreviewContext) -> ActionPreview:
    return ActionPreview(
        summary=f"Add “{action.destination.name}” to {_day(context.day_label, action.day_id)}",
        requires_confirmation=True,
        action=action,
        details={"dayId": action.day_id, "insertIndex": action.insert_index},
    )


def _preview_update_destination(
    action: UpdateDestinationAction, context: PreviewContext
) -> ActionPreview:
    fields = action.changes.provided_fields()
    # Stable order regardless of how the payload listed its keys
    fields = [name for name in FIELD_LABELS if name in fields]
    name = context.destination_name or action.destination_id
    day_suffix = f" ({context.day_label})" if context.day_label else ""
    return ActionPreview(
        summary=f"Update {format_field_list(fields)} for “{name}”{day_suffix}",
        requires_confirmation=True,
        action=action,
        details={
            "dayId": action.day_id,
            "destinationId": action.destination_id,
            "fields": [FIELD_LABELS[name] for name in fields],
        },
    )


def _preview_set_base_location(
    action: SetBaseLocationAction, context: PreviewContext
) -> ActionPreview:
    return ActionPreview(
        summary=f"Set base location for {_day(context.day_label, action.day_id)} to “{action.location.name}”",
        requires_confirmation=True,
        action=action,
        details={
            "dayId": action.day_id,
            "replaceExisting": action.replace_existing,
            "locationIndex": action.location_index,
        },
    )


def _preview_move_destination(
    action: MoveDestinationAction, context: PreviewContext
) -> ActionPreview:
    name = context.destination_name or action.destination_id
    from_label = _day(context.from_day_label, action.from_day_id)
    if action.from_day_id == action.to_day_id:
        return ActionPreview(
            summary=f"Reorder “{name}” within {from_label}",
            requires_confirmation=True,
            action=action,
            details={
                "destinationId": action.destination_id,
                "dayId": action.from_day_id,
                "insertIndex": action.insert_index,
            },
        )

    to_label = _day(context.to_day_label, action.to_day_id)
    return ActionPreview(
        summary=f"Move “{name}” from {from_label} to {to_label}",
        requires_confirmation=True,
        action=action,
        details={
            "destinationId": action.destination_id,
            "fromDayId": action.from_day_id,
            "toDayId": action.to_day_id,
            "insertIndex": action.insert_index,
        },
    )


def _preview_toggle_overlay(action: ToggleMapOverlayAction, context: PreviewContext) -> ActionPreview:
    state = "Hide" if action.enabled is False else "Show"
    return ActionPreview(
        summary=f"{state} map overlay: {action.overlay}",
        requires_confirmation=True,
        action=action,
        details={
            "overlay": action.overlay,
            "enabled": action.enabled is not False,
            "payload": action.payload.to_wire() if action.payload else None,
        },
    )


def _preview_add_place(action: AddPlaceToItinerary, context: PreviewContext) -> ActionPreview:
    payload = action.payload
    return ActionPreview(
        summary=(
            f"Add “{payload.fallback_query}” to {_day(context.day_label, payload.day_id)}"
            f"{_at(payload.start_time)}"
        ),
        requires_confirmation=True,
        action=action,
        details={
            "tripId": payload.trip_id,
            "dayId": payload.day_id,
            "durationMinutes": payload.duration_minutes,
            "confidence": payload.confidence,
        },
    )


def _preview_reschedule(action: RescheduleItineraryItem, context: PreviewContext) -> ActionPreview:
    payload = action.payload
    name = context.destination_name or payload.item_id
    to_label = _day(context.to_day_label, payload.new_day_id)
    return ActionPreview(
        summary=f"Reschedule “{name}” to {to_label}{_at(payload.new_start_time)}",
        requires_confirmation=True,
        action=action,
        details={
            "itemId": payload.item_id,
            "fromDayId": payload.day_id,
            "toDayId": payload.new_day_id,
            "durationMinutes": payload.new_duration_minutes,
            "lockedDependencies": payload.locked_dependencies or [],
        },
    )


def _preview_remove_or_replace(action: RemoveOrReplaceItem, context: PreviewContext) -> ActionPreview:
    payload = action.payload
    name = context.destination_name or payload.item_id
    day_label = _day(context.day_label, payload.day_id)
    if payload.mode == "replace" and payload.replacement is not None:
        summary = f"Replace “{name}” with “{payload.replacement.fallback_query}” on {day_label}"
    else:
        summary = f"Remove “{name}” from {day_label}"
    return ActionPreview(
        summary=summary,
        requires_confirmation=True,
        action=action,
        details={
            "itemId": payload.item_id,
            "dayId": payload.day_id,
            "mode": payload.mode,
            "reason": payload.reason,
        },
    )


_BUILDERS: dict[str, Callable[[Any, PreviewContext], ActionPreview]] = {
    "add_destination": _preview_add_destination,
    "update_destination": _preview_update_destination,
    "set_base_location": _preview_set_base_location,
    "move_destination": _preview_move_destination,
    "toggle_map_overlay": _preview_toggle_overlay,
    "AddPlaceToItinerary": _preview_add_place,
    "RescheduleItineraryItem": _preview_reschedule,
    "RemoveOrReplaceItem": _preview_remove_or_replace,
}


def build_preview(action: AnyAction, context: PreviewContext | None = None) -> ActionPreview:
    """Summarize ``action`` for confirmation."""
    return _BUILDERS[action.type](action, context or PreviewContext())


def resolve_preview_context(
    resolver: OwnershipResolver, user_id: str, action: AnyAction
) -> PreviewContext:
    """Run the read-only ownership checks for ``action`` and collect its labels.

    Raises:
        NotFoundError: If a referenced day or destination does not exist
        ForbiddenError: If it belongs to another user or trip, or a move crosses trips
        ActionValidationError: If a destination is not on the day the action names
    """
    if isinstance(action, (AddDestinationAction, SetBaseLocationAction)):
        return PreviewContext(day_label=resolver.resolve_day_access(user_id, action.day_id).label)

    if isinstance(action, AddPlaceToItinerary):
        access = resolver.resolve_day_access(user_id, action.payload.day_id)
        ensure_trip(access, action.payload.trip_id)
        return PreviewContext(day_label=access.label)

    if isinstance(action, UpdateDestinationAction):
        access = resolver.resolve_destination_access(user_id, action.destination_id)
        if access.day.id != action.day_id:
            raise ActionValidationError("Destination does not belong to the provided dayId")
        return PreviewContext(day_label=access.label, destination_name=access.destination.name)

    if isinstance(action, RemoveOrReplaceItem):
        access = resolver.resolve_destination_access(user_id, action.payload.item_id)
        if access.day.id != action.payload.day_id:
            raise ActionValidationError("Destination does not belong to the provided dayId")
        ensure_trip(access, action.payload.trip_id)
        return PreviewContext(day_label=access.label, destination_name=access.destination.name)

    if isinstance(action, (MoveDestinationAction, RescheduleItineraryItem)):
        if isinstance(action, MoveDestinationAction):
            destination_id, from_day_id, to_day_id = (
                action.destination_id,
                action.from_day_id,
                action.to_day_id,
            )
        else:
            destination_id, from_day_id, to_day_id = (
                action.payload.item_id,
                action.payload.day_id,
                action.payload.new_day_id,
            )
        origin = resolver.resolve_destination_access(user_id, destination_id)
        if origin.day.id != from_day_id:
            raise ActionValidationError("Destination does not belong to the provided fromDayId")
        target = resolver.resolve_day_access(user_id, to_day_id)
        ensure_same_trip(origin, target)
        if isinstance(action, RescheduleItineraryItem):
            ensure_trip(origin, action.payload.trip_id)
        return PreviewContext(
            destination_name=origin.destination.name,
            from_day_label=origin.label,
            to_day_label=target.label,
        )

    # Overlay toggles are view state with no ownership chain
    return PreviewContext()
