"""Server-authoritative action vocabulary.

These intents are what the executor applies against persisted itinerary data.
The ``type`` discriminant selects exactly one payload shape; unknown fields are
rejected so that an action can never carry another variant's fields.
"""

from typing import Annotated, Literal

from pydantic import Field, model_validator

from backend.trip_actions.models.common import (
    Coordinates,
    LocationLink,
    NonEmptyStr,
    TimeString,
    WireModel,
)

OverlayName = Literal["all_destinations", "explore_markers", "day_routes"]


class DestinationFields(WireModel):
    """Destination attributes an assistant may propose."""

    name: str = Field(..., min_length=1, max_length=160)
    category: str | None = Field(None, min_length=1, max_length=48)
    city: str | None = Field(None, min_length=1, max_length=120)
    notes: str | None = Field(None, min_length=1, max_length=2000)
    coordinates: Coordinates | None = None
    estimated_duration_minutes: int | None = Field(None, gt=0, le=24 * 60)
    start_time_iso: TimeString | None = None
    end_time_iso: TimeString | None = None
    links: list[LocationLink] | None = Field(None, max_length=6)


class DestinationChanges(WireModel):
    """Partial destination update; at least one field must be present."""

    name: str | None = Field(None, min_length=1, max_length=160)
    category: str | None = Field(None, min_length=1, max_length=48)
    city: str | None = Field(None, min_length=1, max_length=120)
    notes: str | None = Field(None, min_length=1, max_length=2000)
    coordinates: Coordinates | None = None
    estimated_duration_minutes: int | None = Field(None, gt=0, le=24 * 60)
    start_time_iso: TimeString | None = None
    end_time_iso: TimeString | None = None
    links: list[LocationLink] | None = Field(None, max_length=6)

    @model_validator(mode="after")
    def validate_not_empty(self) -> "DestinationChanges":
        """Ensure at least one field is provided."""
        if not self.provided_fields():
            raise ValueError("At least one field must be provided to update.")
        return self

    def provided_fields(self) -> list[str]:
        return [name for name in self.model_fields_set if getattr(self, name) is not None]


class BaseLocationFields(WireModel):
    """Day-scoped home base proposed by the assistant."""

    name: str = Field(..., min_length=1, max_length=160)
    coordinates: Coordinates | None = None
    context: str | None = Field(None, min_length=1, max_length=2000)
    notes: str | None = Field(None, min_length=1, max_length=2000)
    links: list[LocationLink] | None = Field(None, max_length=6)


class ActionMetadata(WireModel):
    """Optional metadata attached by the assistant."""

    action_id: str | None = Field(None, min_length=1)
    confidence: float | None = Field(None, ge=0, le=1)
    summary: str | None = Field(None, min_length=1, max_length=320)
    source: Literal["assistant", "user"] = "assistant"


class AddDestinationAction(WireModel):
    type: Literal["add_destination"]
    day_id: NonEmptyStr
    insert_index: int | None = Field(None, ge=0)
    destination: DestinationFields
    metadata: ActionMetadata | None = None


class UpdateDestinationAction(WireModel):
    type: Literal["update_destination"]
    day_id: NonEmptyStr
    destination_id: NonEmptyStr
    changes: DestinationChanges
    metadata: ActionMetadata | None = None


class SetBaseLocationAction(WireModel):
    type: Literal["set_base_location"]
    day_id: NonEmptyStr
    location: BaseLocationFields
    replace_existing: bool = True
    location_index: int | None = Field(None, ge=0)
    metadata: ActionMetadata | None = None


class MoveDestinationAction(WireModel):
    type: Literal["move_destination"]
    destination_id: NonEmptyStr
    from_day_id: NonEmptyStr
    to_day_id: NonEmptyStr
    insert_index: int | None = Field(None, ge=0)
    metadata: ActionMetadata | None = None


class OverlayPayload(WireModel):
    visible_categories: list[str] | None = None
    filter: Literal["all", "favorites"] | None = None


class ToggleMapOverlayAction(WireModel):
    type: Literal["toggle_map_overlay"]
    overlay: OverlayName
    enabled: bool | None = None
    payload: OverlayPayload | None = None
    metadata: ActionMetadata | None = None


AssistantActionIntent = Annotated[
    AddDestinationAction
    | UpdateDestinationAction
    | SetBaseLocationAction
    | MoveDestinationAction
    | ToggleMapOverlayAction,
    Field(discriminator="type"),
]


class ActionEnvelope(WireModel):
    """A single suggested action awaiting preview."""

    suggested_action: AssistantActionIntent
    rationale: str | None = Field(None, min_length=1, max_length=2000)


class StructuredPlan(WireModel):
    """Multi-step plan proposed in one assistant turn."""

    steps: list[AssistantActionIntent] = Field(..., min_length=1, max_length=6)
    rationale: str | None = None
