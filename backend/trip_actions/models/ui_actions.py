"""LLM-facing action vocabulary.

Payloads arrive untrusted from model output as ``{type, payload, meta?}``. They
are validated here and translated into the server vocabulary before execution.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import Field, model_validator

from backend.trip_actions.models.common import ItemId, NonEmptyStr, TimeString, WireModel


def _check_lat_lng_pair(lat: float | None, lng: float | None) -> None:
    if (lat is None) != (lng is None):
        raise ValueError("lat and lng must either both be provided or omitted")


class AddPlacePayload(WireModel):
    place_id: str | None = Field(None, min_length=1)
    fallback_query: NonEmptyStr
    trip_id: NonEmptyStr
    day_id: NonEmptyStr
    start_time: TimeString
    duration_minutes: int = Field(..., gt=0)
    source: Literal["assistant"] = "assistant"
    confidence: float = Field(..., ge=0, le=1)
    notes: str | None = None
    tags: list[str] | None = None
    from_map_selection: bool | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def validate_lat_lng(self) -> "AddPlacePayload":
        """Ensure coordinates are complete or absent."""
        _check_lat_lng_pair(self.lat, self.lng)
        return self


class ReschedulePayload(WireModel):
    trip_id: NonEmptyStr
    day_id: NonEmptyStr
    item_id: ItemId
    new_day_id: NonEmptyStr
    new_start_time: TimeString
    new_duration_minutes: int = Field(..., gt=0)
    locked_dependencies: list[str] | None = None
    user_confirmed: bool | None = None


class ReplacementDetails(WireModel):
    place_id: str | None = Field(None, min_length=1)
    fallback_query: NonEmptyStr
    start_time: TimeString | None = None
    duration_minutes: int | None = Field(None, gt=0)
    notes: str | None = None
    tags: list[str] | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def validate_lat_lng(self) -> "ReplacementDetails":
        """Ensure coordinates are complete or absent."""
        _check_lat_lng_pair(self.lat, self.lng)
        return self


class RemoveOrReplacePayload(WireModel):
    trip_id: NonEmptyStr
    day_id: NonEmptyStr
    item_id: ItemId
    mode: Literal["remove", "replace"]
    user_confirmed: bool
    reason: str | None = None
    replacement: ReplacementDetails | None = None

    @model_validator(mode="after")
    def validate_replacement(self) -> "RemoveOrReplacePayload":
        """Require a replacement for replace; drop it for remove."""
        if self.mode == "replace" and self.replacement is None:
            raise ValueError('replacement payload required when mode is "replace"')
        if self.mode == "remove" and self.replacement is not None:
            self.replacement = None
        return self


class UiActionMeta(WireModel):
    """Envelope metadata; request_id deduplicates redelivered actions."""

    request_id: NonEmptyStr
    issued_at: datetime
    confidence: float | None = Field(None, ge=0, le=1)
    rationale: str | None = None


class AddPlaceToItinerary(WireModel):
    type: Literal["AddPlaceToItinerary"]
    payload: AddPlacePayload
    meta: UiActionMeta | None = None


class RescheduleItineraryItem(WireModel):
    type: Literal["RescheduleItineraryItem"]
    payload: ReschedulePayload
    meta: UiActionMeta | None = None


class RemoveOrReplaceItem(WireModel):
    type: Literal["RemoveOrReplaceItem"]
    payload: RemoveOrReplacePayload
    meta: UiActionMeta | None = None


UiAction = Annotated[
    AddPlaceToItinerary | RescheduleItineraryItem | RemoveOrReplaceItem,
    Field(discriminator="type"),
]
