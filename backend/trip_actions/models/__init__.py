"""Models package - re-exports for convenience."""

from backend.trip_actions.models.actions import (
    ActionEnvelope,
    ActionMetadata,
    AddDestinationAction,
    AssistantActionIntent,
    BaseLocationFields,
    DestinationChanges,
    DestinationFields,
    MoveDestinationAction,
    OverlayPayload,
    SetBaseLocationAction,
    StructuredPlan,
    ToggleMapOverlayAction,
    UpdateDestinationAction,
)
from backend.trip_actions.models.common import Coordinates, LocationLink
from backend.trip_actions.models.dispatch import DispatchResult, DispatchStatus
from backend.trip_actions.models.itinerary import (
    BaseLocation,
    Day,
    DaySnapshot,
    Destination,
    DestinationDraft,
    Schedule,
    Trip,
    TripSnapshot,
)
from backend.trip_actions.models.ui_actions import (
    AddPlacePayload,
    AddPlaceToItinerary,
    RemoveOrReplaceItem,
    RemoveOrReplacePayload,
    ReplacementDetails,
    ReschedulePayload,
    RescheduleItineraryItem,
    UiAction,
    UiActionMeta,
)

AnyAction = (
    AddDestinationAction
    | UpdateDestinationAction
    | SetBaseLocationAction
    | MoveDestinationAction
    | ToggleMapOverlayAction
    | AddPlaceToItinerary
    | RescheduleItineraryItem
    | RemoveOrReplaceItem
)

__all__ = [
    # Common
    "Coordinates",
    "LocationLink",
    # Server vocabulary
    "AssistantActionIntent",
    "AddDestinationAction",
    "UpdateDestinationAction",
    "SetBaseLocationAction",
    "MoveDestinationAction",
    "ToggleMapOverlayAction",
    "ActionMetadata",
    "ActionEnvelope",
    "StructuredPlan",
    "DestinationFields",
    "DestinationChanges",
    "BaseLocationFields",
    "OverlayPayload",
    # LLM vocabulary
    "UiAction",
    "UiActionMeta",
    "AddPlaceToItinerary",
    "RescheduleItineraryItem",
    "RemoveOrReplaceItem",
    "AddPlacePayload",
    "ReschedulePayload",
    "RemoveOrReplacePayload",
    "ReplacementDetails",
    "AnyAction",
    # Itinerary
    "Trip",
    "Day",
    "DaySnapshot",
    "TripSnapshot",
    "Destination",
    "DestinationDraft",
    "BaseLocation",
    "Schedule",
    # Dispatch
    "DispatchResult",
    "DispatchStatus",
]
