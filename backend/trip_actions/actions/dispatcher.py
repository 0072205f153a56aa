"""Action dispatcher.

Runs an ordered batch of assistant actions against a dispatch target:

1. the whole batch is validated; an invalid batch applies nothing
2. redelivered actions are dropped (same request id, or same type and payload)
3. request ids already applied by an earlier call are reported as skipped
4. each remaining action runs in its own unit of work and yields one result

A failing action never stops the ones after it.
"""

import hashlib
import json
import logging
import time
from contextlib import AbstractContextManager
from datetime import datetime, timedelta
from typing import Any, Literal, Protocol

from pydantic import BaseModel

from backend.trip_actions.actions import schedule as schedule_codec
from backend.trip_actions.actions.schema import parse_action_batch
from backend.trip_actions.actions.translate import (
    add_place_intent,
    destination_changes,
    draft_from_fields,
    replacement_intent,
    reschedule_intents,
)
from backend.trip_actions.config import get_settings
from backend.trip_actions.db.repositories import ProcessedRequestStore
from backend.trip_actions.errors import ActionError, ActionSkipped, ActionValidationError
from backend.trip_actions.models import (
    AddDestinationAction,
    AddPlaceToItinerary,
    AnyAction,
    BaseLocation,
    Destination,
    DestinationDraft,
    DispatchResult,
    DispatchStatus,
    MoveDestinationAction,
    RemoveOrReplaceItem,
    RescheduleItineraryItem,
    SetBaseLocationAction,
    ToggleMapOverlayAction,
    UpdateDestinationAction,
)
from backend.trip_actions.models.actions import OverlayPayload
from backend.trip_actions.utils.logging import StructuredActionLogger
from backend.trip_actions.utils.metrics import PrometheusActionMetrics

logger = logging.getLogger(__name__)


class DispatchTarget(Protocol):
    """Itinerary state an action is applied to.

    Implemented by the persisted store (server) and by the client mirror.
    Unknown ids raise NotFoundError/ForbiddenError on the server and
    ActionSkipped on the mirror.
    """

    def unit_of_work(self) -> AbstractContextManager[None]:
        ...

    def day_destinations(self, day_id: str) -> list[Destination]:
        ...

    def day_label(self, day_id: str) -> str:
        ...

    def ensure_trip(self, trip_id: str, day_id: str) -> None:
        """Reject a day that is not on the trip the action names."""
        ...

    def find_destination(self, day_id: str, destination_id: str) -> Destination:
        ...

    def insert_destination(self, day_id: str, draft: DestinationDraft, index: int) -> Destination:
        ...

    def update_destination(
        self, day_id: str, destination_id: str, changes: dict[str, Any]
    ) -> Destination:
        ...

    def move_destination(
        self, destination_id: str, from_day_id: str, to_day_id: str, index: int | None
    ) -> Destination:
        ...

    def remove_destination(self, day_id: str, destination_id: str) -> int:
        """Remove a destination and return the position it held."""
        ...

    def base_locations(self, day_id: str) -> list[BaseLocation]:
        ...

    def set_base_locations(self, day_id: str, locations: list[BaseLocation]) -> None:
        ...

    def focus(self, day_id: str, destination: Destination | None) -> None:
        ...

    def set_overlay(self, overlay: str, enabled: bool | None, payload: OverlayPayload | None) -> None:
        ...


def request_id_of(action: Any) -> str | None:
    """Caller-supplied id of an action, from ``meta.requestId`` or ``metadata.actionId``."""
    meta = getattr(action, "meta", None)
    if meta is not None:
        return meta.request_id
    metadata = getattr(action, "metadata", None)
    if metadata is not None:
        return metadata.action_id
    return None


def dedup_key(action: Any) -> str:
    """Key identifying redelivered copies of the same action."""
    request_id = request_id_of(action)
    if request_id:
        return f"meta:{request_id}"

    body = action.model_dump(
        mode="json", by_alias=True, exclude_none=True, exclude={"meta", "metadata"}
    )
    digest = hashlib.sha256(json.dumps(body, sort_keys=True).encode()).hexdigest()
    return f"payload:{digest}"


class RequestLedger:
    """Per-user view of the processed request store."""

    def __init__(
        self, store: ProcessedRequestStore, user_id: str, ttl_seconds: int | None = None
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._ttl = timedelta(
            seconds=ttl_seconds if ttl_seconds is not None else get_settings().processed_request_ttl_seconds
        )

    def seen(self, request_id: str) -> bool:
        return self._store.get(request_id, self._user_id) is not None

    def remember(self, request_id: str, action_type: str) -> None:
        self._store.set_processed(
            request_id, self._user_id, action_type, datetime.now() + self._ttl
        )


class ActionDispatcher:
    """Validates, deduplicates and applies action batches to one target."""

    def __init__(
        self,
        target: DispatchTarget,
        *,
        ledger: RequestLedger | None = None,
        owner: str | None = None,
        max_actions: int | None = None,
        vocabulary: Literal["any", "intent", "ui"] = "any",
        metrics: PrometheusActionMetrics | None = None,
        action_logger: StructuredActionLogger | None = None,
    ) -> None:
        self._target = target
        self._ledger = ledger
        self._owner = owner
        self._max_actions = max_actions
        self._vocabulary = vocabulary
        self._metrics = metrics or PrometheusActionMetrics()
        self._action_logger = action_logger or StructuredActionLogger()

    def dispatch(
        self, actions: list[Any] | None, meta: dict[str, Any] | None = None
    ) -> list[DispatchResult]:
        """Apply a batch and return one result per surviving action, in order.

        Args:
            actions: Raw action payloads or already parsed action models
            meta: Caller context attached to log records

        Returns:
            Results for every action left after deduplication; empty when the
            batch fails validation
        """
        if not actions:
            return []

        raw = [a.to_wire() if isinstance(a, BaseModel) else a for a in actions]
        try:
            parsed = parse_action_batch(
                raw, strict=True, max_actions=self._max_actions, vocabulary=self._vocabulary
            )
        except ActionValidationError as e:
            self._metrics.inc_batch_rejected()
            self._action_logger.log_batch_rejected(e.as_detail(), meta)
            return []

        results: list[DispatchResult] = []
        seen_keys: set[str] = set()

        for action in parsed:
            key = dedup_key(action)
            if key in seen_keys:
                self._metrics.inc_duplicate("batch")
                continue
            seen_keys.add(key)
            results.append(self._run(action, meta))

        return results

    def _run(self, action: AnyAction, meta: dict[str, Any] | None) -> DispatchResult:
        start_time = time.perf_counter()
        request_id = request_id_of(action)

        if request_id and self._ledger is not None and self._ledger.seen(request_id):
            self._metrics.inc_duplicate("replay")
            result = DispatchResult(
                action=action,
                status=DispatchStatus.skipped,
                reason=f"Duplicate request {request_id} was already applied.",
            )
        else:
            result = self._apply_in_unit_of_work(action, request_id, meta)

        latency_ms = (time.perf_counter() - start_time) * 1000
        self._metrics.record_outcome(action.type, result.status.value, latency_ms)
        self._action_logger.log_outcome(
            action_type=action.type,
            status=result.status.value,
            latency_ms=latency_ms,
            request_id=request_id,
            owner=self._owner,
            reason=result.reason,
        )
        return result

    def _apply_in_unit_of_work(
        self, action: AnyAction, request_id: str | None, meta: dict[str, Any] | None
    ) -> DispatchResult:
        try:
            with self._target.unit_of_work():
                summary = self._apply(action)
                if request_id and self._ledger is not None:
                    self._ledger.remember(request_id, action.type)
        except ActionSkipped as e:
            return DispatchResult(action=action, status=DispatchStatus.skipped, reason=e.reason)
        except ActionError as e:
            return DispatchResult(action=action, status=DispatchStatus.failed, reason=str(e))
        except Exception as e:
            logger.exception(
                "Failed to apply assistant action",
                extra={"structured": {"action_type": action.type, "meta": meta or {}}},
            )
            return DispatchResult(
                action=action, status=DispatchStatus.failed, reason=str(e) or type(e).__name__
            )

        return DispatchResult(action=action, status=DispatchStatus.applied, summary=summary)

    def _apply(self, action: AnyAction) -> str:
        """Apply one action to the target and return its summary."""
        if isinstance(action, AddDestinationAction):
            return self._add_destination(action)
        if isinstance(action, UpdateDestinationAction):
            return self._update_destination(action)
        if isinstance(action, SetBaseLocationAction):
            return self._set_base_location(action)
        if isinstance(action, MoveDestinationAction):
            return self._move_destination(action)
        if isinstance(action, ToggleMapOverlayAction):
            return self._toggle_overlay(action)
        if isinstance(action, AddPlaceToItinerary):
            self._target.ensure_trip(action.payload.trip_id, action.payload.day_id)
            return self._add_destination(add_place_intent(action))
        if isinstance(action, RescheduleItineraryItem):
            return self._reschedule(action)
        if isinstance(action, RemoveOrReplaceItem):
            return self._remove_or_replace(action)
        raise ActionValidationError(f"Unsupported action type: {action.type}")

    # Server vocabulary

    def _add_destination(self, action: AddDestinationAction) -> str:
        existing = self._target.day_destinations(action.day_id)
        fields = action.destination
        if fields.coordinates is None:
            raise ActionSkipped("Missing coordinates for place insertion.")

        confidence = action.metadata.confidence if action.metadata else None
        draft = draft_from_fields(fields, confidence=confidence)

        if action.insert_index is not None:
            index = min(action.insert_index, len(existing))
        else:
            index = schedule_codec.insertion_index(
                existing, draft.schedule.start_minute if draft.schedule else None
            )

        created = self._target.insert_destination(action.day_id, draft, index)
        self._target.focus(action.day_id, created)
        return f"Added “{created.name}” to {self._target.day_label(action.day_id)}"

    def _update_destination(self, action: UpdateDestinationAction) -> str:
        current = self._target.find_destination(action.day_id, action.destination_id)
        changes = destination_changes(current, action.changes)
        updated = self._target.update_destination(action.day_id, action.destination_id, changes)
        self._target.focus(action.day_id, updated)
        return f"Updated “{updated.name}” on {self._target.day_label(action.day_id)}"

    def _set_base_location(self, action: SetBaseLocationAction) -> str:
        fields = action.location
        location = BaseLocation(
            name=fields.name,
            coordinates=fields.coordinates,
            context=fields.context,
            notes=fields.notes,
            links=fields.links or [],
        )

        if action.replace_existing:
            locations = [location]
        else:
            locations = self._target.base_locations(action.day_id)
            index = len(locations) if action.location_index is None else min(action.location_index, len(locations))
            locations.insert(index, location)

        self._target.set_base_locations(action.day_id, locations)
        label = self._target.day_label(action.day_id)
        return f"Updated base location for {label} to “{fields.name}”"

    def _move_destination(self, action: MoveDestinationAction) -> str:
        moved = self._target.move_destination(
            action.destination_id, action.from_day_id, action.to_day_id, action.insert_index
        )
        self._target.focus(action.to_day_id, moved)
        from_label = self._target.day_label(action.from_day_id)
        to_label = self._target.day_label(action.to_day_id)
        return f"Moved “{moved.name}” from {from_label} to {to_label}"

    def _toggle_overlay(self, action: ToggleMapOverlayAction) -> str:
        self._target.set_overlay(action.overlay, action.enabled, action.payload)
        state_label = "Hid" if action.enabled is False else "Showing"
        return f"{state_label} {action.overlay.replace('_', ' ')} overlay"

    # LLM vocabulary

    def _reschedule(self, action: RescheduleItineraryItem) -> str:
        payload = action.payload
        if payload.locked_dependencies and not payload.user_confirmed:
            raise ActionSkipped(
                "Reschedule requires explicit confirmation due to locked dependencies."
            )

        self._target.ensure_trip(payload.trip_id, payload.day_id)
        self._target.ensure_trip(payload.trip_id, payload.new_day_id)
        self._target.find_destination(payload.day_id, payload.item_id)
        receiving = self._target.day_destinations(payload.new_day_id)
        start_minute = schedule_codec.minutes_from_time(payload.new_start_time)
        index = schedule_codec.insertion_index(receiving, start_minute, exclude_id=payload.item_id)

        move, update = reschedule_intents(payload, index)
        self._move_destination(move)
        self._update_destination(update)

        moved = self._target.find_destination(payload.new_day_id, payload.item_id)
        label = self._target.day_label(payload.new_day_id)
        when = schedule_codec.format_minutes(start_minute) if start_minute is not None else "an open slot"
        return f"Rescheduled “{moved.name}” to {when} on {label}"

    def _remove_or_replace(self, action: RemoveOrReplaceItem) -> str:
        payload = action.payload
        if not payload.user_confirmed:
            raise ActionSkipped("Removal or replacement requires explicit user confirmation.")

        self._target.ensure_trip(payload.trip_id, payload.day_id)
        existing = self._target.find_destination(payload.day_id, payload.item_id)
        ordered = self._target.day_destinations(payload.day_id)
        position = next(i for i, item in enumerate(ordered) if item.id == existing.id)

        # Built before removal so a replacement without coordinates leaves the day untouched
        replacement = None
        if payload.mode == "replace":
            replacement = replacement_intent(payload, existing, position)

        self._target.remove_destination(payload.day_id, payload.item_id)
        self._target.focus(payload.day_id, None)
        label = self._target.day_label(payload.day_id)

        if replacement is None:
            return f"Removed “{existing.name}” from {label}"

        self._add_destination(replacement)
        return f"Replaced “{existing.name}” with “{replacement.destination.name}” on {label}"
