"""Tests for action previews."""

import pytest

from backend.trip_actions.actions.ownership import OwnershipResolver
from backend.trip_actions.actions.preview import (
    PreviewContext,
    build_preview,
    format_field_list,
    resolve_preview_context,
)
from backend.trip_actions.actions.schema import parse_any_action
from backend.trip_actions.db.inmemory import InMemoryItineraryStore
from backend.trip_actions.errors import ActionValidationError, ForbiddenError, NotFoundError
from tests.fixtures import (
    BERLIN_DAY_1,
    PARIS_DAY_1,
    PARIS_TRIP_ID,
    ROME_DAY_1,
    ROME_DAY_2,
    ROME_TRIP_ID,
    TREVI_ID,
    USER_ID,
    VATICAN_ID,
)


def preview_for(store: InMemoryItineraryStore, raw: dict):
    action = parse_any_action(raw)
    context = resolve_preview_context(OwnershipResolver(store), USER_ID, action)
    return build_preview(action, context)


def add_place(day_id: str = ROME_DAY_1) -> dict:
    return {
        "type": "AddPlaceToItinerary",
        "payload": {
            "fallbackQuery": "Colosseum",
            "tripId": ROME_TRIP_ID,
            "dayId": day_id,
            "startTime": "2025-04-10T10:00:00",
            "durationMinutes": 90,
            "confidence": 0.7,
            "lat": 41.89,
            "lng": 12.49,
        },
    }


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ([], "details"),
        (["name"], "name"),
        (["name", "coordinates"], "name and location"),
        (["name", "start_time_iso", "links"], "name, start time and links"),
    ],
)
def test_format_field_list(fields: list[str], expected: str) -> None:
    assert format_field_list(fields) == expected


def test_add_destination_preview(store: InMemoryItineraryStore) -> None:
    preview = preview_for(
        store,
        {"type": "add_destination", "dayId": ROME_DAY_2, "destination": {"name": "Gelato"}},
    )

    assert preview.summary == "Add “Gelato” to Day 2 (Apr 11)"
    assert preview.requires_confirmation is True
    assert preview.details == {"dayId": ROME_DAY_2, "insertIndex": None}


def test_preview_falls_back_to_raw_ids_without_context() -> None:
    action = parse_any_action(
        {"type": "add_destination", "dayId": ROME_DAY_2, "destination": {"name": "Gelato"}}
    )

    assert build_preview(action).summary == f"Add “Gelato” to day {ROME_DAY_2}"


def test_update_preview_lists_fields_in_stable_order(store: InMemoryItineraryStore) -> None:
    preview = preview_for(
        store,
        {
            "type": "update_destination",
            "dayId": ROME_DAY_1,
            "destinationId": TREVI_ID,
            "changes": {"startTimeIso": "16:00", "name": "Trevi at dusk"},
        },
    )

    assert preview.summary == "Update name and start time for “Trevi Fountain” (Day 1 (Apr 10))"
    assert preview.details["fields"] == ["name", "start time"]


def test_update_preview_rejects_destination_on_other_day(store: InMemoryItineraryStore) -> None:
    with pytest.raises(ActionValidationError, match="dayId"):
        preview_for(
            store,
            {
                "type": "update_destination",
                "dayId": ROME_DAY_2,
                "destinationId": TREVI_ID,
                "changes": {"name": "Elsewhere"},
            },
        )


def test_set_base_location_preview(store: InMemoryItineraryStore) -> None:
    preview = preview_for(
        store,
        {"type": "set_base_location", "dayId": ROME_DAY_1, "location": {"name": "Hotel Artemide"}},
    )

    assert preview.summary == "Set base location for Day 1 (Apr 10) to “Hotel Artemide”"
    assert preview.details["replaceExisting"] is True


def test_move_within_day_is_a_reorder(store: InMemoryItineraryStore) -> None:
    preview = preview_for(
        store,
        {
            "type": "move_destination",
            "destinationId": VATICAN_ID,
            "fromDayId": ROME_DAY_1,
            "toDayId": ROME_DAY_1,
            "insertIndex": 1,
        },
    )

    assert preview.summary == "Reorder “Vatican Museums” within Day 1 (Apr 10)"


def test_move_between_days(store: InMemoryItineraryStore) -> None:
    preview = preview_for(
        store,
        {
            "type": "move_destination",
            "destinationId": VATICAN_ID,
            "fromDayId": ROME_DAY_1,
            "toDayId": ROME_DAY_2,
        },
    )

    assert preview.summary == "Move “Vatican Museums” from Day 1 (Apr 10) to Day 2 (Apr 11)"
    assert preview.details["toDayId"] == ROME_DAY_2


def test_move_across_trips_is_forbidden(store: InMemoryItineraryStore) -> None:
    with pytest.raises(ForbiddenError, match="same trip"):
        preview_for(
            store,
            {
                "type": "move_destination",
                "destinationId": VATICAN_ID,
                "fromDayId": ROME_DAY_1,
                "toDayId": PARIS_DAY_1,
            },
        )


def test_move_with_wrong_origin_day(store: InMemoryItineraryStore) -> None:
    with pytest.raises(ActionValidationError, match="fromDayId"):
        preview_for(
            store,
            {
                "type": "move_destination",
                "destinationId": VATICAN_ID,
                "fromDayId": ROME_DAY_2,
                "toDayId": ROME_DAY_1,
            },
        )


@pytest.mark.parametrize(
    ("enabled", "summary"),
    [
        (None, "Show map overlay: day_routes"),
        (True, "Show map overlay: day_routes"),
        (False, "Hide map overlay: day_routes"),
    ],
)
def test_toggle_overlay_preview(
    store: InMemoryItineraryStore, enabled: bool | None, summary: str
) -> None:
    raw: dict = {"type": "toggle_map_overlay", "overlay": "day_routes"}
    if enabled is not None:
        raw["enabled"] = enabled

    preview = preview_for(store, raw)

    assert preview.summary == summary
    assert preview.details["enabled"] is (enabled is not False)


def test_add_place_preview_includes_start_time(store: InMemoryItineraryStore) -> None:
    preview = preview_for(store, add_place())

    assert preview.summary == "Add “Colosseum” to Day 1 (Apr 10) at 10:00"
    assert preview.details["durationMinutes"] == 90


def test_reschedule_preview(store: InMemoryItineraryStore) -> None:
    preview = preview_for(
        store,
        {
            "type": "RescheduleItineraryItem",
            "payload": {
                "tripId": ROME_TRIP_ID,
                "dayId": ROME_DAY_1,
                "itemId": TREVI_ID,
                "newDayId": ROME_DAY_2,
                "newStartTime": "11:00",
                "newDurationMinutes": 30,
            },
        },
    )

    assert preview.summary == "Reschedule “Trevi Fountain” to Day 2 (Apr 11) at 11:00"
    assert preview.details["lockedDependencies"] == []


@pytest.mark.parametrize(
    ("mode", "replacement", "summary"),
    [
        ("remove", None, "Remove “Trevi Fountain” from Day 1 (Apr 10)"),
        (
            "replace",
            {"fallbackQuery": "Spanish Steps", "lat": 41.906, "lng": 12.482},
            "Replace “Trevi Fountain” with “Spanish Steps” on Day 1 (Apr 10)",
        ),
    ],
)
def test_remove_or_replace_preview(
    store: InMemoryItineraryStore, mode: str, replacement: dict | None, summary: str
) -> None:
    payload: dict = {
        "tripId": ROME_TRIP_ID,
        "dayId": ROME_DAY_1,
        "itemId": TREVI_ID,
        "mode": mode,
        "userConfirmed": False,
    }
    if replacement is not None:
        payload["replacement"] = replacement

    preview = preview_for(store, {"type": "RemoveOrReplaceItem", "payload": payload})

    assert preview.summary == summary
    assert preview.requires_confirmation is True


def test_preview_of_other_users_day_is_forbidden(store: InMemoryItineraryStore) -> None:
    with pytest.raises(ForbiddenError):
        preview_for(store, add_place(day_id=BERLIN_DAY_1))


def test_preview_of_unknown_day_is_not_found(store: InMemoryItineraryStore) -> None:
    with pytest.raises(NotFoundError):
        preview_for(store, add_place(day_id="missing-day"))


def test_preview_wire_shape() -> None:
    action = parse_any_action({"type": "toggle_map_overlay", "overlay": "explore_markers", "enabled": False})

    wire = build_preview(action, PreviewContext()).to_wire()

    assert wire["requiresConfirmation"] is True
    assert wire["action"] == {"type": "toggle_map_overlay", "overlay": "explore_markers", "enabled": False}


@pytest.mark.parametrize(
    "payload",
    [
        {
            "type": "AddPlaceToItinerary",
            "payload": {
                "fallbackQuery": "Colosseum",
                "tripId": PARIS_TRIP_ID,
                "dayId": ROME_DAY_1,
                "startTime": "10:00",
                "durationMinutes": 90,
                "confidence": 0.7,
            },
        },
        {
            "type": "RescheduleItineraryItem",
            "payload": {
                "tripId": PARIS_TRIP_ID,
                "dayId": ROME_DAY_1,
                "itemId": TREVI_ID,
                "newDayId": ROME_DAY_2,
                "newStartTime": "11:00",
                "newDurationMinutes": 30,
            },
        },
        {
            "type": "RemoveOrReplaceItem",
            "payload": {
                "tripId": PARIS_TRIP_ID,
                "dayId": ROME_DAY_1,
                "itemId": TREVI_ID,
                "mode": "remove",
                "userConfirmed": False,
            },
        },
    ],
    ids=["add", "reschedule", "remove"],
)
def test_preview_of_day_on_another_trip_is_forbidden(
    store: InMemoryItineraryStore, payload: dict
) -> None:
    with pytest.raises(ForbiddenError, match="tripId"):
        preview_for(store, payload)
