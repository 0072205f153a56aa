"""Integration tests for the /actions endpoints."""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from backend.trip_actions.api.dependencies import (
    get_audit_log,
    get_itinerary_store,
    get_processed_requests,
)
from backend.trip_actions.db.engine import get_session
from backend.trip_actions.db.inmemory import (
    InMemoryAuditLog,
    InMemoryItineraryStore,
    InMemoryProcessedRequestStore,
)
from backend.trip_actions.db.sql_repositories import SqlItineraryStore
from backend.trip_actions.main import app
from tests.fixtures import (
    BERLIN_DAY_1,
    ROME_DAY_1,
    ROME_DAY_2,
    ROME_TRIP_ID,
    TREVI_ID,
    USER_ID,
    order_of,
)

AUTH = {"Authorization": f"Bearer {USER_ID}"}


@pytest.fixture
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture
def client(store: InMemoryItineraryStore, audit_log: InMemoryAuditLog) -> Iterator[TestClient]:
    """Test client wired to in-memory repositories."""
    processed = InMemoryProcessedRequestStore()
    app.dependency_overrides[get_itinerary_store] = lambda: store
    app.dependency_overrides[get_audit_log] = lambda: audit_log
    app.dependency_overrides[get_processed_requests] = lambda: processed
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_destination(day_id: str = ROME_DAY_1, name: str = "Gelato") -> dict[str, Any]:
    return {
        "type": "add_destination",
        "dayId": day_id,
        "destination": {"name": name, "coordinates": [12.48, 41.9], "startTimeIso": "12:00"},
    }


class TestPreview:
    def test_preview_returns_summary_and_audits(
        self, client: TestClient, audit_log: InMemoryAuditLog, store: InMemoryItineraryStore
    ) -> None:
        response = client.post(
            "/actions/preview",
            json={"suggestedAction": add_destination(ROME_DAY_2), "rationale": "Free afternoon"},
            headers=AUTH,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["preview"]["summary"] == "Add “Gelato” to Day 2 (Apr 11)"
        assert data["preview"]["requiresConfirmation"] is True
        assert data["rationale"] == "Free afternoon"
        assert [(r.event, r.action_type) for r in audit_log.records] == [("preview", "add_destination")]
        assert len(store.list_destinations(ROME_DAY_2)) == 1

    def test_preview_other_users_day_is_403(self, client: TestClient) -> None:
        response = client.post(
            "/actions/preview",
            json={"suggestedAction": add_destination(BERLIN_DAY_1)},
            headers=AUTH,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden"

    def test_preview_without_auth_uses_dev_user(self, client: TestClient) -> None:
        response = client.post("/actions/preview", json={"suggestedAction": add_destination()})

        assert response.status_code == 403

    def test_preview_unknown_day_is_404(self, client: TestClient) -> None:
        response = client.post(
            "/actions/preview",
            json={"suggestedAction": add_destination("missing-day")},
            headers=AUTH,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_preview_invalid_action_is_400(
        self, client: TestClient, audit_log: InMemoryAuditLog
    ) -> None:
        response = client.post(
            "/actions/preview",
            json={"suggestedAction": {"type": "add_destination", "dayId": ROME_DAY_1, "destination": {}}},
            headers=AUTH,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InvalidRequest"
        assert {"path": "suggestedAction.destination.name", "reason": "Field required"} in data["details"]
        assert audit_log.records == []

    def test_invalid_bearer_is_401(self, client: TestClient) -> None:
        response = client.post(
            "/actions/preview",
            json={"suggestedAction": add_destination()},
            headers={"Authorization": "Token abc"},
        )

        assert response.status_code == 401


class TestExecute:
    def test_execute_batch(
        self, client: TestClient, store: InMemoryItineraryStore, audit_log: InMemoryAuditLog
    ) -> None:
        response = client.post(
            "/actions/execute",
            json={
                "actions": [
                    add_destination(),
                    {
                        "type": "update_destination",
                        "dayId": BERLIN_DAY_1,
                        "destinationId": "55555555-5555-4555-8555-555555555555",
                        "changes": {"name": "Mine"},
                    },
                ]
            },
            headers=AUTH,
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["status"] for r in results] == ["applied", "failed"]
        assert results[0]["summary"] == "Added “Gelato” to Day 1 (Apr 10)"
        assert order_of(store.list_destinations(ROME_DAY_1)) == [
            ("Vatican Museums", 0),
            ("Gelato", 1),
            ("Trevi Fountain", 2),
        ]
        # Only applied actions are audited
        assert [(r.event, r.action_type) for r in audit_log.records] == [("execute", "add_destination")]

    def test_execute_single_action(self, client: TestClient) -> None:
        response = client.post(
            "/actions/execute",
            json={"action": {"type": "toggle_map_overlay", "overlay": "day_routes"}},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["summary"] == "Showing day routes overlay"

    def test_execute_invalid_batch_is_400(
        self, client: TestClient, store: InMemoryItineraryStore
    ) -> None:
        response = client.post(
            "/actions/execute",
            json={"actions": [add_destination(), {"type": "add_destination", "dayId": ""}]},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidRequest"
        assert len(store.list_destinations(ROME_DAY_1)) == 2

    def test_execute_rejects_assistant_vocabulary(self, client: TestClient) -> None:
        response = client.post(
            "/actions/execute",
            json={"action": {"type": "AddPlaceToItinerary", "payload": {}}},
            headers=AUTH,
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"actions": [], "action": None},
            {"actions": [{"type": "toggle_map_overlay", "overlay": "day_routes"}], "action": {}},
        ],
    )
    def test_execute_requires_exactly_one_form(self, client: TestClient, body: dict) -> None:
        response = client.post("/actions/execute", json=body, headers=AUTH)

        assert response.status_code == 400

    def test_execute_batch_limit(self, client: TestClient) -> None:
        actions = [add_destination(name=f"Stop {i}") for i in range(7)]

        response = client.post("/actions/execute", json={"actions": actions}, headers=AUTH)

        assert response.status_code == 400


class TestDispatch:
    def test_dispatch_assistant_actions(
        self, client: TestClient, store: InMemoryItineraryStore
    ) -> None:
        response = client.post(
            "/actions/dispatch",
            json={
                "actions": [
                    {
                        "type": "RemoveOrReplaceItem",
                        "payload": {
                            "tripId": ROME_TRIP_ID,
                            "dayId": ROME_DAY_1,
                            "itemId": TREVI_ID,
                            "mode": "remove",
                            "userConfirmed": False,
                        },
                        "meta": {"requestId": "req-api-1", "issuedAt": "2025-04-01T08:00:00Z"},
                    }
                ],
                "meta": {"conversationId": "c-1"},
            },
            headers=AUTH,
        )

        assert response.status_code == 200
        [result] = response.json()["results"]
        assert result["status"] == "skipped"
        assert result["action"]["meta"]["requestId"] == "req-api-1"
        assert store.get_destination(TREVI_ID) is not None

    def test_dispatch_invalid_batch_returns_no_results(
        self, client: TestClient, store: InMemoryItineraryStore
    ) -> None:
        response = client.post(
            "/actions/dispatch",
            json={"actions": [{"type": "AddPlaceToItinerary", "payload": {"fallbackQuery": "x"}}]},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json() == {"results": []}
        assert len(store.list_destinations(ROME_DAY_1)) == 2


def test_unhandled_error_is_500(store: InMemoryItineraryStore) -> None:
    def broken_store() -> InMemoryItineraryStore:
        raise RuntimeError("database exploded")

    app.dependency_overrides[get_itinerary_store] = broken_store
    app.dependency_overrides[get_audit_log] = InMemoryAuditLog
    app.dependency_overrides[get_processed_requests] = InMemoryProcessedRequestStore
    try:
        response = TestClient(app, raise_server_exceptions=False).post(
            "/actions/execute",
            json={"action": {"type": "toggle_map_overlay", "overlay": "day_routes"}},
            headers=AUTH,
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "InternalError"}


def test_execute_against_sql_session(sql_session: Session) -> None:
    """Real repository dependencies over a seeded SQLite session."""

    def session_override() -> Iterator[Session]:
        yield sql_session

    app.dependency_overrides[get_session] = session_override
    try:
        response = TestClient(app).post(
            "/actions/execute",
            json={"actions": [add_destination()]},
            headers=AUTH,
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["results"][0]["status"] == "applied"
    store = SqlItineraryStore(sql_session)
    assert [name for name, _ in order_of(store.list_destinations(ROME_DAY_1))] == [
        "Vatican Museums",
        "Gelato",
        "Trevi Fountain",
    ]
