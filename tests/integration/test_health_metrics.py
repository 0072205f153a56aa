"""Integration tests for /healthz and /metrics endpoints."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from sqlalchemy import Engine, create_engine

from backend.trip_actions.api.routes.health import check_db
from backend.trip_actions.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("backend.trip_actions.api.routes.health.check_db")
    def test_healthz_returns_200_when_db_ok(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 200 when the database is reachable."""
        mock_check_db.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["db"] == "ok"

    @patch("backend.trip_actions.api.routes.health.check_db")
    def test_healthz_returns_503_when_db_fails(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "connection refused")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "connection refused"

    def test_check_db_against_sqlite(self, sqlite_engine: Engine) -> None:
        assert check_db(sqlite_engine) == (True, "ok")

    def test_check_db_defaults_to_application_engine(self, sqlite_engine: Engine) -> None:
        with patch(
            "backend.trip_actions.api.routes.health.get_engine", return_value=sqlite_engine
        ) as mock_get_engine:
            assert check_db() == (True, "ok")

        mock_get_engine.assert_called_once_with()

    def test_check_db_reports_error_type(self, tmp_path: Path) -> None:
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'trip.db'}")

        ok, status = check_db(engine)
        engine.dispose()

        assert ok is False
        assert status == "error: OperationalError"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        """Test /metrics returns Prometheus text format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    def test_metrics_includes_action_metrics(self, client: TestClient) -> None:
        """Test /metrics includes dispatcher metrics once recorded."""
        from backend.trip_actions.utils.metrics import PrometheusActionMetrics

        labels = {"type": "add_destination", "status": "applied"}
        before = REGISTRY.get_sample_value("assistant_actions_total", labels) or 0.0
        metrics = PrometheusActionMetrics()
        metrics.record_outcome("add_destination", "applied", 12.5)
        metrics.inc_batch_rejected()
        metrics.inc_duplicate("batch")

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.text
        assert REGISTRY.get_sample_value("assistant_actions_total", labels) == before + 1
        assert "assistant_actions_total{" in text
        assert "assistant_action_latency_ms_bucket" in text
        assert "assistant_action_batches_rejected_total" in text
        assert 'assistant_action_duplicates_dropped_total{scope="batch"}' in text


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_returns_api_info(self, client: TestClient) -> None:
        """Test root endpoint returns API information."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Trip Actions API"
        assert data["version"] == "0.1.0"
