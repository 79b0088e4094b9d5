"""Integration tests for /health, /healthz and /metrics endpoints."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from draftsync.app.adapters.fixtures import FixtureRenderer, InMemoryRemoteStorage
from draftsync.app.bootstrap import build_services
from draftsync.app.config import Settings
from draftsync.app.llm.client import DeterministicStubClient
from draftsync.app.main import create_app


def _client(tmp_path: Path, **settings: object) -> TestClient:
    output_dir = tmp_path / "output"
    services = build_services(
        Settings(_env_file=None, output_dir=str(output_dir), **settings),
        storage=InMemoryRemoteStorage(),
        renderer=FixtureRenderer(output_dir=output_dir),
        llm=DeterministicStubClient(),
    )
    return TestClient(create_app(services))


@pytest.fixture
def client(tmp_path: Path) -> TestClient:
    """Create test client over in-memory services."""
    return _client(tmp_path)


class TestHealthEndpoint:
    """Test /health and /healthz."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_healthz_ok_without_database(self, client: TestClient) -> None:
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"] == {"db": "not_configured", "renderer": "ok"}

    def test_healthz_checks_configured_database(self, tmp_path: Path) -> None:
        client = _client(tmp_path, database_url="sqlite:///:memory:")

        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["components"]["db"] == "ok"

    @patch("draftsync.app.api.routes.health.check_renderer", new_callable=AsyncMock)
    def test_healthz_returns_503_when_renderer_fails(
        self, mock_check_renderer: AsyncMock, client: TestClient
    ) -> None:
        mock_check_renderer.return_value = (False, "error: connection refused")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["renderer"] == "error: connection refused"
        assert data["components"]["db"] == "not_configured"

    @patch("draftsync.app.api.routes.health.check_db", new_callable=AsyncMock)
    def test_healthz_returns_503_when_db_fails(
        self, mock_check_db: AsyncMock, client: TestClient
    ) -> None:
        mock_check_db.return_value = (False, "error: OperationalError")

        response = client.get("/healthz")

        assert response.status_code == 503
        assert response.json()["components"]["db"] == "error: OperationalError"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    def test_metrics_includes_dispatch_and_sync_metrics(self, client: TestClient) -> None:
        from draftsync.app.utils.metrics import (
            lock_retries_total,
            remote_sync_total,
            tool_dispatch_errors_total,
            tool_dispatch_latency_ms,
        )

        tool_dispatch_latency_ms.labels(tool="test_tool", outcome="success").observe(100)
        tool_dispatch_errors_total.labels(tool="test_tool", code="TOOL_FAILED").inc()
        remote_sync_total.labels(direction="push", outcome="ok").inc()
        lock_retries_total.inc()

        text = client.get("/metrics").text

        assert "tool_dispatch_latency_ms" in text
        assert "tool_dispatch_errors_total" in text
        assert "remote_sync_total" in text
        assert "lock_retries_total" in text


def test_root_returns_api_info(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "Draftsync API", "version": "0.1.0"}
