"""Tests for health check endpoints."""

from __future__ import annotations

import asyncio

from fastapi.testclient import TestClient

from main import app
from services.render_session import RenderSessionManager


class TestHealthCheck:
    """Tests for basic health check endpoint."""

    def test_health_check_returns_success(self, client: TestClient) -> None:
        """Test basic health check returns healthy status."""
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"]["status"] == "healthy"
        assert "Enrollment Letter Service" in data["data"]["message"]
        assert data["message"] == "Health check successful"

    def test_health_check_response_structure(self, client: TestClient) -> None:
        """Test health check response matches ApiResponse schema."""
        response = client.get("/api/v1/health")

        data = response.json()
        assert "success" in data
        assert "data" in data
        assert "message" in data
        assert "timestamp" in data
        assert isinstance(data["data"], dict)

    def test_unknown_route_uses_error_envelope(self, client: TestClient) -> None:
        response = client.get("/api/v1/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["success"] is False

    def test_health_reports_browser_state(self, client: TestClient) -> None:
        # The lifespan is not entered by the test client fixture
        response = client.get("/api/v1/health")

        data = response.json()["data"]
        assert data["service"] == "Enrollment Letter Service"
        assert data["browser"] == "not_started"

    def test_health_reports_connected_browser(
        self, client: TestClient, sessions: RenderSessionManager
    ) -> None:
        app.state.render_sessions = sessions
        try:
            asyncio.run(sessions.acquire_session())
            response = client.get("/api/v1/health")
        finally:
            del app.state.render_sessions

        assert response.json()["data"]["browser"] == "connected"
