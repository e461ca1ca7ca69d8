"""Tests for the letter webhook endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from core.exceptions import (
    ChildFetchError,
    IntegrationError,
    MissingFieldsError,
    RenderError,
)
from dependencies.services import get_letter_service
from main import app
from services.letter_service import LetterResult, LetterService


@pytest.fixture
def letter_service(client: TestClient) -> AsyncMock:
    service = AsyncMock(spec=LetterService)
    result = LetterResult(
        note_id="note-1", file_id="9001", file_url="https://files.example/letter.pdf"
    )
    service.create_enrollment_letter.return_value = result
    service.create_acceptance_letter.return_value = result
    app.dependency_overrides[get_letter_service] = lambda: service
    return service


class TestCreateLetters:
    def test_enrollment_success(
        self, client: TestClient, letter_service: AsyncMock
    ) -> None:
        payload = {
            "firstname": "Ada",
            "lastname": "Lovelace",
            "recordID": 55,
            "student_id": "S100",
            "hs_object_id": "ignored-extra",
        }

        response = client.post("/api/v1/letters/enrollment", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["noteId"] == "note-1"
        assert body["fileUrl"] == "https://files.example/letter.pdf"
        assert body["message"].startswith("PDF generated, uploaded")
        assert body["timestamp"].endswith("Z")

        forwarded = letter_service.create_enrollment_letter.await_args.args[0]
        assert forwarded["recordID"] == 55
        assert forwarded["firstname"] == "Ada"
        assert forwarded["hs_object_id"] == "ignored-extra"

    def test_acceptance_success(
        self, client: TestClient, letter_service: AsyncMock
    ) -> None:
        payload = {
            "firstname": "Ada",
            "lastname": "Lovelace",
            "recordID": "55",
            "student_id": "S100",
            "location": "Vancouver",
            "course_id": "AFK-2024",
            "enrollment_record_id": "E77",
            "course_start_date": 1704067200000,
            "course_end_date": "1711929600000",
        }

        response = client.post("/api/v1/letters/acceptance", json=payload)

        assert response.status_code == 200
        assert response.json()["noteId"] == "note-1"
        forwarded = letter_service.create_acceptance_letter.await_args.args[0]
        assert forwarded["course_start_date"] == 1704067200000
        assert forwarded["course_end_date"] == "1711929600000"

    def test_missing_fields_return_400(
        self, client: TestClient, letter_service: AsyncMock
    ) -> None:
        letter_service.create_enrollment_letter.side_effect = MissingFieldsError(
            ["lastname", "recordID"]
        )

        response = client.post(
            "/api/v1/letters/enrollment", json={"firstname": "Ada"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "missing_fields"
        assert body["message"] == "Missing required fields: lastname, recordID"
        assert body["details"]["missingFields"] == ["lastname", "recordID"]
        assert body["correlationId"] == response.headers["X-Correlation-ID"]

    @pytest.mark.parametrize(
        ("error", "status_code", "code"),
        [
            (ChildFetchError("e1", "timeout"), 502, "enrollment_fetch_failed"),
            (RenderError("PDF generation failed after 3 attempt(s)"), 500, "render_failed"),
            (IntegrationError("File upload", "500 POST failed"), 502, "integration_failed"),
        ],
    )
    def test_service_failures_map_to_5xx(
        self,
        client: TestClient,
        letter_service: AsyncMock,
        error: Exception,
        status_code: int,
        code: str,
    ) -> None:
        letter_service.create_enrollment_letter.side_effect = error

        response = client.post(
            "/api/v1/letters/enrollment", json={"firstname": "Ada"}
        )

        assert response.status_code == status_code
        body = response.json()
        assert body["error"] == code
        assert body["success"] is False

    def test_non_object_body_is_rejected(
        self, client: TestClient, letter_service: AsyncMock
    ) -> None:
        response = client.post("/api/v1/letters/enrollment", json=["not", "an", "object"])

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
        letter_service.create_enrollment_letter.assert_not_awaited()

    def test_correlation_id_is_echoed(
        self, client: TestClient, letter_service: AsyncMock
    ) -> None:
        response = client.post(
            "/api/v1/letters/enrollment",
            json={"firstname": "Ada"},
            headers={"X-Correlation-ID": "cid-123"},
        )

        assert response.headers["X-Correlation-ID"] == "cid-123"


class TestOtherMethods:
    @pytest.mark.parametrize("path", ["/api/v1/letters/enrollment", "/api/v1/letters/acceptance"])
    def test_get_returns_status(self, client: TestClient, path: str) -> None:
        response = client.get(path)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PDF Generation API running"
        assert body["service"] == "PDF Generation Service"
        assert "timestamp" in body

    @pytest.mark.parametrize("path", ["/api/v1/letters/enrollment", "/api/v1/letters/acceptance"])
    def test_options_returns_200(self, client: TestClient, path: str) -> None:
        response = client.options(path)

        assert response.status_code == 200
        assert response.content == b""

    def test_cors_preflight_allows_any_origin(self, client: TestClient) -> None:
        response = client.options(
            "/api/v1/letters/enrollment",
            headers={
                "Origin": "https://app.hubspot.com",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.parametrize("method", ["put", "delete", "patch"])
    def test_other_methods_return_405_envelope(
        self, client: TestClient, method: str
    ) -> None:
        response = client.request(method.upper(), "/api/v1/letters/enrollment")

        assert response.status_code == 405
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "method_not_allowed"
        assert "correlationId" in body
