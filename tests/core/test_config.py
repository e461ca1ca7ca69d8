"""Tests for application settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)  # type: ignore[call-arg]


def test_defaults():
    settings = make_settings()

    assert settings.ENROLLMENT_LIMIT == 8
    assert settings.ENROLLMENT_FETCH_STRICT is True
    assert settings.RENDER_MAX_ATTEMPTS == 3
    assert settings.LETTER_FOLDER_ID == "194140833109"
    assert settings.NOTE_ASSOCIATION_TYPE_ID == 202
    assert settings.CORS_ORIGINS == ["*"]


def test_token_is_read_from_legacy_variable(monkeypatch):
    monkeypatch.delenv("HUBSPOT_ACCESS_TOKEN", raising=False)
    monkeypatch.setenv("HS_TOKEN2", "legacy-token")  # pragma: allowlist secret

    assert make_settings().HUBSPOT_ACCESS_TOKEN == "legacy-token"


def test_cors_origins_accept_csv_and_json():
    assert make_settings(CORS_ORIGINS="https://a.test, https://b.test").CORS_ORIGINS == [
        "https://a.test",
        "https://b.test",
    ]
    assert make_settings(CORS_ORIGINS='["https://a.test"]').CORS_ORIGINS == [
        "https://a.test"
    ]


def test_wildcard_origin_with_credentials_is_rejected():
    with pytest.raises(ValidationError):
        make_settings(CORS_ORIGINS=["*"], ALLOW_CREDENTIALS=True)


def test_render_attempts_must_be_positive():
    with pytest.raises(ValidationError):
        make_settings(RENDER_MAX_ATTEMPTS=0)


@pytest.mark.parametrize(
    ("env_vars", "expected"),
    [
        ({"RENDER_SERVERLESS": "true"}, True),
        ({"RENDER_SERVERLESS": "false", "VERCEL": "1"}, False),
        ({"VERCEL": "1"}, True),
        ({"AWS_LAMBDA_FUNCTION_NAME": "letters"}, True),
        ({}, False),
    ],
)
def test_serverless_detection(monkeypatch, env_vars, expected):
    for marker in (
        "RENDER_SERVERLESS",
        "VERCEL",
        "AWS_LAMBDA_FUNCTION_NAME",
        "NETLIFY",
        "LAMBDA_TASK_ROOT",
        "GOOGLE_CLOUD_PROJECT",
    ):
        monkeypatch.delenv(marker, raising=False)
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    assert make_settings().is_serverless is expected


def test_production_requires_token(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.delenv("HUBSPOT_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("HS_TOKEN2", raising=False)
    get_settings.cache_clear()
    try:
        with pytest.raises(RuntimeError, match="HUBSPOT_ACCESS_TOKEN"):
            get_settings()
    finally:
        monkeypatch.setenv("ENVIRONMENT", "test")
        get_settings.cache_clear()


def test_unknown_environment_is_rejected(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "staging")
    get_settings.cache_clear()
    try:
        with pytest.raises(ValueError):
            get_settings()
    finally:
        monkeypatch.setenv("ENVIRONMENT", "test")
        get_settings.cache_clear()
