"""Shared test fixtures for pytest.

ENVIRONMENT is pinned to ``test`` before any application import so that
``get_settings()`` skips env files and the production token check.
"""

import os
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient


os.environ.setdefault("ENVIRONMENT", "test")

from browser_fakes import TEST_LAUNCH_CONFIG, FakeLauncher
from dependencies.services import get_letter_service
from main import app
from services.render_session import RenderSessionManager


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def sessions(launcher: FakeLauncher) -> RenderSessionManager:
    return RenderSessionManager(launcher, TEST_LAUNCH_CONFIG)


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.

    The lifespan is not entered, so no browser or HTTP client is created;
    tests that reach the letter routes override ``get_letter_service``.
    """
    client = TestClient(app)
    yield client
    app.dependency_overrides.pop(get_letter_service, None)
