# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``portal_api.main`` is a module singleton. ``_clean_overrides``
ensures dependency_overrides are cleared after every test so persona
configuration from one test never leaks into the next.

Clients are created without entering the TestClient context, so the app
lifespan (email client, dispatcher, monitors) never starts.
"""

import pytest
from fastapi.testclient import TestClient
from mock_db import configure_app, make_services

from portal_api.main import app as real_app


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture
def app():
    """Return the real FastAPI app with all routers mounted."""
    return real_app


@pytest.fixture
def services():
    return make_services()


@pytest.fixture
def make_client(app, services):
    """Factory fixture: configure persona + mock repository, return TestClient."""

    def _make(user, repository) -> TestClient:
        configure_app(app, user, repository, services)
        return TestClient(app)

    return _make
