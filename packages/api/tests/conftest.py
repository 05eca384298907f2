# This project was developed with assistance from AI tools.
"""Shared fixtures for API tests.

Route tests run against the real app with ``get_db`` overridden by a mock
session. The lifespan is not entered, so the payment-expiry scheduler never
starts during unit tests.
"""

from unittest.mock import AsyncMock

import pytest
from db import get_db
from fastapi.testclient import TestClient

from rentsphere.main import app


@pytest.fixture
def mock_session():
    return AsyncMock()


@pytest.fixture
def client(mock_session):
    """TestClient with the DB dependency replaced by ``mock_session``."""

    async def _get_db():
        yield mock_session

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
