"""
Fixtures for endpoint tests.

The client is created without entering the app lifespan, so no database pool
is opened; every test patches the repository calls it relies on.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from auth import security
from main import app

ADMIN_ROW = {
    "id": 1,
    "email": "admin@example.com",
    "is_active": True,
    "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin_row():
    return dict(ADMIN_ROW)


@pytest.fixture
def admin_headers(admin_row):
    token = security.build_access_token(admin_row)
    with patch("auth.repository.get_admin", new=AsyncMock(return_value=admin_row)):
        yield {"Authorization": f"Bearer {token}"}
