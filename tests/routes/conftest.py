from typing import Dict

from fastapi.testclient import TestClient
import pytest

from garage_booking.database import get_db
from garage_booking.main import app


@pytest.fixture
def client(db) -> TestClient:
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def owner_headers(garage_setup) -> Dict[str, str]:
    return {
        "X-User-Id": garage_setup.owner_id,
        "X-User-Permissions": "booking_create,booking_update,booking_view,booking_delete",
    }
