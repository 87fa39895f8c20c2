"""HTTP client wired to the per-test database, bus and pinned clock."""

from fastapi.testclient import TestClient
import pytest

from fitbook.api.dependencies import get_db, get_message_bus, get_today_fn
from fitbook.main import app

from ..helpers import today


@pytest.fixture
def client(db, bus):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_message_bus] = lambda: bus
    app.dependency_overrides[get_today_fn] = lambda: today
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user_id: str, role: str = "student") -> dict:
    return {"X-User-Id": user_id, "X-User-Role": role}
