"""Smoke tests for the liveness endpoint."""
import pytest
from fastapi.testclient import TestClient

from companion_bot.status_server import create_app


@pytest.fixture
def client():
    return TestClient(create_app(lambda: "cooling_down"))


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.text == "Bot is running!\n"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data.get("ok") is True
    assert data["session"] == "cooling_down"


def test_health_without_state_provider():
    r = TestClient(create_app()).get("/health")
    assert r.json() == {"ok": True, "session": None}
