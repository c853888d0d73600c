"""Tests for the /ws live feed and the health check."""

from fastapi.testclient import TestClient
from httpx import AsyncClient

from backend.app import main
from backend.app.main import app
from backend.app.services.ws_manager import ws_manager


def test_ws_ping_pong():
    client = TestClient(app)
    with client.websocket_connect("/ws?category=Pothole") as ws:
        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}


async def test_health(client: AsyncClient, engine, monkeypatch):
    monkeypatch.setattr(main, "engine", engine)

    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert data["ws_clients"] == 0


def test_ws_all_filters_subscribe_to_everything():
    client = TestClient(app)
    with client.websocket_connect("/ws?category=All&status=all") as ws:
        ws.send_text("ping")
        ws.receive_json()
        sub = next(iter(ws_manager._subs.values()))
        assert sub.category is None
        assert sub.status is None
        event = {"type": "issue_created", "data": {"category": "Pothole", "status": "Open"}}
        assert sub.matches(event)
