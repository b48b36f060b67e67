"""
API tests for `api/messages.py` and `api/health.py` using FastAPI's TestClient.

Covers:
- POST /api/messages: reply relayed, discarded message mapped to null, invalid payload rejected
- GET /health: status payload built from the orchestrator summary
- GET /metrics: Prometheus exposition is mounted

Mocks:
- `api.messages.get_orchestrator` / `api.health.get_orchestrator` so no catalog or model is touched
"""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient
from main import app
from shared.models import InboundMessage

client = TestClient(app)


def _orchestrator(reply):
    orchestrator = MagicMock()
    orchestrator.handle_message = AsyncMock(return_value=reply)
    return orchestrator


@patch("api.messages.get_orchestrator")
def test_message_reply_is_returned(mock_get_orchestrator):
    orchestrator = _orchestrator("¡Hola! ¿Qué curso te interesa?")
    mock_get_orchestrator.return_value = orchestrator

    resp = client.post("/api/messages", json={"conversation_id": "5493415550000@c.us", "text": "hola"})

    assert resp.status_code == 200
    assert resp.json() == {"reply": "¡Hola! ¿Qué curso te interesa?"}
    message = orchestrator.handle_message.await_args.args[0]
    assert message == InboundMessage(conversation_id="5493415550000@c.us", text="hola")


@patch("api.messages.get_orchestrator")
def test_discarded_message_returns_null_reply(mock_get_orchestrator):
    mock_get_orchestrator.return_value = _orchestrator(None)

    resp = client.post(
        "/api/messages",
        json={"conversation_id": "c-1", "text": "hola", "is_self_originated": True},
    )

    assert resp.status_code == 200
    assert resp.json() == {"reply": None}


def test_message_without_conversation_id_is_rejected():
    resp = client.post("/api/messages", json={"text": "hola"})
    assert resp.status_code == 422


@patch("api.health.get_orchestrator")
def test_health_reports_assistant_state(mock_get_orchestrator):
    orchestrator = MagicMock()
    orchestrator.get_status.return_value = {"mode": "grounded", "catalog_courses": 4, "sessions": 2}
    mock_get_orchestrator.return_value = orchestrator

    resp = client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["mode"] == "grounded"
    assert body["catalog_courses"] == 4
    assert body["sessions"] == 2
    assert body["uptime_s"] >= 0
    assert "timestamp" in body


def test_metrics_endpoint_exposes_assistant_counters():
    resp = client.get("/metrics/")
    assert resp.status_code == 200
    assert "assistant_turn_duration_seconds" in resp.text
