import random

import pytest
from fastapi.testclient import TestClient

from evguard import create_app
from evguard.engine import FleetEngine

from conftest import FakeClock, eyes_closed


@pytest.fixture
def app_engine():
    return FleetEngine(rng=random.Random(42), clock=FakeClock())


@pytest.fixture
def client(app_engine):
    # No lifespan: the tick loop stays off and tests drive the engine directly
    return TestClient(create_app(engine=app_engine, run_loop=False))


def test_status(client):
    body = client.get("/api/status").json()
    assert body["status"] == "online"
    assert body["mode"] == "NORMAL"
    assert body["running"] is False


def test_snapshot_after_tick(client, app_engine):
    app_engine.tick()
    body = client.get("/api/snapshot").json()
    assert body["tick"] == 1
    assert len(body["vehicles"]) == 10
    assert body["sos_triggered"] is False


def test_telemetry_lookup(client):
    assert client.get("/api/telemetry/EV-100").status_code == 200
    resp = client.get("/api/telemetry/EV-999")
    assert resp.status_code == 404


def test_observation_push(client):
    resp = client.post("/api/driver/observation", json={
        "attention": 90, "eye_closure": 0.1, "head_movement": 1.2, "emotion": "FOCUSED", "bpm": 70,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["driver"]["attention"] == 90
    assert body["emergency_mode"] is False


def test_observation_out_of_range_rejected(client):
    resp = client.post("/api/driver/observation", json={"eye_closure": 1.5})
    assert resp.status_code == 422


def test_driver_view_has_safety_score(client):
    body = client.get("/api/driver").json()
    assert 0 <= body["safety_score"] <= 100
    assert body["forced_fatigue"] is False


def test_fatigue_toggle(client, app_engine):
    assert client.post("/api/driver/fatigue-test").json()["forced_fatigue"] is True
    assert app_engine.driver.forced_fatigue is True
    assert client.post("/api/driver/fatigue-test").json()["forced_fatigue"] is False


def test_contacts_crud(client):
    assert [c["name"] for c in client.get("/api/contacts").json()] == ["Sarah Chen"]

    bad = client.post("/api/contacts", json={"name": "Nobody"})
    assert bad.status_code == 400
    assert bad.json()["ok"] is False

    created = client.post("/api/contacts", json={"name": "Ravi Patel", "phone": "555-0177"}).json()
    assert created["ok"] is True
    assert created["contact"]["relation"] == "Friend"

    contact_id = created["contact"]["id"]
    assert client.delete(f"/api/contacts/{contact_id}").json()["removed"] is True
    assert client.delete(f"/api/contacts/{contact_id}").json()["removed"] is False


def test_logs_and_security_events(client, app_engine):
    client.post("/api/driver/fatigue-test")
    logs = client.get("/api/logs", params={"limit": 5}).json()
    assert logs[0]["agent"] == "SAFETY"
    assert client.get("/api/security-events").json() == []


def test_battery(client):
    body = client.get("/api/battery").json()
    assert body["vehicle_id"] == "EV-100"
    assert 0 <= body["health_score"] <= 100
    assert body["risk_level"] in ("SAFE", "WARNING", "HIGH RISK")


def test_agent_action(client):
    resp = client.post("/api/agent/action", json={"action": "REROUTE", "target": "EV-103"})
    assert resp.json()["status"] == "success"


def test_dashboard_socket_commands(client, app_engine):
    with client.websocket_connect("/ws/dashboard") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"error": "Invalid command"}

        ws.send_json({"type": "TOGGLE_FATIGUE"})
        assert ws.receive_json() == {"type": "FATIGUE", "forced_fatigue": True}

        ws.send_json({"type": "OBSERVATION", "attention": 88, "eye_closure": 0.2,
                      "head_movement": 1.0, "emotion": "FOCUSED", "bpm": 71})
        reply = ws.receive_json()
        assert reply["type"] == "DRIVER"
        assert reply["driver"]["attention"] == 88
    assert app_engine.driver.last_live_at is not None


def test_partial_observation_rejected_during_emergency(client, app_engine):
    for _ in range(31):
        app_engine.push_observation(eyes_closed(head_movement=0.1))
    assert app_engine.escalation.mode == "EMERGENCY"
    started = app_engine.driver.stillness_started_at

    resp = client.post("/api/driver/observation", json={"attention": 20})
    assert resp.status_code == 422
    assert app_engine.escalation.mode == "EMERGENCY"
    assert app_engine.driver.stillness_started_at == started


def test_partial_observation_over_socket(client, app_engine):
    with client.websocket_connect("/ws/dashboard") as ws:
        ws.send_json({"type": "OBSERVATION", "attention": 20})
        assert ws.receive_json() == {"error": "Invalid command"}
    assert app_engine.driver.last_live_at is None


def test_battery_is_sampled_per_tick_not_per_request(client, app_engine):
    soc = app_engine.battery.soc
    first = client.get("/api/battery").json()
    second = client.get("/api/battery").json()
    assert first == second
    assert app_engine.battery.soc == soc

    app_engine.tick()
    assert app_engine.battery.soc < soc


@pytest.mark.parametrize("path", ["/api/logs", "/api/security-events"])
def test_negative_limit_rejected(client, path):
    assert client.get(path, params={"limit": -1}).status_code == 422
    assert client.get(path, params={"limit": 0}).json() == []


def test_closed_socket_leaves_hub(client):
    hub = client.app.state.hub
    with client.websocket_connect("/ws/dashboard"):
        assert len(hub.dashboards) == 1
    assert hub.dashboards == set()


class BrokenSocket:
    async def accept(self):
        pass

    async def receive_text(self):
        raise RuntimeError("transport lost")


@pytest.mark.asyncio
async def test_socket_receive_error_leaves_hub(app_engine):
    app = create_app(engine=app_engine, run_loop=False)
    endpoint = next(r.endpoint for r in app.routes if r.path == "/ws/dashboard")

    with pytest.raises(RuntimeError):
        await endpoint(BrokenSocket())
    assert app.state.hub.dashboards == set()
