"""
============================================================
 EV-GUARD — Routes
 REST accessors over the engine snapshot, the perception
 and command entry points, and the dashboard WebSocket.
============================================================
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from evguard import config
from evguard.driver import safety_score
from evguard.engine import FleetEngine
from evguard.hub import DashboardHub
from evguard.models import AgentAction, ContactIn, DriverObservation

logger = logging.getLogger(__name__)


def register_routes(app: FastAPI, engine: FleetEngine, hub: DashboardHub) -> None:
    """Attach every endpoint to `app`, closing over one engine + hub."""

    # ── Status ──
    @app.get("/api/status")
    async def api_status():
        return {
            "status": "online",
            "server": f"EV-GUARD Fleet Safety Monitor v{config.VERSION}",
            "tick": engine.tick_count,
            "running": engine.running,
            "mode": engine.escalation.mode,
            "forced_fatigue": engine.driver.forced_fatigue,
            "connected_dashboards": len(hub.dashboards),
        }

    @app.get("/api/snapshot")
    async def api_snapshot():
        return engine.snapshot(outbound_message=engine.last_outbound).model_dump(mode="json")

    # ── Fleet ──
    @app.get("/api/vehicles")
    async def api_vehicles():
        return [v.model_dump(mode="json") for v in engine.fleet.vehicles]

    @app.get("/api/telemetry/{vehicle_id}")
    async def api_telemetry(vehicle_id: str):
        vehicle = engine.fleet.get(vehicle_id)
        if vehicle is None:
            raise HTTPException(status_code=404, detail="Vehicle not found")
        return vehicle.telemetry.model_dump(mode="json")

    @app.get("/api/battery")
    async def api_battery():
        result = engine.battery_status
        return {
            "vehicle_id": engine.fleet.controlled_id,
            "sensor": result["sensor"].model_dump(mode="json"),
            **result["health"].model_dump(),
        }

    # ── Driver ──
    @app.get("/api/driver")
    async def api_driver():
        status = engine.driver.status
        return {
            **status.model_dump(),
            "safety_score": safety_score(status),
            "forced_fatigue": engine.driver.forced_fatigue,
            "mode": engine.escalation.mode,
        }

    @app.post("/api/driver/observation")
    async def api_observation(obs: DriverObservation):
        processed = engine.push_observation(obs)
        return {
            "driver": processed.model_dump(),
            "emergency_mode": engine.escalation.in_emergency,
            "sos_triggered": engine.escalation.sos_triggered,
        }

    @app.post("/api/driver/fatigue-test")
    async def api_toggle_fatigue():
        forced = engine.toggle_fatigue()
        return {"ok": True, "forced_fatigue": forced, "mode": engine.escalation.mode}

    # ── Contacts ──
    @app.get("/api/contacts")
    async def api_contacts():
        return [c.model_dump() for c in engine.contacts]

    @app.post("/api/contacts")
    async def api_add_contact(contact: ContactIn):
        created = engine.add_contact(contact)
        if created is None:
            return JSONResponse(
                status_code=400,
                content={"ok": False, "error": "name and phone are required"},
            )
        return {"ok": True, "contact": created.model_dump()}

    @app.delete("/api/contacts/{contact_id}")
    async def api_remove_contact(contact_id: str):
        return {"ok": True, "removed": engine.remove_contact(contact_id)}

    # ── Audit trail ──
    @app.get("/api/logs")
    async def api_logs(limit: int = Query(config.MAX_LOG_ENTRIES, ge=0)):
        return [e.model_dump(mode="json") for e in engine.logbook.entries[:limit]]

    @app.get("/api/security-events")
    async def api_security_events(limit: int = Query(config.MAX_SECURITY_EVENTS, ge=0)):
        return [e.model_dump(mode="json") for e in engine.logbook.security_events[:limit]]

    # ── Mock agent action ──
    @app.post("/api/agent/action")
    async def api_agent_action(body: AgentAction):
        logger.info("[%s] executing %s on %s", body.agent, body.action, body.target)
        return {"status": "success", "timestamp": datetime.now(timezone.utc).isoformat()}

    # ── WebSocket ──
    @app.websocket("/ws/dashboard")
    async def ws_dashboard(websocket: WebSocket):
        await hub.connect(websocket)
        try:
            while True:
                msg = await websocket.receive_text()
                try:
                    cmd = json.loads(msg)
                    kind = cmd.pop("type", None)
                    if kind == "OBSERVATION":
                        processed = engine.push_observation(DriverObservation(**cmd))
                        await websocket.send_json({"type": "DRIVER", "driver": processed.model_dump()})
                    elif kind == "TOGGLE_FATIGUE":
                        forced = engine.toggle_fatigue()
                        await websocket.send_json({"type": "FATIGUE", "forced_fatigue": forced})
                    else:
                        logger.info("[HUB] Ignored dashboard cmd: %s", kind)
                except (json.JSONDecodeError, AttributeError, ValidationError):
                    await websocket.send_json({"error": "Invalid command"})
        except WebSocketDisconnect:
            logger.info("[HUB] Dashboard closed the socket")
        finally:
            hub.disconnect(websocket)
