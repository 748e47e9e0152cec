"""WebSocket hub: fans every tick snapshot out to connected dashboards."""

import logging
from typing import Set

from fastapi import WebSocket

from evguard.models import FleetSnapshot

logger = logging.getLogger(__name__)


class DashboardHub:

    def __init__(self) -> None:
        self.dashboards: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.dashboards.add(websocket)
        logger.info("[HUB] Dashboard connected (total: %d)", len(self.dashboards))

    def disconnect(self, websocket: WebSocket) -> None:
        self.dashboards.discard(websocket)
        logger.info("[HUB] Dashboard disconnected (total: %d)", len(self.dashboards))

    async def broadcast(self, snapshot: FleetSnapshot) -> None:
        if not self.dashboards:
            return
        payload = snapshot.model_dump(mode="json")
        for ws in list(self.dashboards):
            try:
                await ws.send_json(payload)
            except Exception as e:
                logger.warning("[HUB] Dropping dashboard after send failure: %s", e)
                self.disconnect(ws)
