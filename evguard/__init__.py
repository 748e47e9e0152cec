"""
============================================================
 EV-GUARD — FastAPI Application Factory
============================================================
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evguard import config
from evguard.engine import FleetEngine
from evguard.hub import DashboardHub


def create_app(engine: Optional[FleetEngine] = None, run_loop: bool = True) -> FastAPI:
    """Create the app around one engine; the tick loop lives in the lifespan."""
    engine = engine if engine is not None else FleetEngine()
    hub = DashboardHub()
    engine.subscribe(hub.broadcast)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if run_loop:
            await engine.start()
        yield
        if run_loop:
            await engine.stop()

    app = FastAPI(title="EV-GUARD Fleet Safety Monitor", version=config.VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.engine = engine
    app.state.hub = hub

    from evguard.routes import register_routes
    register_routes(app, engine, hub)

    return app
