"""FastAPI application for the robot simulation session."""
from __future__ import annotations

from fastapi import FastAPI

from robot_engines.sim_session.routes import router


def create_app() -> FastAPI:
    app = FastAPI(title="Robot Sim Engine", version="0.1.0")
    app.include_router(router)
    return app


app = create_app()
