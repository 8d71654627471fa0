"""FastAPI application factory for the read-only snapshot API."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI

from uniswap_volume.dashboard.routes import api


def create_dashboard_app(snapshot_path: str | Path, lifespan: Any = None) -> FastAPI:
    """Create and configure the dashboard API application.

    The snapshot is re-read on every request, so a fetch run that replaces
    the file is picked up without restarting the server.

    Args:
        snapshot_path: Location of the JSON snapshot written by the fetch run.
        lifespan: Optional async context manager for application lifespan events.

    Returns:
        Configured FastAPI application with the /api routes registered.
    """
    app = FastAPI(
        title="Uniswap Volume Dashboard API",
        lifespan=lifespan,
    )
    app.state.snapshot_path = Path(snapshot_path)

    app.include_router(api.router, prefix="/api")

    return app
