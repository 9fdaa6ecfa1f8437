"""
FastAPI application factory for the status API.

This file:
1. Creates the FastAPI app
2. Attaches the StatusBoard the scheduler publishes to
3. Registers all routers (health, scheduler, processes)

There is no module-level `app`: the board is created by the scheduler
run, so the app is always built with create_app(board). worker/main.py
starts it through api.server.StatusServer when --status-port is given.
"""

from typing import Optional

from fastapi import FastAPI

from api.board import StatusBoard
from api.routers import health, processes, scheduler


def create_app(board: Optional[StatusBoard] = None) -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    app = FastAPI(
        title="USPS Status",
        description="Read-only view of a round-robin process scheduler run",
        version="1.0.0",
    )
    app.state.board = board if board is not None else StatusBoard()

    # Register routers — each one adds its endpoints to the app
    app.include_router(health.router)
    app.include_router(scheduler.router)
    app.include_router(processes.router)

    return app
