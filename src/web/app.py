"""
FastAPI application factory for the occupancy monitor.

Routes:
- /api/* -> REST API (branches, hourly stats, streams, health, logs)
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Occupancy Monitor",
        version="0.1.0",
        description="Per-branch people counting from store cameras",
    )

    # CORS for the dashboard dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    return app
