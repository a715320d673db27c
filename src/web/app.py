"""
FastAPI application factory for the detection monitor.

Routes:
- /api/status -> detector readiness and loop counters
- /api/detections -> live detection list
- /api/history -> alert history
- /api/snapshot.jpg -> latest frame with overlay
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Detection Monitor",
        version="0.1.0",
        description="Live object detection with debounced alerts",
    )

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    return app
