"""
FastAPI application entrypoint for the Spotify library backup service.
"""

from __future__ import annotations

from fastapi import FastAPI

from spotify_backup.api.routes import router as api_router
from spotify_backup.core.config import get_settings
from spotify_backup.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Spotify Library Backup",
        version="0.1.0",
        description="Exports saved Spotify tracks to a CSV file versioned on GitHub.",
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
