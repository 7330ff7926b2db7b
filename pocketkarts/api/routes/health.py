"""
Health check endpoints.

Provides basic health and status information about the server.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from pocketkarts.config import get_settings
from pocketkarts.core.session import get_race_session

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check() -> dict:
    """
    Basic health check endpoint.

    Returns:
        dict: Server status information including version and race state.

    Example response:
        {
            "status": "healthy",
            "app_name": "Pocket Karts",
            "version": "0.1.0",
            "timestamp": "2026-10-19T12:00:00Z",
            "race_status": "waiting",
            "players": 0
        }
    """
    session = get_race_session()
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "race_status": session.status.value,
        "players": len(session.players),
    }
