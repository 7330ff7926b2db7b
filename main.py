"""
Pocket Karts FastAPI Application

Main entry point for the race server.
Configures FastAPI with CORS, routes, and the race session loops.
"""

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from pocketkarts.config import get_settings
from pocketkarts.api.routes import game, health
from pocketkarts.core.engine import GameEngine
from pocketkarts.core.session import get_race_session
from pocketkarts.core.snapshot import SnapshotPublisher

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Handles:
    - Starting the tick loop and snapshot publisher on startup
    - Stopping both and cancelling race timers on shutdown
    """
    session = get_race_session()
    engine = GameEngine(session)
    publisher = SnapshotPublisher(session, game.manager.broadcast)

    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION}")
    await engine.start_loop()
    await publisher.start_loop()
    app.state.engine = engine
    app.state.publisher = publisher

    yield

    logger.info("Shutting down server...")
    await publisher.stop_loop()
    await engine.stop_loop()
    session.shutdown()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Authoritative server for multiplayer kart races",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

# Configure CORS
origins = [
    "http://localhost:5173",  # Vite default port
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(game.router, tags=["game"])


@app.get("/")
async def root() -> dict:
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API information.
    """
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health",
        "websocket": "/game/ws",
    }


if __name__ == "__main__":
    uvicorn.run(app, host=settings.server.HOST, port=settings.server.PORT)
