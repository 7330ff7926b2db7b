"""
WebSocket API for real-time multiplayer racing.
"""

import json
import logging
from typing import Dict, Optional

from fastapi import APIRouter, WebSocket
from uuid import uuid4

from pocketkarts.config import get_settings
from pocketkarts.core.messages import (
    MessageError,
    MessageKind,
    joined_message,
    parse_client_message,
    player_joined_message,
    player_left_message,
)
from pocketkarts.core.session import RaceSession, get_race_session
from pocketkarts.core.snapshot import build_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["game"])

# Close code used when the server is at capacity ("try again later")
SERVER_FULL_CLOSE_CODE = 1013


class ConnectionManager:
    """Manages WebSocket connections for the race session."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}

    def __len__(self) -> int:
        return len(self.active_connections)

    async def connect(self, websocket: WebSocket, connection_id: str) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.active_connections[connection_id] = websocket

    def disconnect(self, connection_id: str) -> None:
        """Forget a WebSocket connection."""
        self.active_connections.pop(connection_id, None)

    async def send(self, connection_id: str, message: dict) -> None:
        """Send a message to a single connection."""
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return

        try:
            await websocket.send_text(json.dumps(message))
        except Exception:
            self.disconnect(connection_id)

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """Broadcast a message to every connection, optionally skipping one."""
        # Convert message to JSON once
        json_message = json.dumps(message)

        disconnected = []
        for connection_id, connection in list(self.active_connections.items()):
            if connection_id == exclude:
                continue
            try:
                await connection.send_text(json_message)
            except Exception:
                # Mark for removal
                disconnected.append(connection_id)

        for connection_id in disconnected:
            self.disconnect(connection_id)


manager = ConnectionManager()


async def dispatch_message(session: RaceSession, connection_id: str, raw: str) -> None:
    """
    Handle one frame from a client.

    Malformed frames and messages from unknown players are ignored.
    """
    try:
        kind, payload = parse_client_message(raw)
    except MessageError as e:
        logger.debug(f"Ignoring message from {connection_id}: {e}")
        return

    if kind == MessageKind.JOIN:
        already_joined = connection_id in session.players
        vehicle = session.join(connection_id, payload.name)

        await manager.send(connection_id, joined_message(vehicle, build_snapshot(session)))
        if not already_joined:
            await manager.broadcast(player_joined_message(vehicle), exclude=connection_id)

    elif kind == MessageKind.INPUT:
        if not session.set_input(connection_id, payload.to_intent()):
            logger.debug(f"Input from {connection_id} ignored (status={session.status.value})")


@router.websocket("/ws")
async def game_websocket(websocket: WebSocket):
    """
    WebSocket endpoint for real-time multiplayer racing.

    Message format (client -> server):
    {"type": "join", "data": {"name": str}}
    {"type": "input", "data": {"turnLeft": bool, "turnRight": bool,
                               "throttleForward": bool, "throttleReverse": bool}}

    Message format (server -> client):
    {"type": "joined", "data": {"player_id": str, "snapshot": {...}}}
    {"type": "snapshot", "data": {"status", "countdown", "winner", "players", "ranking"}}
    {"type": "playerJoined", "data": {"player": {...}}}
    {"type": "playerLeft", "data": {"player_id": str}}
    {"type": "raceOver", "data": {"winner_id": str, "winner_name": str}}
    """
    settings = get_settings()
    if len(manager) >= settings.server.MAX_CONCURRENT_PLAYERS:
        await websocket.close(code=SERVER_FULL_CLOSE_CODE)
        logger.info("Connection refused: server full")
        return

    # Generate unique connection ID
    connection_id = str(uuid4())
    session = get_race_session()

    await manager.connect(websocket, connection_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            text = message.get("text")
            if text is None:
                logger.debug(f"Ignoring binary frame from {connection_id}")
                continue
            await dispatch_message(session, connection_id, text)

    finally:
        # Drop the player whatever ended the loop
        manager.disconnect(connection_id)
        if session.disconnect(connection_id) is not None:
            await manager.broadcast(player_left_message(connection_id))


@router.get("/session")
async def get_session() -> dict:
    """Current session snapshot."""
    return build_snapshot(get_race_session())
