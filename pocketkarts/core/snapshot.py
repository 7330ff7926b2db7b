"""
Snapshot publishing for Pocket Karts.

Builds the render-safe view of the race session and fans it out to every
connection at the broadcast rate, which is independent of the tick rate.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from pocketkarts.core.checkpoints import race_progress
from pocketkarts.core.messages import MessageKind, make_message
from pocketkarts.core.session import RaceSession
from pocketkarts.core.vehicle import Vehicle

logger = logging.getLogger(__name__)

Broadcast = Callable[[dict], Awaitable[None]]


def compute_ranking(players: List[Vehicle], checkpoint_count: int) -> List[Vehicle]:
    """
    Order players by race progress, leader first.

    Laps descending, then checkpoints passed in the current lap descending,
    then grid slot for a stable order.

    The raw last_checkpoint_passed is not used as the tie-break: a kart on
    the grid sits on the finish index and would outrank karts that have
    already taken checkpoint 0.
    """
    def ranking_key(vehicle: Vehicle):
        lap, passed = race_progress(vehicle, checkpoint_count)
        return (-lap, -passed, vehicle.grid_slot)

    return sorted(players, key=ranking_key)


def build_snapshot(session: RaceSession) -> dict:
    """
    Get the current session state as a JSON-serializable dict.

    Returns:
        Dictionary with status, countdown, winner, players and ranking
    """
    players = sorted(session.players.values(), key=lambda v: v.grid_slot)
    ranking = compute_ranking(players, session.track.checkpoint_count)
    winner = session.winner

    return {
        'status': session.status.value,
        'countdown': session.countdown,
        'winner': {'id': winner.id, 'name': winner.name} if winner else None,
        'laps_to_win': session.laps_to_win,
        'players': [vehicle.to_dict() for vehicle in players],
        'ranking': [vehicle.id for vehicle in ranking],
    }


class SnapshotPublisher:
    """Periodically broadcasts queued session events and a fresh snapshot."""

    def __init__(self, session: RaceSession, broadcast: Broadcast):
        """
        Args:
            session: Session to publish
            broadcast: Coroutine function sending a message to all connections
        """
        self.session = session
        self.broadcast = broadcast
        self.broadcast_rate = session.settings.game.BROADCAST_RATE
        self.interval = 1.0 / self.broadcast_rate

        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def publish(self) -> None:
        """Send pending events, then the current snapshot."""
        for event in self.session.drain_events():
            await self.broadcast(event)

        await self.broadcast(make_message(MessageKind.SNAPSHOT, build_snapshot(self.session)))

    async def start_loop(self) -> None:
        """Start publishing in the background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._publish_loop())
        logger.info(f"Snapshot publisher started at {self.broadcast_rate} Hz")

    async def stop_loop(self) -> None:
        """Stop publishing."""
        self._running = False
        if self._task:
            await self._task
            self._task = None

    async def _publish_loop(self) -> None:
        while self._running:
            started = time.perf_counter()
            await self.publish()
            elapsed = time.perf_counter() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))
