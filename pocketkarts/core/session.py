"""
Race session: player registry and race lifecycle for Pocket Karts.

The RaceSession is the single authoritative owner of every Vehicle. It
handles join/disconnect bookkeeping, the minimum-player gate and resets, and
drives the race phase state machine. Simulation fields are only written by
the tick driver (see engine.py) and by the grid/reset steps here.
"""

import logging
import random
from typing import Dict, List, Optional

from pocketkarts.config import Settings, get_settings
from pocketkarts.core.messages import MessageKind, make_message
from pocketkarts.core.physics import CarState, Integrator, Vector2, create_integrator
from pocketkarts.core.race import RacePhaseMachine, RaceStatus, Winner
from pocketkarts.core.track import CheckpointTrack, create_track
from pocketkarts.core.vehicle import InputIntent, Vehicle

logger = logging.getLogger(__name__)


class RaceSession:
    """
    The single race instance and its full player roster.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        track: Optional[CheckpointTrack] = None,
        integrator: Optional[Integrator] = None,
        seed: Optional[int] = None
    ):
        """
        Initialize an empty session in WAITING.

        Args:
            settings: Settings to use (global settings if None)
            track: Checkpoint track (built from settings if None)
            integrator: Movement model (built from settings if None)
            seed: Random seed for vehicle colours
        """
        self.settings = settings or get_settings()
        self.track = track or create_track(self.settings.track)
        self.integrator = integrator or create_integrator(self.settings)
        self.laps_to_win = self.settings.game.LAPS_TO_WIN
        self.min_players = self.settings.game.MIN_PLAYERS

        self.players: Dict[str, Vehicle] = {}
        self.phase = RacePhaseMachine(
            countdown_seconds=self.settings.game.COUNTDOWN_SECONDS,
            countdown_interval=self.settings.game.COUNTDOWN_INTERVAL,
            reset_delay=self.settings.game.RESET_DELAY,
            on_countdown_complete=self._handle_countdown_complete,
            on_reset_due=self.reset_race,
        )

        self._rng = random.Random(seed)
        self._events: List[dict] = []

    @property
    def status(self) -> RaceStatus:
        return self.phase.status

    @property
    def countdown(self) -> int:
        return self.phase.countdown

    @property
    def winner(self) -> Optional[Winner]:
        return self.phase.winner

    def active_vehicles(self) -> List[Vehicle]:
        """Vehicles in the current race, in deterministic grid order."""
        return sorted(
            (v for v in self.players.values() if v.active),
            key=lambda v: (v.grid_slot, v.id)
        )

    def normalize_name(self, requested_name: Optional[str]) -> str:
        """Strip and truncate a requested name, defaulting if nothing is left."""
        name = (requested_name or "").strip()[:self.settings.game.NAME_MAX_LENGTH].strip()
        return name or self.settings.game.DEFAULT_NAME

    def _next_free_slot(self) -> int:
        taken = {v.grid_slot for v in self.players.values()}
        slot = 0
        while slot in taken:
            slot += 1
        return slot

    def _fresh_car(self, slot: int) -> CarState:
        return CarState(
            position=self.track.grid_position(slot),
            velocity=Vector2(0, 0),
            heading=self.track.start_heading,
        )

    def _fresh_vehicle(self, vehicle_id: str, name: str, color: int, slot: int) -> Vehicle:
        return Vehicle(
            id=vehicle_id,
            name=name,
            color=color,
            grid_slot=slot,
            car=self._fresh_car(slot),
            lap=1,
            last_checkpoint_passed=self.track.finish_index,
        )

    def join(self, connection_id: str, requested_name: Optional[str] = None) -> Vehicle:
        """
        Add a player to the session.

        Args:
            connection_id: Transport connection identifier
            requested_name: Name asked for by the client (normalized here)

        Returns:
            The player's Vehicle. Joining twice returns the existing one.
        """
        existing = self.players.get(connection_id)
        if existing is not None:
            logger.debug(f"Player {connection_id} already joined")
            return existing

        vehicle = self._fresh_vehicle(
            connection_id,
            self.normalize_name(requested_name),
            self._rng.randint(0, 0xFFFFFF),
            self._next_free_slot(),
        )
        self.players[connection_id] = vehicle
        logger.info(f"Player {vehicle.name} ({connection_id}) joined ({len(self.players)} connected)")

        self._maybe_start_countdown()
        return vehicle

    def disconnect(self, connection_id: str) -> Optional[Vehicle]:
        """
        Remove a player.

        Abandons the countdown or race without a winner when the remaining
        players fall below the minimum.

        Returns:
            The removed Vehicle, or None for an unknown connection
        """
        vehicle = self.players.pop(connection_id, None)
        if vehicle is None:
            return None

        logger.info(f"Player {vehicle.name} ({connection_id}) left ({len(self.players)} connected)")

        if self.status == RaceStatus.COUNTDOWN and len(self.players) < self.min_players:
            logger.info("Not enough players for the countdown, resetting")
            self.reset_race()
        elif self.status == RaceStatus.RACING and len(self.active_vehicles()) < self.min_players:
            logger.info("Not enough racers left, abandoning race")
            self.reset_race()

        return vehicle

    def set_input(self, connection_id: str, intent: InputIntent) -> bool:
        """
        Overwrite a player's input intent.

        Input is only accepted from active vehicles while racing.

        Returns:
            True if the intent was stored
        """
        vehicle = self.players.get(connection_id)
        if vehicle is None or not vehicle.active or self.status != RaceStatus.RACING:
            return False

        vehicle.input = intent
        return True

    def _maybe_start_countdown(self) -> None:
        if self.status == RaceStatus.WAITING and len(self.players) >= self.min_players:
            self.phase.start_countdown()

    def _handle_countdown_complete(self) -> None:
        if len(self.players) < self.min_players:
            logger.info("Countdown finished without enough players, resetting")
            self.reset_race()
            return

        for vehicle in self.players.values():
            vehicle.car = self._fresh_car(vehicle.grid_slot)
            vehicle.lap = 1
            vehicle.last_checkpoint_passed = self.track.finish_index
            vehicle.input = InputIntent()
            vehicle.active = True

        self.phase.start_racing()
        logger.info(f"Race started with {len(self.players)} players")

    def declare_winner(self, vehicle: Vehicle) -> Winner:
        """Finish the race with the given vehicle as winner."""
        winner = self.phase.finish(vehicle.id, vehicle.name)
        self._events.append(make_message(
            MessageKind.RACE_OVER,
            {'winner_id': winner.id, 'winner_name': winner.name}
        ))
        return winner

    def reset_race(self) -> None:
        """
        Return to WAITING with fresh vehicles for everyone still connected.

        Identity (id, name, colour, grid slot) survives; progress and physics
        do not. Re-enters COUNTDOWN straight away if enough players remain.
        """
        self.phase.reset()

        self.players = {
            vehicle_id: self._fresh_vehicle(vehicle_id, v.name, v.color, v.grid_slot)
            for vehicle_id, v in self.players.items()
        }
        logger.info(f"Race reset ({len(self.players)} players connected)")

        self._maybe_start_countdown()

    def drain_events(self) -> List[dict]:
        """Return and clear queued outbound events."""
        events, self._events = self._events, []
        return events

    def shutdown(self) -> None:
        """Cancel pending race timers."""
        self.phase.cancel_timers()


# Global race session instance
_race_session = RaceSession()


def get_race_session() -> RaceSession:
    """Get the process-wide race session."""
    return _race_session
