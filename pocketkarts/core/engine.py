"""
Game engine for Pocket Karts - server-authoritative simulation tick.

This module implements the fixed-rate tick loop. While a race is running,
each tick moves every active vehicle through the integrator, validates its
checkpoint progress and checks for a winner.
"""

import asyncio
import logging
import time
from typing import Optional

from pocketkarts.core.checkpoints import apply_checkpoint_progress
from pocketkarts.core.race import RaceStatus
from pocketkarts.core.session import RaceSession
from pocketkarts.core.vehicle import Vehicle

logger = logging.getLogger(__name__)


class GameEngine:
    """
    Server-authoritative tick driver.

    The only writer of vehicle physics and race progress during a race.
    """

    def __init__(self, session: RaceSession):
        """
        Initialize the engine for a session.

        Args:
            session: The race session to simulate
        """
        self.session = session
        self.tick_rate = session.settings.game.TICK_RATE
        self.tick_interval = 1.0 / self.tick_rate
        self.tick_count = 0

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start_loop(self) -> None:
        """Start the tick loop in the background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._game_loop())
        logger.info(f"Tick loop started at {self.tick_rate} Hz")

    async def stop_loop(self) -> None:
        """Stop the tick loop."""
        self._running = False
        if self._task:
            await self._task
            self._task = None

    async def _game_loop(self) -> None:
        """Main loop - runs at fixed tick rate."""
        last_tick_time = time.perf_counter()

        while self._running:
            current_time = time.perf_counter()
            elapsed = current_time - last_tick_time

            # Wait until it's time for the next tick
            if elapsed < self.tick_interval:
                await asyncio.sleep(self.tick_interval - elapsed)
                continue

            last_tick_time = current_time
            self.tick()

    def tick(self) -> None:
        """Process one simulation tick."""
        self.tick_count += 1

        if self.session.status != RaceStatus.RACING:
            return

        for vehicle in self.session.active_vehicles():
            self._step_vehicle(vehicle)
            apply_checkpoint_progress(vehicle, self.session.track)

            if self._has_won(vehicle):
                self.session.declare_winner(vehicle)
                break

    def _step_vehicle(self, vehicle: Vehicle) -> None:
        vehicle.car = self.session.integrator.step(vehicle.car, vehicle.input, self.tick_interval)

    def _has_won(self, vehicle: Vehicle) -> bool:
        return vehicle.lap > self.session.laps_to_win
