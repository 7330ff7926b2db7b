"""
Race phase state machine for Pocket Karts.

Owns the session-wide race status, the countdown counter and the winner,
together with the countdown and post-race reset timers. Timers are asyncio
tasks so a forced reset can cancel them before they fire.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional

logger = logging.getLogger(__name__)


class RaceStatus(Enum):
    """Current status of the race."""
    WAITING = "waiting"  # Waiting for players
    COUNTDOWN = "countdown"  # Countdown before start
    RACING = "racing"  # Race in progress
    FINISHED = "finished"  # Winner declared, reset pending


# Forced resets may also abandon a countdown or a race in progress.
_TRANSITIONS: Dict[RaceStatus, FrozenSet[RaceStatus]] = {
    RaceStatus.WAITING: frozenset({RaceStatus.COUNTDOWN}),
    RaceStatus.COUNTDOWN: frozenset({RaceStatus.RACING, RaceStatus.WAITING}),
    RaceStatus.RACING: frozenset({RaceStatus.FINISHED, RaceStatus.WAITING}),
    RaceStatus.FINISHED: frozenset({RaceStatus.WAITING}),
}


class RaceStateError(Exception):
    """Raised when an illegal race phase transition is attempted."""
    pass


@dataclass(frozen=True)
class Winner:
    """Identity of the race winner."""
    id: str
    name: str


class RacePhaseMachine:
    """
    waiting -> countdown -> racing -> finished -> waiting.

    The machine only tracks phase and timers. What happens to vehicles when
    the countdown completes or a reset falls due is decided by the owner
    through the two hooks.
    """

    def __init__(
        self,
        countdown_seconds: int,
        countdown_interval: float,
        reset_delay: float,
        on_countdown_complete: Callable[[], None],
        on_reset_due: Callable[[], None],
    ):
        """
        Args:
            countdown_seconds: Starting value of the countdown
            countdown_interval: Seconds between countdown steps
            reset_delay: Seconds spent in FINISHED before the reset falls due
            on_countdown_complete: Called when the countdown reaches zero
            on_reset_due: Called when the post-race reset timer fires
        """
        self.countdown_seconds = countdown_seconds
        self.countdown_interval = countdown_interval
        self.reset_delay = reset_delay
        self._on_countdown_complete = on_countdown_complete
        self._on_reset_due = on_reset_due

        self.status = RaceStatus.WAITING
        self.countdown = 0
        self.winner: Optional[Winner] = None

        self._countdown_task: Optional[asyncio.Task] = None
        self._reset_task: Optional[asyncio.Task] = None

    def _transition(self, new_status: RaceStatus) -> None:
        if new_status not in _TRANSITIONS[self.status]:
            raise RaceStateError(
                f"Illegal race transition {self.status.value} -> {new_status.value}"
            )
        logger.info(f"Race status {self.status.value} -> {new_status.value}")
        self.status = new_status

    def start_countdown(self) -> None:
        """Enter COUNTDOWN and schedule the countdown timer."""
        self._transition(RaceStatus.COUNTDOWN)
        self.countdown = max(1, self.countdown_seconds)
        self._countdown_task = asyncio.get_running_loop().create_task(self._run_countdown())

    async def _run_countdown(self) -> None:
        while self._countdown_task is asyncio.current_task():
            await asyncio.sleep(self.countdown_interval)
            if self._countdown_task is not asyncio.current_task():
                break
            self.advance_countdown()

    def advance_countdown(self) -> None:
        """
        Count down one step.

        When the counter reaches zero the countdown-complete hook runs. Does
        nothing outside COUNTDOWN.
        """
        if self.status != RaceStatus.COUNTDOWN or self.countdown <= 0:
            return

        self.countdown -= 1
        if self.countdown == 0:
            # The hook may reset the machine; it must not cancel this task.
            self._countdown_task = None
            self._on_countdown_complete()

    def start_racing(self) -> None:
        """Enter RACING once the countdown has run out."""
        if self.countdown != 0:
            raise RaceStateError(f"Countdown still at {self.countdown}")
        self._transition(RaceStatus.RACING)

    def finish(self, winner_id: str, winner_name: str) -> Winner:
        """
        Enter FINISHED with the given winner and schedule the reset timer.

        Raises:
            RaceStateError: If no race is in progress, so a second winner
                can never be recorded
        """
        self._transition(RaceStatus.FINISHED)
        self.winner = Winner(id=winner_id, name=winner_name)
        logger.info(f"Race won by {winner_name} ({winner_id})")
        self._reset_task = asyncio.get_running_loop().create_task(self._run_reset_timer())
        return self.winner

    async def _run_reset_timer(self) -> None:
        await asyncio.sleep(self.reset_delay)
        self._reset_task = None
        self._on_reset_due()

    def reset(self) -> None:
        """Return to WAITING, cancelling pending timers."""
        if self.status != RaceStatus.WAITING:
            self._transition(RaceStatus.WAITING)
        self.cancel_timers()
        self.countdown = 0
        self.winner = None

    def cancel_timers(self) -> None:
        """Cancel the countdown and reset timers if they are pending."""
        for task in (self._countdown_task, self._reset_task):
            if task is not None and not task.done():
                task.cancel()
        self._countdown_task = None
        self._reset_task = None

    @property
    def has_pending_timers(self) -> bool:
        return any(
            task is not None and not task.done()
            for task in (self._countdown_task, self._reset_task)
        )
