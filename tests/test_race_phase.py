"""
Unit tests for the race phase state machine.

Tests cover legal and illegal transitions, the countdown counter and the
cancellable countdown/reset timers.
"""

import asyncio

import pytest

from pocketkarts.core.race import RacePhaseMachine, RaceStateError, RaceStatus


class Hooks:
    """Records hook calls."""

    def __init__(self):
        self.countdown_complete = 0
        self.reset_due = 0

    def on_countdown_complete(self):
        self.countdown_complete += 1

    def on_reset_due(self):
        self.reset_due += 1


def make_machine(hooks, countdown_seconds=5, interval=60.0, reset_delay=60.0):
    return RacePhaseMachine(
        countdown_seconds=countdown_seconds,
        countdown_interval=interval,
        reset_delay=reset_delay,
        on_countdown_complete=hooks.on_countdown_complete,
        on_reset_due=hooks.on_reset_due,
    )


@pytest.fixture
def hooks():
    return Hooks()


class TestTransitions:

    def test_starts_waiting(self, hooks):
        machine = make_machine(hooks)
        assert machine.status == RaceStatus.WAITING
        assert machine.countdown == 0
        assert machine.winner is None

    def test_cannot_race_from_waiting(self, hooks):
        machine = make_machine(hooks)
        with pytest.raises(RaceStateError):
            machine.start_racing()

    def test_cannot_finish_from_waiting(self, hooks):
        machine = make_machine(hooks)
        with pytest.raises(RaceStateError):
            machine.finish("kart1", "Kart")

    @pytest.mark.asyncio
    async def test_cannot_race_before_countdown_ends(self, hooks):
        machine = make_machine(hooks)
        machine.start_countdown()
        with pytest.raises(RaceStateError):
            machine.start_racing()
        machine.cancel_timers()

    @pytest.mark.asyncio
    async def test_full_cycle(self, hooks):
        machine = make_machine(hooks)
        machine.start_countdown()
        assert machine.status == RaceStatus.COUNTDOWN

        for _ in range(5):
            machine.advance_countdown()
        machine.start_racing()
        assert machine.status == RaceStatus.RACING

        winner = machine.finish("kart1", "Kart")
        assert machine.status == RaceStatus.FINISHED
        assert winner.id == "kart1"
        assert machine.winner == winner

        machine.reset()
        assert machine.status == RaceStatus.WAITING
        assert machine.winner is None

    @pytest.mark.asyncio
    async def test_second_winner_rejected(self, hooks):
        machine = make_machine(hooks)
        machine.start_countdown()
        for _ in range(5):
            machine.advance_countdown()
        machine.start_racing()
        machine.finish("kart1", "Kart")

        with pytest.raises(RaceStateError):
            machine.finish("kart2", "Other")
        assert machine.winner.id == "kart1"
        machine.cancel_timers()

    def test_reset_from_waiting_is_harmless(self, hooks):
        machine = make_machine(hooks)
        machine.reset()
        assert machine.status == RaceStatus.WAITING


class TestCountdown:

    @pytest.mark.asyncio
    async def test_counts_down_to_zero(self, hooks):
        machine = make_machine(hooks)
        machine.start_countdown()

        seen = [machine.countdown]
        while machine.countdown > 0:
            machine.advance_countdown()
            seen.append(machine.countdown)

        assert seen == [5, 4, 3, 2, 1, 0]
        assert hooks.countdown_complete == 1

    @pytest.mark.asyncio
    async def test_advance_outside_countdown_is_noop(self, hooks):
        machine = make_machine(hooks)
        machine.advance_countdown()
        assert machine.countdown == 0
        assert hooks.countdown_complete == 0

    @pytest.mark.asyncio
    async def test_timer_drives_countdown(self, hooks):
        machine = make_machine(hooks, countdown_seconds=3, interval=0.01)
        machine.start_countdown()

        await asyncio.sleep(0.3)

        assert machine.countdown == 0
        assert hooks.countdown_complete == 1
        assert not machine.has_pending_timers

    @pytest.mark.asyncio
    async def test_reset_cancels_countdown_timer(self, hooks):
        machine = make_machine(hooks, countdown_seconds=3, interval=0.02)
        machine.start_countdown()
        assert machine.has_pending_timers

        machine.reset()
        await asyncio.sleep(0.2)

        assert machine.status == RaceStatus.WAITING
        assert hooks.countdown_complete == 0
        assert not machine.has_pending_timers


class TestResetTimer:

    @pytest.mark.asyncio
    async def test_reset_falls_due_after_delay(self, hooks):
        machine = make_machine(hooks, countdown_seconds=1, reset_delay=0.02)
        machine.start_countdown()
        machine.advance_countdown()
        machine.start_racing()
        machine.finish("kart1", "Kart")

        await asyncio.sleep(0.2)

        assert hooks.reset_due == 1

    @pytest.mark.asyncio
    async def test_reset_timer_cancelled_by_reset(self, hooks):
        machine = make_machine(hooks, countdown_seconds=1, reset_delay=0.05)
        machine.start_countdown()
        machine.advance_countdown()
        machine.start_racing()
        machine.finish("kart1", "Kart")

        machine.reset()
        await asyncio.sleep(0.2)

        assert hooks.reset_due == 0
