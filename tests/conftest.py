"""
Shared fixtures for race session tests.
"""

import pytest

from pocketkarts.config import GameConfig, Settings, TrackConfig
from pocketkarts.core.engine import GameEngine
from pocketkarts.core.physics import CarState, Vector2
from pocketkarts.core.session import RaceSession
from pocketkarts.core.track import CheckpointTrack


class HoldIntegrator:
    """Leaves the car where it is; tests move vehicles by hand."""

    def __init__(self):
        self.calls = 0

    def step(self, state: CarState, intent, dt: float) -> CarState:
        self.calls += 1
        return state


def zone_center(track: CheckpointTrack, index: int) -> Vector2:
    """Center point of a checkpoint zone."""
    cx, cy = track.checkpoints[index].center
    return Vector2(cx, cy)


def place_in_zone(vehicle, track: CheckpointTrack, index: int) -> None:
    vehicle.car.position = zone_center(track, index)


def start_race(session: RaceSession) -> None:
    """Run a pending countdown to zero by hand."""
    while session.countdown > 0:
        session.phase.advance_countdown()


@pytest.fixture
def test_settings():
    """Settings with timers slow enough never to fire during a test."""
    return Settings(
        game=GameConfig(
            TICK_RATE=60,
            BROADCAST_RATE=30,
            MIN_PLAYERS=2,
            LAPS_TO_WIN=3,
            COUNTDOWN_SECONDS=5,
            COUNTDOWN_INTERVAL=60.0,
            RESET_DELAY=60.0,
        ),
        track=TrackConfig(
            CHECKPOINTS=(
                (100.0, 0.0, 10.0, 10.0),
                (200.0, 0.0, 10.0, 10.0),
                (300.0, 0.0, 10.0, 10.0),
                (400.0, 0.0, 10.0, 10.0),
            ),
            START_HEADING=0.0,
            GRID_ORIGIN=(50.0, 500.0),
            GRID_LATERAL_OFFSET=20.0,
            GRID_ROW_SPACING=40.0,
        ),
    )


@pytest.fixture
def integrator():
    return HoldIntegrator()


@pytest.fixture
def session(test_settings, integrator):
    """A fresh race session on the four-zone test track."""
    return RaceSession(settings=test_settings, integrator=integrator, seed=7)


@pytest.fixture
def engine(session):
    return GameEngine(session)
