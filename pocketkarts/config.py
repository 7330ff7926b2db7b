"""
Pocket Karts Server Configuration

This file contains all server-side configurable settings.
Values are fixed at startup; the race session never mutates them.
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass
class ServerConfig:
    """Server networking configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    MAX_CONCURRENT_PLAYERS: int = 8


@dataclass
class GameConfig:
    """Race session settings."""
    TICK_RATE: int = 60  # Simulation ticks per second
    BROADCAST_RATE: int = 30  # Snapshots per second (<= TICK_RATE)
    MIN_PLAYERS: int = 2  # Players needed to start or sustain a race
    LAPS_TO_WIN: int = 3
    COUNTDOWN_SECONDS: int = 5
    COUNTDOWN_INTERVAL: float = 1.0  # Seconds per countdown step
    RESET_DELAY: float = 5.0  # Seconds between finish and reset

    # Player names
    NAME_MAX_LENGTH: int = 16
    DEFAULT_NAME: str = "Racer"

    # Integrator used by the tick driver: "kinematic" or "car"
    INTEGRATOR: str = "kinematic"


@dataclass
class PhysicsConfig:
    """Movement model parameters."""
    # Arcade kinematic model
    KART_SPEED: float = 200.0  # units/second while throttle is held
    KART_TURN_RATE: float = math.radians(150.0)  # radians/second
    KART_DRAG: float = 100.0  # units/second^2 when coasting
    KART_MAX_SPEED: float = 300.0
    WORLD_WIDTH: float = 800.0
    WORLD_HEIGHT: float = 600.0

    # Force-based car model
    MAX_SPEED: float = 150.0  # units/second
    ACCELERATION: float = 80.0  # units/second^2
    BRAKE_FORCE: float = 120.0  # units/second^2
    DRAG_COEFFICIENT: float = 0.02
    TURN_RATE: float = 3.0  # radians/second
    MIN_TURN_SPEED: float = 5.0  # Minimum speed to turn effectively
    GRIP: float = 1.0
    DRIFT_THRESHOLD: float = 0.6  # Grip ratio to start drifting
    DRIFT_RECOVERY_RATE: float = 2.0


@dataclass
class TrackConfig:
    """Checkpoint layout and starting grid."""
    # (center_x, center_y, half_width, half_height); last entry is the finish
    CHECKPOINTS: Tuple[Tuple[float, float, float, float], ...] = (
        (100.0, 500.0, 80.0, 60.0),
        (700.0, 500.0, 80.0, 60.0),
        (700.0, 100.0, 80.0, 60.0),
        (100.0, 100.0, 80.0, 40.0),
    )
    START_HEADING: float = math.pi / 2  # Facing +y (down the screen)
    GRID_ORIGIN: Tuple[float, float] = (100.0, 260.0)
    GRID_LATERAL_OFFSET: float = 20.0
    GRID_ROW_SPACING: float = 40.0


@dataclass
class Settings:
    """Main settings container."""
    server: ServerConfig = None
    game: GameConfig = None
    physics: PhysicsConfig = None
    track: TrackConfig = None

    # Application info
    APP_NAME: str = "Pocket Karts"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    def __post_init__(self):
        self.server = self.server or ServerConfig()
        self.game = self.game or GameConfig()
        self.physics = self.physics or PhysicsConfig()
        self.track = self.track or TrackConfig()


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
