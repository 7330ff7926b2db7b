"""
Checkpoint and lap validation.

Progress only ever moves to the single next-expected zone, so skipping a
checkpoint cannot register: being inside any other zone changes nothing.
"""

from dataclasses import dataclass
from typing import Tuple

from pocketkarts.core.physics import Vector2
from pocketkarts.core.track import CheckpointTrack
from pocketkarts.core.vehicle import Vehicle


@dataclass(frozen=True)
class CheckpointProgress:
    """Result of one validation step."""
    last_checkpoint_passed: int
    lap: int
    advanced: bool = False
    lap_completed: bool = False


def next_checkpoint_index(last_passed: int, count: int) -> int:
    """Index of the zone a vehicle must enter next."""
    return (last_passed + 1) % count


def validate_checkpoint(
    position: Vector2,
    last_passed: int,
    lap: int,
    track: CheckpointTrack
) -> CheckpointProgress:
    """
    Check a position against the next expected checkpoint.

    Args:
        position: Vehicle position after this tick's movement
        last_passed: Index of the last checkpoint registered
        lap: Current lap
        track: Checkpoint track

    Returns:
        Updated progress. Unchanged unless the position lies in the next
        expected zone; entering the finish zone also increments the lap.
    """
    expected = next_checkpoint_index(last_passed, track.checkpoint_count)

    if not track.checkpoints[expected].contains(position):
        return CheckpointProgress(last_checkpoint_passed=last_passed, lap=lap)

    lap_completed = expected == track.finish_index
    return CheckpointProgress(
        last_checkpoint_passed=expected,
        lap=lap + 1 if lap_completed else lap,
        advanced=True,
        lap_completed=lap_completed,
    )


def apply_checkpoint_progress(vehicle: Vehicle, track: CheckpointTrack) -> CheckpointProgress:
    """Validate a vehicle's current position and store the result on it."""
    progress = validate_checkpoint(
        vehicle.car.position,
        vehicle.last_checkpoint_passed,
        vehicle.lap,
        track
    )
    vehicle.last_checkpoint_passed = progress.last_checkpoint_passed
    vehicle.lap = progress.lap
    return progress


def race_progress(vehicle: Vehicle, count: int) -> Tuple[int, int]:
    """
    Progress key for ranking: (lap, checkpoints passed in the current lap).

    A vehicle sitting on the finish index has passed none of the current
    lap's checkpoints yet.
    """
    return (vehicle.lap, next_checkpoint_index(vehicle.last_checkpoint_passed, count))
