"""
Vehicle state for Pocket Karts.

A Vehicle is one connected player's kart: identity, cosmetic data, physical
state and race progress. The race session owns every Vehicle.
"""

from dataclasses import dataclass, field

from pocketkarts.core.physics import CarState


@dataclass
class InputIntent:
    """Latest control intent from a client; consumed once per tick."""
    turn_left: bool = False
    turn_right: bool = False
    throttle_forward: bool = False
    throttle_reverse: bool = False


@dataclass
class Vehicle:
    """
    Complete state for a single player's kart.

    Attributes:
        id: Connection id, stable for the connection's lifetime
        name: Normalized display name
        color: 24-bit RGB colour assigned at creation
        grid_slot: Starting-grid index, kept across resets
        car: Position, heading and velocity
        last_checkpoint_passed: Index of the last checkpoint registered. A
            vehicle on the grid starts on the finish index (N-1)
        lap: Current lap, starting at 1
        input: Latest input intent
        active: Whether the vehicle takes part in the current race
    """
    id: str
    name: str
    color: int
    grid_slot: int
    car: CarState
    last_checkpoint_passed: int
    lap: int = 1
    input: InputIntent = field(default_factory=InputIntent)
    active: bool = False

    def to_dict(self) -> dict:
        """Render-safe view of the vehicle."""
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'x': self.car.position.x,
            'y': self.car.position.y,
            'heading': self.car.heading,
            'lap': self.lap,
            'last_checkpoint_passed': self.last_checkpoint_passed,
            'active': self.active,
        }
