"""
Movement models for Pocket Karts.

The race engine never computes motion itself. It hands each vehicle's car
state and input intent to an integrator and stores whatever comes back, so
checkpoint and lap logic does not depend on the movement model in use.

Two integrators are provided:

- KinematicIntegrator: arcade kart handling with fixed throttle speed,
  coasting drag and world-bounds clamping.
- CarIntegrator: force-based car with acceleration, braking, grip, drift
  and drag.
"""

import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional, Protocol, Tuple

from pocketkarts.config import PhysicsConfig, Settings, get_settings

if TYPE_CHECKING:
    from pocketkarts.core.vehicle import InputIntent


@dataclass
class Vector2:
    """2D vector for position and velocity calculations."""
    x: float
    y: float

    def __add__(self, other: 'Vector2') -> 'Vector2':
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vector2') -> 'Vector2':
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Vector2':
        return Vector2(self.x * scalar, self.y * scalar)

    def magnitude(self) -> float:
        """Calculate the magnitude (length) of the vector."""
        return math.sqrt(self.x ** 2 + self.y ** 2)

    def normalize(self) -> 'Vector2':
        """Return a unit vector in the same direction."""
        mag = self.magnitude()
        if mag == 0:
            return Vector2(0, 0)
        return Vector2(self.x / mag, self.y / mag)

    def dot(self, other: 'Vector2') -> float:
        """Calculate dot product with another vector."""
        return self.x * other.x + self.y * other.y

    def to_tuple(self) -> Tuple[float, float]:
        """Convert to tuple (x, y)."""
        return (self.x, self.y)


@dataclass
class CarState:
    """
    Physical state of a vehicle.

    Attributes:
        position: Position in 2D space (units)
        velocity: Velocity vector (units/second)
        heading: Direction the vehicle is facing (radians, 0 = +x)
        angular_velocity: Rate of rotation (radians/second)
        is_drifting: Whether the car model considers the vehicle sliding
    """
    position: Vector2
    velocity: Vector2
    heading: float
    angular_velocity: float = 0.0
    is_drifting: bool = False

    def get_speed(self) -> float:
        """Get current speed (magnitude of velocity)."""
        return self.velocity.magnitude()

    def get_heading_vector(self) -> Vector2:
        """Get unit vector in the direction the vehicle is facing."""
        return Vector2(math.cos(self.heading), math.sin(self.heading))

    def get_lateral_vector(self) -> Vector2:
        """Get unit vector perpendicular to heading."""
        return Vector2(math.sin(self.heading), -math.cos(self.heading))


class Integrator(Protocol):
    """One-tick movement step for a single vehicle."""

    def step(self, state: CarState, intent: 'InputIntent', dt: float) -> CarState:
        ...


def _turn_direction(intent: 'InputIntent') -> float:
    """-1 for left, +1 for right, 0 when neither or both are held."""
    if intent.turn_left == intent.turn_right:
        return 0.0
    return -1.0 if intent.turn_left else 1.0


def _normalize_angle(angle: float) -> float:
    return (angle + math.pi) % (2 * math.pi) - math.pi


class KinematicIntegrator:
    """
    Arcade kart handling.

    Holding throttle sets the velocity straight along the heading at a fixed
    speed; releasing it lets drag bleed speed off. Vehicles are kept inside
    the world rectangle, losing the velocity component that pushed them out.
    """

    def __init__(self, config: Optional[PhysicsConfig] = None):
        self.physics = config or get_settings().physics

    def step(self, state: CarState, intent: 'InputIntent', dt: float) -> CarState:
        angular_velocity = self.physics.KART_TURN_RATE * _turn_direction(intent)
        heading = _normalize_angle(state.heading + angular_velocity * dt)
        forward = Vector2(math.cos(heading), math.sin(heading))

        if intent.throttle_forward and not intent.throttle_reverse:
            velocity = forward * self.physics.KART_SPEED
        elif intent.throttle_reverse and not intent.throttle_forward:
            velocity = forward * -self.physics.KART_SPEED
        else:
            velocity = self._apply_drag(state.velocity, dt)

        speed = velocity.magnitude()
        if speed > self.physics.KART_MAX_SPEED:
            velocity = velocity.normalize() * self.physics.KART_MAX_SPEED

        position = state.position + velocity * dt
        position, velocity = self._clamp_to_world(position, velocity)

        return CarState(
            position=position,
            velocity=velocity,
            heading=heading,
            angular_velocity=angular_velocity,
        )

    def _apply_drag(self, velocity: Vector2, dt: float) -> Vector2:
        speed = velocity.magnitude()
        slowed = speed - self.physics.KART_DRAG * dt
        if slowed <= 0:
            return Vector2(0, 0)
        return velocity.normalize() * slowed

    def _clamp_to_world(self, position: Vector2, velocity: Vector2) -> Tuple[Vector2, Vector2]:
        x, y = position.x, position.y
        vx, vy = velocity.x, velocity.y

        if x < 0 or x > self.physics.WORLD_WIDTH:
            x = min(max(x, 0.0), self.physics.WORLD_WIDTH)
            vx = 0.0
        if y < 0 or y > self.physics.WORLD_HEIGHT:
            y = min(max(y, 0.0), self.physics.WORLD_HEIGHT)
            vy = 0.0

        return Vector2(x, y), Vector2(vx, vy)


class CarIntegrator:
    """
    Force-based car model.

    Handles acceleration, braking, turning, grip, drift and drag. Forward
    throttle accelerates along the heading; reverse throttle brakes.
    """

    def __init__(self, config: Optional[PhysicsConfig] = None):
        self.physics = config or get_settings().physics

    def apply_acceleration(self, state: CarState, dt: float) -> CarState:
        """
        Apply forward acceleration to the car.

        Args:
            state: Current car state
            dt: Time delta in seconds

        Returns:
            New car state with acceleration applied
        """
        acceleration = state.get_heading_vector() * self.physics.ACCELERATION * dt
        new_velocity = state.velocity + acceleration

        # Clamp to max speed
        if new_velocity.magnitude() > self.physics.MAX_SPEED:
            new_velocity = new_velocity.normalize() * self.physics.MAX_SPEED

        return replace(state, velocity=new_velocity)

    def apply_braking(self, state: CarState, dt: float) -> CarState:
        """
        Apply braking force to slow the car.

        Args:
            state: Current car state
            dt: Time delta in seconds

        Returns:
            New car state with braking applied
        """
        if state.velocity.magnitude() == 0:
            return state

        brake_force = state.velocity.normalize() * -self.physics.BRAKE_FORCE * dt
        new_velocity = state.velocity + brake_force

        # Don't reverse from braking, just stop
        if state.velocity.dot(new_velocity) < 0:
            new_velocity = Vector2(0, 0)

        return replace(state, velocity=new_velocity)

    def apply_turning(self, state: CarState, turn_direction: float, dt: float) -> CarState:
        """
        Rotate the car; turning is less effective at low speeds.

        Args:
            state: Current car state
            turn_direction: -1 for left, +1 for right, 0 for straight
            dt: Time delta in seconds
        """
        speed = state.get_speed()
        if speed < self.physics.MIN_TURN_SPEED:
            speed_factor = speed / self.physics.MIN_TURN_SPEED
        else:
            speed_factor = 1.0

        turn_rate = self.physics.TURN_RATE * turn_direction * speed_factor
        new_heading = _normalize_angle(state.heading + turn_rate * dt)

        return replace(state, heading=new_heading, angular_velocity=turn_rate)

    def apply_grip(self, state: CarState, dt: float) -> CarState:
        """
        Pull velocity back towards the heading.

        Lateral speed above the drift threshold only gets a fraction of the
        grip, which lets the car slide.
        """
        speed = state.get_speed()
        if speed < 0.1:
            return state

        heading_vec = state.get_heading_vector()
        lateral_vec = state.get_lateral_vector()
        forward_velocity = state.velocity.dot(heading_vec)
        lateral_velocity = state.velocity.dot(lateral_vec)

        is_drifting = (
            speed >= self.physics.MIN_TURN_SPEED and
            abs(lateral_velocity) > self.physics.GRIP * self.physics.DRIFT_THRESHOLD * speed
        )
        grip_strength = self.physics.GRIP * (0.3 if is_drifting else 1.0)

        lateral_correction = -lateral_velocity * grip_strength * self.physics.DRIFT_RECOVERY_RATE * dt
        new_velocity = (heading_vec * forward_velocity) + (lateral_vec * (lateral_velocity + lateral_correction))

        return replace(state, velocity=new_velocity, is_drifting=is_drifting)

    def apply_drag(self, state: CarState, dt: float) -> CarState:
        """Apply drag proportional to speed; very slow cars stop outright."""
        speed = state.get_speed()
        if speed < 0.1:
            return replace(state, velocity=Vector2(0, 0))

        drag_force = state.velocity.normalize() * -(self.physics.DRAG_COEFFICIENT * speed * dt)
        new_velocity = state.velocity + drag_force

        if state.velocity.dot(new_velocity) < 0:
            new_velocity = Vector2(0, 0)

        return replace(state, velocity=new_velocity)

    def step(self, state: CarState, intent: 'InputIntent', dt: float) -> CarState:
        """
        Simulate one physics step with the given intent.

        Args:
            state: Current car state
            intent: Player input for this tick
            dt: Time delta in seconds

        Returns:
            New car state after simulation step
        """
        new_state = state

        if intent.throttle_forward:
            new_state = self.apply_acceleration(new_state, dt)

        if intent.throttle_reverse:
            new_state = self.apply_braking(new_state, dt)

        turn_direction = _turn_direction(intent)
        if turn_direction != 0:
            new_state = self.apply_turning(new_state, turn_direction, dt)

        new_state = self.apply_grip(new_state, dt)
        new_state = self.apply_drag(new_state, dt)

        return replace(new_state, position=new_state.position + new_state.velocity * dt)


def create_integrator(settings: Optional[Settings] = None) -> Integrator:
    """
    Build the integrator named by GameConfig.INTEGRATOR.

    Raises:
        ValueError: If the configured name is unknown
    """
    settings = settings or get_settings()
    name = settings.game.INTEGRATOR.lower()
    if name == "kinematic":
        return KinematicIntegrator(settings.physics)
    if name == "car":
        return CarIntegrator(settings.physics)
    raise ValueError(f"Unknown integrator: {settings.game.INTEGRATOR}")
