"""
Checkpoint track definition for Pocket Karts.

A track is a fixed, cyclic sequence of axis-aligned checkpoint zones plus the
starting grid. The last zone is the finish zone; entering it in order counts
a lap.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pocketkarts.config import TrackConfig, get_settings
from pocketkarts.core.physics import Vector2


@dataclass(frozen=True)
class CheckpointZone:
    """
    An axis-aligned rectangular checkpoint.

    Attributes:
        center: Zone center
        half_width: Half of the zone's extent along x
        half_height: Half of the zone's extent along y
        index: Position in the checkpoint sequence
    """
    center: Tuple[float, float]
    half_width: float
    half_height: float
    index: int

    def contains(self, position: Vector2) -> bool:
        """Check if a position lies inside the zone (edges included)."""
        cx, cy = self.center
        return (
            abs(position.x - cx) <= self.half_width and
            abs(position.y - cy) <= self.half_height
        )


class CheckpointTrack:
    """
    Ordered cyclic checkpoint sequence and starting grid.

    Index 0 is the first checkpoint after the start, index N-1 is the
    finish zone.
    """

    def __init__(
        self,
        zones: Sequence[Tuple[float, float, float, float]],
        start_heading: float = 0.0,
        grid_origin: Tuple[float, float] = (0.0, 0.0),
        grid_lateral_offset: float = 20.0,
        grid_row_spacing: float = 40.0,
    ):
        """
        Build a track from zone tuples.

        Args:
            zones: (center_x, center_y, half_width, half_height) per checkpoint
            start_heading: Heading given to every vehicle at race start
            grid_origin: Center of the front grid row
            grid_lateral_offset: Sideways offset of each slot from the origin
            grid_row_spacing: Distance between consecutive grid rows

        Raises:
            ValueError: If fewer than two zones are given or a zone has a
                non-positive extent
        """
        if len(zones) < 2:
            raise ValueError("A track needs at least two checkpoint zones")

        checkpoints: List[CheckpointZone] = []
        for index, (cx, cy, half_width, half_height) in enumerate(zones):
            if half_width <= 0 or half_height <= 0:
                raise ValueError(f"Checkpoint {index} must have a positive size")
            checkpoints.append(CheckpointZone(
                center=(float(cx), float(cy)),
                half_width=float(half_width),
                half_height=float(half_height),
                index=index,
            ))

        self.checkpoints: Tuple[CheckpointZone, ...] = tuple(checkpoints)
        self.start_heading = start_heading
        self.grid_origin = grid_origin
        self.grid_lateral_offset = grid_lateral_offset
        self.grid_row_spacing = grid_row_spacing

    @property
    def checkpoint_count(self) -> int:
        return len(self.checkpoints)

    @property
    def finish_index(self) -> int:
        """Index of the finish zone, also the 'before start' progress value."""
        return len(self.checkpoints) - 1

    def grid_position(self, slot: int) -> Vector2:
        """
        Position of a starting-grid slot.

        Even slots sit left of the origin and odd slots right of it; each
        pair of slots forms a row placed row_spacing further back in y.
        """
        origin_x, origin_y = self.grid_origin
        side = -1 if slot % 2 == 0 else 1
        row = slot // 2
        return Vector2(
            origin_x + side * self.grid_lateral_offset,
            origin_y - row * self.grid_row_spacing,
        )


def create_track(config: Optional[TrackConfig] = None) -> CheckpointTrack:
    """Build the session track from configuration."""
    config = config or get_settings().track
    return CheckpointTrack(
        zones=config.CHECKPOINTS,
        start_heading=config.START_HEADING,
        grid_origin=config.GRID_ORIGIN,
        grid_lateral_offset=config.GRID_LATERAL_OFFSET,
        grid_row_spacing=config.GRID_ROW_SPACING,
    )
