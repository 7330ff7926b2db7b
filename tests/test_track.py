"""
Unit tests for the checkpoint track and starting grid.
"""

import math

import pytest

from pocketkarts.config import TrackConfig
from pocketkarts.core.physics import Vector2
from pocketkarts.core.track import CheckpointTrack, CheckpointZone, create_track


class TestCheckpointZone:

    def test_contains_center(self):
        zone = CheckpointZone(center=(10.0, 20.0), half_width=5.0, half_height=2.0, index=0)
        assert zone.contains(Vector2(10, 20)) is True

    def test_rectangle_is_axis_aligned(self):
        zone = CheckpointZone(center=(0.0, 0.0), half_width=5.0, half_height=2.0, index=0)
        assert zone.contains(Vector2(5, 0)) is True
        assert zone.contains(Vector2(0, 3)) is False
        assert zone.contains(Vector2(5.1, 0)) is False


class TestCheckpointTrack:

    def test_finish_index_is_last_zone(self):
        track = CheckpointTrack(zones=[(0, 0, 1, 1), (5, 0, 1, 1), (10, 0, 1, 1)])
        assert track.checkpoint_count == 3
        assert track.finish_index == 2
        assert [cp.index for cp in track.checkpoints] == [0, 1, 2]

    def test_needs_two_zones(self):
        with pytest.raises(ValueError):
            CheckpointTrack(zones=[(0, 0, 1, 1)])

    def test_rejects_empty_zone(self):
        with pytest.raises(ValueError):
            CheckpointTrack(zones=[(0, 0, 1, 1), (5, 0, 0, 1)])


class TestStartingGrid:
    """Grid slots alternate sides and move back one row per pair."""

    @pytest.fixture
    def track(self):
        return CheckpointTrack(
            zones=[(0, 0, 1, 1), (5, 0, 1, 1)],
            grid_origin=(100.0, 260.0),
            grid_lateral_offset=20.0,
            grid_row_spacing=40.0,
        )

    def test_front_row(self, track):
        assert track.grid_position(0) == Vector2(80.0, 260.0)
        assert track.grid_position(1) == Vector2(120.0, 260.0)

    def test_second_row(self, track):
        assert track.grid_position(2) == Vector2(80.0, 220.0)
        assert track.grid_position(3) == Vector2(120.0, 220.0)

    def test_slots_are_distinct(self, track):
        positions = {track.grid_position(slot).to_tuple() for slot in range(8)}
        assert len(positions) == 8


class TestCreateTrack:

    def test_default_track_from_config(self):
        config = TrackConfig()
        track = create_track(config)
        assert track.checkpoint_count == len(config.CHECKPOINTS)
        assert math.isclose(track.start_heading, config.START_HEADING)

    def test_default_grid_is_clear_of_first_checkpoint(self):
        track = create_track(TrackConfig())
        for slot in range(8):
            assert not track.checkpoints[0].contains(track.grid_position(slot))
