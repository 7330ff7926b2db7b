"""
Unit tests for snapshot building, ranking and the publisher.
"""

import asyncio

import pytest

from pocketkarts.core.snapshot import SnapshotPublisher, build_snapshot, compute_ranking

from conftest import place_in_zone, start_race


class Recorder:
    """Stands in for the connection manager's broadcast."""

    def __init__(self):
        self.messages = []

    async def broadcast(self, message):
        self.messages.append(message)


class TestBuildSnapshot:

    def test_empty_session(self, session):
        snapshot = build_snapshot(session)
        assert snapshot == {
            'status': 'waiting',
            'countdown': 0,
            'winner': None,
            'laps_to_win': 3,
            'players': [],
            'ranking': [],
        }

    def test_player_view(self, session):
        vehicle = session.join("conn1", "Alice")
        player = build_snapshot(session)['players'][0]

        assert player == {
            'id': 'conn1',
            'name': 'Alice',
            'color': vehicle.color,
            'x': vehicle.car.position.x,
            'y': vehicle.car.position.y,
            'heading': vehicle.car.heading,
            'lap': 1,
            'last_checkpoint_passed': 3,
            'active': False,
        }

    @pytest.mark.asyncio
    async def test_countdown_and_winner(self, session, engine):
        alice = session.join("conn1", "Alice")
        session.join("conn2", "Bob")
        assert build_snapshot(session)['countdown'] == 5

        start_race(session)
        for zone in [0, 1, 2, 3] * 3:
            place_in_zone(alice, session.track, zone)
            engine.tick()

        snapshot = build_snapshot(session)
        assert snapshot['status'] == 'finished'
        assert snapshot['winner'] == {'id': 'conn1', 'name': 'Alice'}
        session.shutdown()


class TestRanking:

    @pytest.mark.asyncio
    async def test_ranked_by_lap_then_checkpoint(self, session, engine):
        alice = session.join("conn1", "Alice")
        bob = session.join("conn2", "Bob")
        carol = session.join("conn3", "Carol")
        start_race(session)

        # Bob: lap 2, Carol: lap 1 with two checkpoints, Alice: one checkpoint
        for zone in [0, 1, 2, 3]:
            place_in_zone(bob, session.track, zone)
            engine.tick()
        for zone in [0, 1]:
            place_in_zone(carol, session.track, zone)
            engine.tick()
        place_in_zone(alice, session.track, 0)
        engine.tick()

        assert build_snapshot(session)['ranking'] == ['conn2', 'conn3', 'conn1']
        session.shutdown()

    @pytest.mark.asyncio
    async def test_just_completed_lap_ranks_ahead_of_previous_lap(self, session):
        """A kart on the finish index of lap 2 is ahead of one deep into lap 1."""
        alice = session.join("conn1", "Alice")
        bob = session.join("conn2", "Bob")
        alice.lap, alice.last_checkpoint_passed = 1, 2
        bob.lap, bob.last_checkpoint_passed = 2, 3

        ranking = compute_ranking([alice, bob], session.track.checkpoint_count)
        assert [v.id for v in ranking] == ['conn2', 'conn1']
        session.shutdown()

    @pytest.mark.asyncio
    async def test_start_of_lap_ranks_behind_first_checkpoint(self, session):
        alice = session.join("conn1", "Alice")
        bob = session.join("conn2", "Bob")
        bob.last_checkpoint_passed = 0

        ranking = compute_ranking([alice, bob], session.track.checkpoint_count)
        assert [v.id for v in ranking] == ['conn2', 'conn1']
        session.shutdown()

    @pytest.mark.asyncio
    async def test_ties_broken_by_grid_slot(self, session):
        alice = session.join("conn1", "Alice")
        bob = session.join("conn2", "Bob")

        ranking = compute_ranking([bob, alice], session.track.checkpoint_count)
        assert [v.id for v in ranking] == ['conn1', 'conn2']
        session.shutdown()

    @pytest.mark.asyncio
    async def test_recomputed_every_snapshot(self, session):
        alice = session.join("conn1", "Alice")
        bob = session.join("conn2", "Bob")
        assert build_snapshot(session)['ranking'] == ['conn1', 'conn2']

        bob.last_checkpoint_passed = 0
        assert build_snapshot(session)['ranking'] == ['conn2', 'conn1']
        session.shutdown()


class TestSnapshotPublisher:

    @pytest.mark.asyncio
    async def test_publish_sends_snapshot(self, session):
        recorder = Recorder()
        publisher = SnapshotPublisher(session, recorder.broadcast)

        await publisher.publish()

        assert len(recorder.messages) == 1
        assert recorder.messages[0]['type'] == 'snapshot'
        assert recorder.messages[0]['data']['status'] == 'waiting'

    @pytest.mark.asyncio
    async def test_events_sent_before_snapshot(self, session, engine):
        recorder = Recorder()
        publisher = SnapshotPublisher(session, recorder.broadcast)
        alice = session.join("conn1", "Alice")
        session.join("conn2", "Bob")
        start_race(session)
        for zone in [0, 1, 2, 3] * 3:
            place_in_zone(alice, session.track, zone)
            engine.tick()

        await publisher.publish()
        await publisher.publish()

        assert [m['type'] for m in recorder.messages] == ['raceOver', 'snapshot', 'snapshot']
        session.shutdown()

    @pytest.mark.asyncio
    async def test_loop_publishes_periodically(self, session):
        recorder = Recorder()
        publisher = SnapshotPublisher(session, recorder.broadcast)

        await publisher.start_loop()
        await asyncio.sleep(0.2)
        await publisher.stop_loop()

        assert len(recorder.messages) >= 2
