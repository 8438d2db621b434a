"""
Unit tests for indoor_nav/session.py.

Tests cover:
    - Plain corridor walking through the correction engine
    - Stair transition, climb and arrival on the next floor
    - Turnaround on the stairs and restore of the origin floor

Run with: pytest tests/test_session.py -v
"""

import math
import unittest

import numpy as np
import pytest

from indoor_nav.campus import CampusGeometry
from indoor_nav.floorplan import FloorPlacement, transform_floor
from indoor_nav.session import SessionConfig, TrackingSession
from indoor_nav.sim import corridor_building
from indoor_nav.sim.floor_plans import STAIR_A, STAIR_B
from indoor_nav.stairs import ClimbPhase, StairDirection


EAST = math.pi / 2
STRIDE = 35.0


def _session() -> TrackingSession:
    floors = [transform_floor(p, FloorPlacement()) for p in corridor_building(2)]
    session = TrackingSession(CampusGeometry.from_floors(floors))
    session.set_origin(np.array([400.0, 200.0]), EAST, "floor_1")
    return session


def _walk_until_transition(session, max_steps=10):
    for _ in range(max_steps):
        session.on_motion_label("upstairs", 0.9)
        update = session.on_step(EAST, STRIDE)
        if update.transition is not None:
            return update
    return None


class TestSessionConfig(unittest.TestCase):

    def test_replay_range(self) -> None:
        with pytest.raises(ValueError, match="replay_step_range"):
            SessionConfig(replay_step_range=(3, 1))


class TestCorridorWalk(unittest.TestCase):

    def test_walking_without_stairs(self) -> None:
        session = _session()
        west = -math.pi / 2

        updates = []
        for _ in range(5):
            session.on_motion_label("walking", 0.9)
            updates.append(session.on_step(west, STRIDE))

        assert all(u.transition is None for u in updates)
        assert all(u.phase is ClimbPhase.IDLE for u in updates)
        np.testing.assert_allclose(updates[-1].position, [400.0 - 5 * STRIDE, 200.0], atol=1e-9)
        assert session.floor_id == "floor_1"
        assert session.engine.is_active

        flushed = session.stop()
        assert len(flushed) == 2
        np.testing.assert_allclose(session.track[-1].position, [225.0, 200.0], atol=1e-9)
        assert len(session.track) == 6

    def test_low_confidence_label_is_ignored(self) -> None:
        session = _session()

        assert not session.on_motion_label("upstairs", 0.2)
        assert session.last_label is None


class TestStairTransition(unittest.TestCase):

    def test_climb_and_arrive(self) -> None:
        session = _session()

        trigger = _walk_until_transition(session)

        assert trigger is not None
        assert trigger.transition.direction is StairDirection.UP
        assert trigger.phase is ClimbPhase.CLIMBING
        np.testing.assert_allclose(trigger.position, STAIR_A)
        # The correction buffer is flushed into the track before climbing
        assert session.engine.buffered_steps == []

        for _ in range(3):
            session.on_motion_label("upstairs", 0.9)
            update = session.on_step(EAST, STRIDE)
            assert update.phase is ClimbPhase.CLIMBING
            assert update.floor_id == "floor_1"

        session.on_motion_label("walking", 0.9)
        assert not session.on_step(EAST, STRIDE).floor_changed
        session.on_motion_label("walking", 0.9)
        arrival = session.on_step(EAST, STRIDE)

        assert arrival.floor_changed
        assert arrival.floor_id == "floor_2"
        assert arrival.phase is ClimbPhase.ARRIVED
        np.testing.assert_allclose(arrival.committed_points[0].position, STAIR_B)
        assert session.provider.floor_id == "floor_2"
        assert session.animator.phase is ClimbPhase.IDLE

    def test_turnaround_cancels_back_to_origin_floor(self) -> None:
        session = _session()
        assert _walk_until_transition(session) is not None

        for _ in range(3):
            session.on_motion_label("upstairs", 0.9)
            session.on_step(EAST, STRIDE)
        for _ in range(3):
            session.on_motion_label("downstairs", 0.9)
            update = session.on_step(-EAST, STRIDE)
        assert update.phase is ClimbPhase.RETURNING

        session.on_motion_label("walking", 0.9)
        cancelled = session.on_step(-EAST, STRIDE)

        assert cancelled.phase is ClimbPhase.CANCELLED
        assert cancelled.floor_id == "floor_1"
        assert not cancelled.floor_changed
        np.testing.assert_allclose(cancelled.position, STAIR_A)
        np.testing.assert_allclose(session.current_position, STAIR_A)
        assert session.animator.phase is ClimbPhase.IDLE

    def test_reset(self) -> None:
        session = _session()
        _walk_until_transition(session)

        session.reset()

        assert session.floor_id is None
        assert session.track == []
        assert not session.provider.is_loaded()
        assert session.animator.phase is ClimbPhase.IDLE
