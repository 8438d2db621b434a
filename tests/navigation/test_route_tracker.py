"""
Unit tests for indoor_nav/navigation/route_tracker.py.

A scripted pathfinder makes the worker results deterministic; one test runs
the real pathfinder on the corridor building.

Run with: pytest tests/navigation/test_route_tracker.py -v
"""

import threading
import unittest
from types import SimpleNamespace

import numpy as np
import pytest

from indoor_nav.campus import CampusGeometry
from indoor_nav.floorplan import CampusEntrance, FloorPlacement, transform_floor
from indoor_nav.navigation import (
    FloorPathSegment,
    MultiFloorPath,
    MultiFloorPathfinder,
    RouteTracker,
    find_entrance_for_room,
)
from indoor_nav.sim import corridor_building


GOAL = CampusEntrance(id=1, position=np.array([100.0, 100.0]), floor_id="floor_2")
GEOMETRY = SimpleNamespace(all_entrances=[], walls_by_floor={}, boundary_by_floor={})


def _path(*legs) -> MultiFloorPath:
    segments = tuple(
        FloorPathSegment(floor_id=floor_id, floor_number=float(floor_id[-1]), building_id="b",
                         points=tuple(np.array(p, dtype=float) for p in points))
        for floor_id, points in legs
    )
    return MultiFloorPath(segments=segments, total_floors=len(segments),
                          is_multi_floor=len(segments) > 1)


TWO_FLOOR_PATH = _path(
    ("floor_1", [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0)]),
    ("floor_2", [(100.0, 100.0), (100.0, 200.0)]),
)


class _ScriptedPathfinder:
    """Returns queued results in order and records each request."""

    def __init__(self, *results, gate=None):
        self.results = list(results)
        self.calls = []
        self.gate = gate

    def find_multi_floor_path(self, start, floor_id, goal, *geometry, cancel_event=None):
        self.calls.append((np.array(start), floor_id))
        if self.gate is not None:
            self.gate.wait(timeout=5.0)
        return self.results.pop(0)


class TestRouteTracker(unittest.TestCase):

    def _tracker(self, pathfinder) -> RouteTracker:
        tracker = RouteTracker(pathfinder)
        self.addCleanup(tracker.close)
        return tracker

    def test_request_and_wait(self) -> None:
        tracker = self._tracker(_ScriptedPathfinder(TWO_FLOOR_PATH))

        future = tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)

        assert future.result(timeout=5.0) is TWO_FLOOR_PATH
        assert tracker.wait(timeout=5.0) is TWO_FLOOR_PATH
        assert not tracker.is_rerouting

    def test_update_trims_current_segment(self) -> None:
        tracker = self._tracker(_ScriptedPathfinder(TWO_FLOOR_PATH))
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        progress = tracker.update_user_position(np.array([50.0, 10.0]), "floor_1")

        assert progress.deviation == pytest.approx(10.0)
        assert not progress.rerouting
        points = progress.path.segments[0].points
        np.testing.assert_allclose(points[0], [50.0, 0.0])
        np.testing.assert_allclose(points[1], [100.0, 0.0])
        assert len(progress.path.segments) == 2
        assert tracker.current_path is progress.path

    def test_update_on_next_floor_drops_previous_segments(self) -> None:
        tracker = self._tracker(_ScriptedPathfinder(TWO_FLOOR_PATH))
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        progress = tracker.update_user_position(np.array([105.0, 150.0]), "floor_2")

        assert [s.floor_id for s in progress.path.segments] == ["floor_2"]
        assert not progress.path.is_multi_floor
        np.testing.assert_allclose(progress.path.segments[0].points[0], [100.0, 150.0])

    def test_deviation_triggers_reroute(self) -> None:
        rerouted = _path(("floor_1", [(0.0, 400.0), (100.0, 100.0)]))
        pathfinder = _ScriptedPathfinder(TWO_FLOOR_PATH, rerouted)
        tracker = self._tracker(pathfinder)
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        progress = tracker.update_user_position(np.array([0.0, 400.0]), "floor_1")

        assert progress.rerouting
        # The old route stays visible until the new one is ready
        assert progress.path is TWO_FLOOR_PATH
        assert tracker.wait(timeout=5.0) is rerouted
        assert not tracker.is_rerouting
        np.testing.assert_allclose(pathfinder.calls[-1][0], [0.0, 400.0])

    def test_single_reroute_while_pending(self) -> None:
        gate = threading.Event()
        pathfinder = _ScriptedPathfinder(TWO_FLOOR_PATH, TWO_FLOOR_PATH)
        tracker = self._tracker(pathfinder)
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        pathfinder.gate = gate
        tracker.update_user_position(np.array([0.0, 400.0]), "floor_1")
        tracker.update_user_position(np.array([0.0, 500.0]), "floor_1")
        gate.set()
        tracker.wait(timeout=5.0)

        assert len(pathfinder.calls) == 2

    def test_failed_reroute_keeps_old_route(self) -> None:
        tracker = self._tracker(_ScriptedPathfinder(TWO_FLOOR_PATH, MultiFloorPath.EMPTY))
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        tracker.update_user_position(np.array([0.0, 400.0]), "floor_1")

        assert tracker.wait(timeout=5.0) is TWO_FLOOR_PATH
        assert not tracker.is_rerouting

    def test_floor_not_on_route_reroutes(self) -> None:
        pathfinder = _ScriptedPathfinder(TWO_FLOOR_PATH, TWO_FLOOR_PATH)
        tracker = self._tracker(pathfinder)
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        progress = tracker.update_user_position(np.array([0.0, 0.0]), "floor_3")

        assert progress.deviation == float("inf")
        tracker.wait(timeout=5.0)
        assert pathfinder.calls[-1][1] == "floor_3"

    def test_stale_result_is_discarded(self) -> None:
        first = _path(("floor_1", [(0.0, 0.0), (10.0, 0.0)]))
        second = _path(("floor_1", [(0.0, 0.0), (0.0, 10.0)]))
        gate = threading.Event()
        tracker = self._tracker(_ScriptedPathfinder(first, second, gate=gate))

        stale = tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        gate.set()

        assert stale.result(timeout=5.0) is first
        assert tracker.wait(timeout=5.0) is second

    def test_clear(self) -> None:
        tracker = self._tracker(_ScriptedPathfinder(TWO_FLOOR_PATH))
        tracker.request_route(np.zeros(2), "floor_1", GOAL, GEOMETRY)
        tracker.wait(timeout=5.0)

        tracker.clear()

        progress = tracker.update_user_position(np.zeros(2), "floor_1")
        assert progress.path.is_empty
        assert progress.deviation == float("inf")

    def test_invalid_threshold(self) -> None:
        with pytest.raises(ValueError, match="reroute_threshold"):
            RouteTracker(reroute_threshold=0.0)


class TestRouteTrackerOnCorridorBuilding(unittest.TestCase):

    def test_detour_into_room_reroutes(self) -> None:
        floors = [transform_floor(p, FloorPlacement()) for p in corridor_building(2)]
        geometry = CampusGeometry.from_floors(floors)
        goal = find_entrance_for_room(geometry.all_entrances, room_no="104")

        with RouteTracker(MultiFloorPathfinder(geometry.router_cache)) as tracker:
            tracker.request_route(np.array([100.0, 200.0]), "floor_1", goal, geometry)
            initial = tracker.wait(timeout=30.0)
            assert not initial.is_empty

            progress = tracker.update_user_position(np.array([100.0, 30.0]), "floor_1")
            assert progress.rerouting

            rerouted = tracker.wait(timeout=30.0)
            start = rerouted.segments[0].points[0]
            assert np.hypot(*(start - np.array([100.0, 30.0]))) < 15.0
            end = rerouted.segments[0].points[-1]
            assert np.hypot(*(end - goal.position)) < 15.0
