"""
Unit tests for indoor_nav/navigation/astar.py.

Tests cover:
    - Optimal cost on an open grid and agreement with Dijkstra
    - No corner cutting past blocked cells
    - Line-of-sight smoothing
    - Cancellation and iteration budget

Run with: pytest tests/navigation/test_astar.py -v
"""

import heapq
import math
import threading
import unittest

import numpy as np

from indoor_nav.eval import count_wall_crossings
from indoor_nav.floorplan import FloorPlacement, transform_floor
from indoor_nav.navigation import (
    FloorRouter,
    GridConfig,
    WallDistanceGrid,
    astar_grid,
    has_line_of_sight,
    octile_distance,
    smooth_path,
)
from indoor_nav.sim import corridor_floor_plan


MOVES = [(1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (-1, -1), (1, -1), (-1, 1)]


def _open_grid(n=10) -> WallDistanceGrid:
    return WallDistanceGrid(np.full((n, n), np.inf), config=GridConfig(cell_size=1.0))


def _dijkstra(grid, start, goal):
    """Reference search with the same move rules and no heuristic."""
    best = {start: 0.0}
    heap = [(0.0, start)]
    while heap:
        g, cell = heapq.heappop(heap)
        if cell == goal:
            return g
        if g > best[cell]:
            continue
        for dx, dy in MOVES:
            diagonal = dx != 0 and dy != 0
            if diagonal and (grid.is_blocked((cell[0] + dx, cell[1]))
                             or grid.is_blocked((cell[0], cell[1] + dy))):
                continue
            nxt = (cell[0] + dx, cell[1] + dy)
            cost = grid.movement_cost(nxt)
            if math.isinf(cost):
                continue
            ng = g + cost * (math.sqrt(2.0) if diagonal else 1.0)
            if ng < best.get(nxt, math.inf):
                best[nxt] = ng
                heapq.heappush(heap, (ng, nxt))
    return math.inf


class TestOctileDistance(unittest.TestCase):

    def test_values(self) -> None:
        assert octile_distance((0, 0), (3, 0)) == 3.0
        assert np.isclose(octile_distance((0, 0), (3, 3)), 3.0 * math.sqrt(2.0))
        assert np.isclose(octile_distance((2, 1), (0, 5)), 4.0 + 2.0 * (math.sqrt(2.0) - 1.0))


class TestAStarGrid(unittest.TestCase):

    def test_open_grid_diagonal(self) -> None:
        grid = _open_grid()

        result = astar_grid(grid, (0, 0), (9, 9))

        assert result.found
        assert result.cells[0] == (0, 0)
        assert result.cells[-1] == (9, 9)
        assert len(result.cells) == 10
        assert np.isclose(result.cost, 9.0 * math.sqrt(2.0))

    def test_start_equals_goal(self) -> None:
        result = astar_grid(_open_grid(), (4, 4), (4, 4))

        assert result.cells == [(4, 4)]
        assert result.cost == 0.0

    def test_blocked_endpoint(self) -> None:
        distances = np.full((5, 5), np.inf)
        distances[4, 4] = 0.0
        grid = WallDistanceGrid(distances, config=GridConfig(cell_size=1.0))

        assert not astar_grid(grid, (0, 0), (4, 4)).found

    def test_no_corner_cutting(self) -> None:
        distances = np.full((3, 3), np.inf)
        distances[1, 0] = 0.0
        grid = WallDistanceGrid(distances, config=GridConfig(cell_size=1.0))

        result = astar_grid(grid, (0, 0), (2, 1))

        # (0, 0) -> (1, 1) would squeeze past the blocked cell (1, 0)
        assert result.cells[1] != (1, 1)
        assert np.isclose(result.cost, 3.0)

    def test_matches_dijkstra_on_random_grids(self) -> None:
        rng = np.random.default_rng(11)
        for _ in range(20):
            grid = WallDistanceGrid(rng.uniform(0.0, 4.0, (12, 12)),
                                    config=GridConfig(cell_size=1.0))
            passable = [(i, j) for i in range(12) for j in range(12) if not grid.is_blocked((i, j))]
            a, b = rng.choice(len(passable), 2, replace=False)
            start, goal = passable[a], passable[b]

            result = astar_grid(grid, start, goal)
            expected = _dijkstra(grid, start, goal)

            if math.isinf(expected):
                assert not result.found
            else:
                assert np.isclose(result.cost, expected)

    def test_cancel_event(self) -> None:
        cancel = threading.Event()
        cancel.set()

        assert not astar_grid(_open_grid(), (0, 0), (9, 9), cancel_event=cancel).found

    def test_iteration_budget(self) -> None:
        assert not astar_grid(_open_grid(30), (0, 0), (29, 29), max_iterations=5).found


class TestSmoothing(unittest.TestCase):

    def test_open_grid_collapses_to_endpoints(self) -> None:
        grid = _open_grid()
        cells = astar_grid(grid, (0, 0), (9, 9)).cells
        waypoints = [grid.cell_to_world(c) for c in cells]

        smoothed = smooth_path(grid, waypoints)

        assert len(smoothed) == 2
        np.testing.assert_allclose(smoothed[0], [0.5, 0.5])
        np.testing.assert_allclose(smoothed[-1], [9.5, 9.5])

    def test_short_lists_unchanged(self) -> None:
        grid = _open_grid()
        points = [np.array([0.5, 0.5]), np.array([3.5, 0.5])]

        assert len(smooth_path(grid, points)) == 2

    def test_line_of_sight_blocked_by_buffer(self) -> None:
        distances = np.full((10, 10), np.inf)
        distances[5, :8] = 1.0
        grid = WallDistanceGrid(distances, config=GridConfig(cell_size=1.0))

        assert not has_line_of_sight(grid, np.array([2.5, 2.5]), np.array([8.5, 2.5]))
        assert has_line_of_sight(grid, np.array([2.5, 9.5]), np.array([8.5, 9.5]))


class TestFloorRouter(unittest.TestCase):

    def setUp(self) -> None:
        self.floor = transform_floor(corridor_floor_plan(1), FloorPlacement())
        points = [e.position for e in self.floor.entrances]
        self.router = FloorRouter.from_walls(self.floor.walls, points)

    def test_room_to_room(self) -> None:
        start = np.array([100.0, 50.0])
        goal = np.array([650.0, 320.0])

        path = self.router.find_path(start, goal)

        assert len(path) >= 3
        assert np.hypot(*(path[0] - start)) < 15.0
        assert np.hypot(*(path[-1] - goal)) < 15.0
        for a, b in zip(path, path[1:]):
            assert has_line_of_sight(self.router.grid, a, b)
        assert count_wall_crossings(np.array(path), self.floor.walls) == 0

    def test_cancelled(self) -> None:
        cancel = threading.Event()
        cancel.set()

        assert self.router.find_path(np.array([100.0, 200.0]), np.array([700.0, 200.0]), cancel) == []
