"""
A* search and line-of-sight smoothing on a wall distance grid.
"""

import heapq
import itertools
import logging
import math
import threading
import time
from typing import Dict, List, Optional, Sequence

import numpy as np

from indoor_nav.floorplan.types import CampusBoundary, CampusWall
from .grid import Cell, GridConfig, WallDistanceGrid
from .types import GridPath


logger = logging.getLogger(__name__)

SQRT2 = math.sqrt(2.0)
DEFAULT_MAX_ITERATIONS = 80_000

CARDINAL_MOVES = ((1, 0), (-1, 0), (0, 1), (0, -1))
DIAGONAL_MOVES = ((1, 1), (-1, -1), (1, -1), (-1, 1))


def octile_distance(a: Cell, b: Cell) -> float:
    """Exact 8-connected distance on an obstacle-free unit-cost grid."""
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    return max(dx, dy) + (SQRT2 - 1.0) * min(dx, dy)


def astar_grid(
    grid: WallDistanceGrid,
    start_cell: Cell,
    goal_cell: Cell,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    cancel_event: Optional[threading.Event] = None,
) -> GridPath:
    """
    Cheapest 8-connected path between two cells.

    Stepping onto a cell costs its movement cost, times sqrt(2) for a
    diagonal move. A diagonal move is disallowed when either cardinal cell
    it passes is blocked, so paths never clip wall corners.

    Args:
        grid: Distance-transform grid.
        start_cell: Start cell, must be passable.
        goal_cell: Goal cell, must be passable.
        max_iterations: Node expansion budget.
        cancel_event: Search stops and returns an empty path once set.

    Returns:
        GridPath with the cells from start to goal and the total cost, or an
        empty GridPath when no path exists, the budget is exhausted or the
        search was cancelled.
    """
    if grid.is_blocked(start_cell) or grid.is_blocked(goal_cell):
        return GridPath()

    # Admissible because no cell is cheaper than open_cost
    h_scale = grid.config.open_cost
    counter = itertools.count()
    open_heap = [(h_scale * octile_distance(start_cell, goal_cell), next(counter), start_cell)]
    g_score: Dict[Cell, float] = {start_cell: 0.0}
    came_from: Dict[Cell, Cell] = {}
    closed = set()

    iterations = 0
    while open_heap and iterations < max_iterations:
        if cancel_event is not None and cancel_event.is_set():
            logger.debug(f"A* cancelled after {iterations} iterations")
            return GridPath()
        iterations += 1

        _, _, current = heapq.heappop(open_heap)
        if current == goal_cell:
            logger.debug(f"A* reached goal in {iterations} iterations")
            return GridPath(cells=_reconstruct(came_from, current), cost=g_score[current])
        if current in closed:
            continue
        closed.add(current)

        cx, cy = current
        current_g = g_score[current]
        for dx, dy in CARDINAL_MOVES + DIAGONAL_MOVES:
            diagonal = dx != 0 and dy != 0
            if diagonal and (grid.is_blocked((cx + dx, cy)) or grid.is_blocked((cx, cy + dy))):
                continue
            neighbour = (cx + dx, cy + dy)
            if neighbour in closed:
                continue
            cost = grid.movement_cost(neighbour)
            if math.isinf(cost):
                continue
            tentative = current_g + cost * (SQRT2 if diagonal else 1.0)
            if tentative < g_score.get(neighbour, math.inf):
                came_from[neighbour] = current
                g_score[neighbour] = tentative
                f = tentative + h_scale * octile_distance(neighbour, goal_cell)
                heapq.heappush(open_heap, (f, next(counter), neighbour))

    logger.debug(f"A* found no path after {iterations} iterations")
    return GridPath()


def _reconstruct(came_from: Dict[Cell, Cell], end: Cell) -> List[Cell]:
    path = [end]
    while path[-1] in came_from:
        path.append(came_from[path[-1]])
    path.reverse()
    return path


def has_line_of_sight(grid: WallDistanceGrid, a: np.ndarray, b: np.ndarray) -> bool:
    """
    True when every sample along a-b lies outside the wall buffer zone.

    Samples are spaced ``sight_step`` cells apart, endpoints included.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    delta = b - a
    length = float(np.hypot(*delta))
    steps = max(1, int(length / (grid.config.cell_size * grid.config.sight_step)))
    for s in range(steps + 1):
        if grid.is_buffered(grid.world_to_cell(a + delta * (s / steps))):
            return False
    return True


def smooth_path(grid: WallDistanceGrid, waypoints: Sequence[np.ndarray]) -> List[np.ndarray]:
    """
    String-pull a waypoint list.

    From each anchor, jump to the furthest waypoint still in line of sight.
    The result keeps the first and last waypoint.
    """
    if len(waypoints) <= 2:
        return list(waypoints)

    result = [waypoints[0]]
    i = 0
    last = len(waypoints) - 1
    while i < last:
        furthest = i + 1
        for j in range(last, i + 1, -1):
            if has_line_of_sight(grid, waypoints[i], waypoints[j]):
                furthest = j
                break
        result.append(waypoints[furthest])
        i = furthest
    return result


class FloorRouter:
    """
    Point-to-point router for one floor.

    Args:
        grid: Distance-transform grid of the floor.
        max_iterations: A* expansion budget per query.
    """

    def __init__(self, grid: WallDistanceGrid, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        self.grid = grid
        self.max_iterations = max_iterations

    @classmethod
    def from_walls(
        cls,
        walls: Sequence[CampusWall],
        extra_points: Sequence[np.ndarray] = (),
        boundaries: Sequence[CampusBoundary] = (),
        config: Optional[GridConfig] = None,
    ) -> "FloorRouter":
        return cls(WallDistanceGrid.from_walls(walls, extra_points, boundaries, config))

    def find_path(
        self,
        start: np.ndarray,
        goal: np.ndarray,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[np.ndarray]:
        """
        Smoothed campus-space waypoints from ``start`` to ``goal``.

        Start and goal are snapped to the nearest passable cell first, since
        room entrances usually sit right on a wall.

        Returns:
            Waypoints at cell centres, or an empty list when no route exists.
        """
        t0 = time.perf_counter()
        start_cell = self.grid.nearest_passable_cell(self.grid.world_to_cell(start))
        goal_cell = self.grid.nearest_passable_cell(self.grid.world_to_cell(goal))
        if start_cell is None or goal_cell is None:
            logger.warning("Cannot find a passable cell near start or goal")
            return []

        result = astar_grid(self.grid, start_cell, goal_cell, self.max_iterations, cancel_event)
        if not result.found:
            return []

        waypoints = [self.grid.cell_to_world(c) for c in result.cells]
        smoothed = smooth_path(self.grid, waypoints)
        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        logger.debug(f"Path found: {len(result.cells)} cells, {len(smoothed)} waypoints, "
                     f"{elapsed_ms:.1f} ms")
        return smoothed
