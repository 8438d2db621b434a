"""
Live route maintenance.

Routes are computed on a worker thread. While the user walks the displayed
route is trimmed to start at the user's projection onto it; walking too far
away triggers a background reroute that replaces the route only once it is
ready, and only if no newer request superseded it.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import numpy as np

from indoor_nav.floorplan.types import CampusEntrance
from indoor_nav.utils.geometry import as_point, closest_point_on_segment, distance
from .multi_floor import MultiFloorPathfinder
from .types import FloorPathSegment, MultiFloorPath


logger = logging.getLogger(__name__)

REROUTE_THRESHOLD = 150.0


@dataclass(frozen=True)
class RouteProgress:
    """
    Outcome of one position update.

    Attributes:
        path: Remaining route (possibly the untrimmed one while rerouting).
        deviation: Distance from the user to the route on the current floor,
            infinite when the route does not cover that floor.
        rerouting: True while a background reroute is pending.
    """

    path: MultiFloorPath
    deviation: float
    rerouting: bool


@dataclass(frozen=True)
class _RouteRequest:
    floor_id: str
    goal: CampusEntrance
    geometry: Any


class RouteTracker:
    """
    Keeps one route current for a moving user.

    Args:
        pathfinder: Multi-floor pathfinder shared by all requests.
        reroute_threshold: Deviation, in campus units, that triggers a reroute.
        max_workers: Worker threads for route computation.

    ``geometry`` arguments are any object exposing ``all_entrances``,
    ``walls_by_floor`` and ``boundary_by_floor``, normally a
    :class:`indoor_nav.campus.CampusGeometry`.
    """

    def __init__(
        self,
        pathfinder: Optional[MultiFloorPathfinder] = None,
        reroute_threshold: float = REROUTE_THRESHOLD,
        max_workers: int = 1,
    ):
        if reroute_threshold <= 0:
            raise ValueError(f"reroute_threshold must be positive, got {reroute_threshold}")
        self.pathfinder = pathfinder or MultiFloorPathfinder()
        self.reroute_threshold = reroute_threshold
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="route")
        self._lock = threading.Lock()
        self._generation = 0
        self._cancel: Optional[threading.Event] = None
        self._future: Optional[Future] = None
        self._request: Optional[_RouteRequest] = None
        self._path = MultiFloorPath.EMPTY
        self._rerouting = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def current_path(self) -> MultiFloorPath:
        with self._lock:
            return self._path

    @property
    def is_rerouting(self) -> bool:
        with self._lock:
            return self._rerouting

    def request_route(
        self,
        start: np.ndarray,
        floor_id: str,
        goal: CampusEntrance,
        geometry: Any,
    ) -> Future:
        """
        Start routing to a new destination, cancelling any pending request.

        The displayed route is cleared until the new one is ready.

        Returns:
            Future resolving to the computed MultiFloorPath.
        """
        with self._lock:
            self._request = _RouteRequest(floor_id, goal, geometry)
            self._path = MultiFloorPath.EMPTY
            self._rerouting = False
            return self._submit_locked(as_point(start), floor_id)

    def update_user_position(self, position: np.ndarray, floor_id: str) -> RouteProgress:
        """
        Trim the route to the user's position and reroute when off course.

        Segments of floors before ``floor_id`` are dropped and the current
        floor's segment is cut at the user's projection onto it.
        """
        position = as_point(position)
        with self._lock:
            path = self._path
            if path.is_empty:
                return RouteProgress(path, float("inf"), self._rerouting)

            index = _segment_index(path, floor_id)
            if index is None:
                deviation = float("inf")
            else:
                segment = path.segments[index]
                deviation, projected, next_index = _project_onto_polyline(position, segment.points)

            if deviation > self.reroute_threshold:
                if not self._rerouting and self._request is not None:
                    logger.debug(f"Off route by {deviation:.1f}, rerouting from {floor_id}")
                    self._rerouting = True
                    self._submit_locked(position, floor_id)
                return RouteProgress(path, deviation, self._rerouting)

            trimmed = FloorPathSegment(
                floor_id=segment.floor_id,
                floor_number=segment.floor_number,
                building_id=segment.building_id,
                points=(projected,) + tuple(segment.points[next_index:]),
                is_transition=segment.is_transition,
            )
            remaining = (trimmed,) + path.segments[index + 1:]
            self._path = MultiFloorPath(
                segments=remaining,
                total_floors=len(remaining),
                is_multi_floor=len(remaining) > 1,
            )
            return RouteProgress(self._path, deviation, self._rerouting)

    def wait(self, timeout: Optional[float] = None) -> MultiFloorPath:
        """Block until the latest request finishes and return the current route."""
        with self._lock:
            future = self._future
        if future is not None:
            future.result(timeout=timeout)
        return self.current_path

    def clear(self) -> None:
        """Cancel pending work and forget the destination."""
        with self._lock:
            self._generation += 1
            if self._cancel is not None:
                self._cancel.set()
            self._request = None
            self._path = MultiFloorPath.EMPTY
            self._rerouting = False

    def close(self) -> None:
        self.clear()
        self._executor.shutdown(wait=True)

    def _submit_locked(self, start: np.ndarray, floor_id: str) -> Future:
        if self._cancel is not None:
            self._cancel.set()
        self._generation += 1
        self._cancel = threading.Event()
        self._future = self._executor.submit(
            self._compute, self._generation, self._cancel, start, floor_id, self._request
        )
        return self._future

    def _compute(
        self,
        generation: int,
        cancel: threading.Event,
        start: np.ndarray,
        floor_id: str,
        request: _RouteRequest,
    ) -> MultiFloorPath:
        geometry = request.geometry
        try:
            result = self.pathfinder.find_multi_floor_path(
                start,
                floor_id,
                request.goal,
                geometry.all_entrances,
                geometry.walls_by_floor,
                geometry.boundary_by_floor,
                cancel_event=cancel,
            )
        except Exception:
            logger.exception(f"Route computation failed (request {generation})")
            with self._lock:
                if generation == self._generation:
                    self._rerouting = False
            raise
        with self._lock:
            if generation != self._generation or cancel.is_set():
                logger.debug(f"Discarding stale route result (request {generation})")
                return result
            if result.is_empty:
                logger.warning(f"No route from {floor_id} to entrance {request.goal.id}")
                # Keep showing the old route when a reroute fails
                if not self._rerouting:
                    self._path = result
            else:
                self._path = result
            self._rerouting = False
        return result


def _segment_index(path: MultiFloorPath, floor_id: str) -> Optional[int]:
    for i, segment in enumerate(path.segments):
        if segment.floor_id == floor_id:
            return i
    return None


def _project_onto_polyline(
    position: np.ndarray,
    points: Tuple[np.ndarray, ...],
) -> Tuple[float, np.ndarray, int]:
    """
    Nearest point of a polyline.

    Returns:
        (distance, nearest point, index of the first waypoint after it).
    """
    if len(points) == 1:
        return distance(position, points[0]), np.asarray(points[0], dtype=np.float64), 1

    best: List[Any] = [float("inf"), None, 1]
    for i in range(len(points) - 1):
        candidate = closest_point_on_segment(position, points[i], points[i + 1])
        d = distance(position, candidate)
        if d < best[0]:
            best = [d, candidate, i + 1]
    return best[0], best[1], best[2]
