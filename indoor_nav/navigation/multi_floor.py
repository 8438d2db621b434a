"""
Multi-floor routing.

Per-floor routes are stitched through stair entrances that share (nearly)
the same campus position on adjacent floors.
"""

import logging
import threading
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from indoor_nav.floorplan.types import CampusBoundary, CampusEntrance, CampusWall, floor_number_from_id
from indoor_nav.utils.geometry import distance
from .astar import FloorRouter
from .grid import GridConfig
from .types import FloorPathSegment, MultiFloorPath


logger = logging.getLogger(__name__)

STAIR_PAIR_DISTANCE = 50.0
GROUND_FLOOR_NUMBER = 1.0


class FloorRouterCache:
    """
    Build-once cache of :class:`FloorRouter` per floor id.

    Safe to share between threads. A router is built at most once and is
    never rebuilt while cached, so searches already running on it stay
    valid; :meth:`invalidate` only drops it for future lookups.
    """

    def __init__(self, config: Optional[GridConfig] = None):
        self.config = config or GridConfig()
        self._routers: Dict[str, FloorRouter] = {}
        self._lock = threading.Lock()

    def __contains__(self, floor_id: str) -> bool:
        with self._lock:
            return floor_id in self._routers

    def get_or_build(
        self,
        floor_id: str,
        walls_by_floor: Mapping[str, Sequence[CampusWall]],
        boundary_by_floor: Mapping[str, Sequence[CampusBoundary]],
        entrances: Sequence[CampusEntrance] = (),
    ) -> Optional[FloorRouter]:
        """
        Router for ``floor_id``, building it on first use.

        Entrances of the floor are added to the grid extent so stairs and
        destinations always fall inside it. Ground floors skip exterior
        blocking so routes may leave one building and enter another.

        Returns:
            The router, or None when the floor has no walls.
        """
        with self._lock:
            router = self._routers.get(floor_id)
            if router is not None:
                return router

            walls = walls_by_floor.get(floor_id) or []
            if not walls:
                logger.warning(f"No walls for floor {floor_id}, cannot route")
                return None

            points = [e.position for e in entrances if e.floor_id == floor_id]
            is_ground = floor_number_from_id(floor_id) <= GROUND_FLOOR_NUMBER
            boundaries = [] if is_ground else list(boundary_by_floor.get(floor_id) or [])
            logger.debug(f"Building grid for {floor_id}: {len(walls)} walls, "
                         f"{len(points)} entrance bounds, {len(boundaries)} boundary polygons, "
                         f"ground={is_ground}")
            router = FloorRouter.from_walls(walls, points, boundaries, self.config)
            self._routers[floor_id] = router
            return router

    def invalidate(self, floor_id: Optional[str] = None) -> None:
        """Drop one floor's router, or all of them."""
        with self._lock:
            if floor_id is None:
                self._routers.clear()
            else:
                self._routers.pop(floor_id, None)


class MultiFloorPathfinder:
    """
    Shortest route from a position to an entrance, possibly across floors.

    For a cross-floor goal every stair on the start floor that leads in the
    right direction is tried; each candidate is routed floor by floor and
    the shortest complete route wins. A candidate whose stairs cannot be
    paired on the next floor, or whose floor has no geometry, is dropped.

    Args:
        cache: Shared per-floor router cache.
        stair_pair_distance: Maximum campus distance between two stair
            entrances considered the same stairwell.
    """

    def __init__(
        self,
        cache: Optional[FloorRouterCache] = None,
        stair_pair_distance: float = STAIR_PAIR_DISTANCE,
    ):
        if stair_pair_distance <= 0:
            raise ValueError(f"stair_pair_distance must be positive, got {stair_pair_distance}")
        self.cache = cache if cache is not None else FloorRouterCache()
        self.stair_pair_distance = stair_pair_distance

    def find_multi_floor_path(
        self,
        start: np.ndarray,
        start_floor_id: str,
        goal_entrance: CampusEntrance,
        all_entrances: Sequence[CampusEntrance],
        walls_by_floor: Mapping[str, Sequence[CampusWall]],
        boundary_by_floor: Mapping[str, Sequence[CampusBoundary]],
        cancel_event: Optional[threading.Event] = None,
    ) -> MultiFloorPath:
        """
        Route from ``start`` on ``start_floor_id`` to ``goal_entrance``.

        Returns:
            The route, or ``MultiFloorPath.EMPTY`` when none exists or the
            request was cancelled.
        """
        start = np.asarray(start, dtype=np.float64)
        goal_floor_id = goal_entrance.floor_id

        if start_floor_id == goal_floor_id:
            router = self.cache.get_or_build(start_floor_id, walls_by_floor,
                                             boundary_by_floor, all_entrances)
            if router is None:
                return MultiFloorPath.EMPTY
            points = router.find_path(start, goal_entrance.position, cancel_event)
            if not points:
                return MultiFloorPath.EMPTY
            segment = FloorPathSegment(
                floor_id=start_floor_id,
                floor_number=floor_number_from_id(start_floor_id),
                building_id=goal_entrance.building_id,
                points=tuple(points),
            )
            return MultiFloorPath(segments=(segment,), total_floors=1, is_multi_floor=False)

        start_number = floor_number_from_id(start_floor_id)
        goal_number = floor_number_from_id(goal_floor_id)
        going_up = goal_number > start_number
        logger.debug(f"Multi-floor: {start_floor_id} -> {goal_floor_id}, "
                     f"direction={'UP' if going_up else 'DOWN'}")

        sequence = self._floor_sequence(start_number, goal_number, going_up, all_entrances)
        if len(sequence) < 2 or sequence[0] != start_floor_id or sequence[-1] != goal_floor_id:
            logger.warning(f"Could not build floor sequence from {start_floor_id} to {goal_floor_id}")
            return MultiFloorPath.EMPTY
        logger.debug(f"Floor sequence: {' -> '.join(sequence)}")

        first_stairs = self._candidate_stairs(start_floor_id, going_up, all_entrances)
        if not first_stairs:
            logger.warning(f"No stairs on {start_floor_id} going {'up' if going_up else 'down'}")
            return MultiFloorPath.EMPTY

        best = MultiFloorPath.EMPTY
        best_length = float("inf")
        for stair in first_stairs:
            if cancel_event is not None and cancel_event.is_set():
                return MultiFloorPath.EMPTY
            candidate = self._route_via(start, sequence, stair, goal_entrance, going_up,
                                        all_entrances, walls_by_floor, boundary_by_floor,
                                        cancel_event)
            if candidate.is_empty:
                continue
            length = candidate.total_length()
            if length < best_length:
                best, best_length = candidate, length

        if best.is_empty:
            logger.warning("No valid multi-floor route found")
        else:
            logger.debug(f"Best route: {len(best.segments)} segments, "
                         f"{best.total_floors} floors, length={best_length:.1f}")
        return best

    @staticmethod
    def _floor_sequence(
        start_number: float,
        goal_number: float,
        going_up: bool,
        entrances: Sequence[CampusEntrance],
    ) -> List[str]:
        """Known floor ids between start and goal inclusive, in travel order."""
        known = {e.floor_id: floor_number_from_id(e.floor_id)
                 for e in entrances if e.floor_id is not None}
        low, high = sorted((start_number, goal_number))
        in_range = sorted((n, fid) for fid, n in known.items() if low <= n <= high)
        ordered = [fid for _, fid in in_range]
        return ordered if going_up else ordered[::-1]

    @staticmethod
    def _candidate_stairs(
        floor_id: str,
        going_up: bool,
        entrances: Sequence[CampusEntrance],
    ) -> List[CampusEntrance]:
        """
        Stair entrances on ``floor_id`` usable in the travel direction.

        Going up any stair leading to a higher floor qualifies. Going down
        only ``top`` entrances whose connected floor is this floor, i.e.
        the arrival point of a stairwell from below.
        """
        number = floor_number_from_id(floor_id)
        result = []
        for e in entrances:
            if e.floor_id != floor_id or not e.is_stairs or e.connected_floor is None:
                continue
            if going_up and e.connected_floor > number:
                result.append(e)
            elif not going_up and e.is_stairs_top and e.connected_floor == number:
                result.append(e)
        return result

    def _paired_stair(
        self,
        stair: CampusEntrance,
        next_floor_id: str,
        entrances: Sequence[CampusEntrance],
    ) -> Optional[CampusEntrance]:
        candidates = [e for e in entrances if e.floor_id == next_floor_id and e.is_stairs]
        if not candidates:
            return None
        nearest = min(candidates, key=lambda e: distance(stair.position, e.position))
        if distance(stair.position, nearest.position) >= self.stair_pair_distance:
            return None
        return nearest

    def _route_via(
        self,
        start: np.ndarray,
        sequence: List[str],
        first_stair: CampusEntrance,
        goal_entrance: CampusEntrance,
        going_up: bool,
        entrances: Sequence[CampusEntrance],
        walls_by_floor: Mapping[str, Sequence[CampusWall]],
        boundary_by_floor: Mapping[str, Sequence[CampusBoundary]],
        cancel_event: Optional[threading.Event],
    ) -> MultiFloorPath:
        segments = []
        position = start
        stair = first_stair

        for i, floor_id in enumerate(sequence):
            router = self.cache.get_or_build(floor_id, walls_by_floor, boundary_by_floor, entrances)
            if router is None:
                return MultiFloorPath.EMPTY

            is_last = i == len(sequence) - 1
            target = goal_entrance if is_last else stair
            points = router.find_path(position, target.position, cancel_event)
            if not points:
                return MultiFloorPath.EMPTY
            segments.append(FloorPathSegment(
                floor_id=floor_id,
                floor_number=floor_number_from_id(floor_id),
                building_id=target.building_id,
                points=tuple(points),
            ))
            if is_last:
                break

            next_floor_id = sequence[i + 1]
            paired = self._paired_stair(stair, next_floor_id, entrances)
            if paired is None:
                logger.warning(f"No paired stair on {next_floor_id} for stair at "
                               f"({stair.position[0]:.1f}, {stair.position[1]:.1f})")
                return MultiFloorPath.EMPTY
            position = paired.position

            if i + 1 < len(sequence) - 1:
                onward = self._candidate_stairs(next_floor_id, going_up, entrances)
                if not onward:
                    logger.warning(f"No onward stair on {next_floor_id}")
                    return MultiFloorPath.EMPTY
                stair = min(onward, key=lambda e: distance(position, e.position))

        return MultiFloorPath(
            segments=tuple(segments),
            total_floors=len(sequence),
            is_multi_floor=len(sequence) > 1,
        )


def find_entrance_for_room(
    entrances: Sequence[CampusEntrance],
    room_no: Optional[str] = None,
    name: Optional[str] = None,
    building_id: Optional[str] = None,
) -> Optional[CampusEntrance]:
    """
    Destination entrance of a room.

    Room numbers match first; names match case-insensitively as a fallback.
    When ``building_id`` is given only that building's entrances qualify.
    """
    scoped = [e for e in entrances if building_id is None or e.building_id == building_id]
    if room_no is not None:
        wanted = str(room_no)
        for e in scoped:
            if e.room_no is not None and str(e.room_no) == wanted:
                return e
    if name is not None:
        wanted_name = name.casefold()
        for e in scoped:
            if e.name is not None and e.name.casefold() == wanted_name:
                return e
    return None
