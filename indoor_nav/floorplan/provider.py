"""Floor constraint provider.

Holds the campus-space walls and entrances of the floor the user is on and
answers the radius and heading filtered queries used by the correction
pipeline and the stairwell detector.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from indoor_nav.utils.angles import angle_difference
from indoor_nav.utils.geometry import direction_angle, distance, distance_to_segment
from .transforms import transform_floor
from .types import CampusEntrance, CampusFloor, CampusWall, FloorPlacement, FloorPlan


logger = logging.getLogger(__name__)

DEFAULT_HEADING_TOLERANCE = 0.785  # ~45 deg


class FloorConstraintProvider:
    """
    Campus-space geometry of the active floor.

    Loading a floor replaces everything held for the previous one. Queries
    against an empty provider return empty lists.

    Example:
        >>> provider = FloorConstraintProvider()
        >>> provider.load_floor(floor_plan, scale=1.0, rotation_degrees=0.0,
        ...                     offset_x=0.0, offset_y=0.0)
        >>> provider.get_walls_near(np.array([50.0, 0.0]), radius=150.0)
    """

    def __init__(self) -> None:
        self._walls: List[CampusWall] = []
        self._entrances: List[CampusEntrance] = []
        self._floor_id: Optional[str] = None

    def load_floor(
        self,
        floor_plan: FloorPlan,
        scale: float,
        rotation_degrees: float,
        offset_x: float,
        offset_y: float,
    ) -> None:
        """
        Transform and cache the walls and entrances of ``floor_plan``.

        Args:
            floor_plan: Floor-local geometry.
            scale: Building scale factor.
            rotation_degrees: Building rotation in degrees.
            offset_x: Building offset on the campus, x.
            offset_y: Building offset on the campus, y.
        """
        placement = FloorPlacement(scale, rotation_degrees, offset_x, offset_y)
        self.load_campus_floor(transform_floor(floor_plan, placement))

    def load_campus_floor(self, floor: CampusFloor) -> None:
        """Replace cached geometry with an already transformed floor."""
        self._walls = list(floor.walls)
        self._entrances = list(floor.entrances)
        self._floor_id = floor.floor_id
        logger.debug(
            f"Loaded {floor.floor_id}: {len(self._walls)} walls, {len(self._entrances)} entrances"
        )

    def load_geometry(
        self,
        walls: Sequence[CampusWall],
        entrances: Sequence[CampusEntrance] = (),
        floor_id: Optional[str] = None,
    ) -> None:
        """Replace cached geometry with raw campus-space lists."""
        self._walls = list(walls)
        self._entrances = list(entrances)
        self._floor_id = floor_id

    @property
    def floor_id(self) -> Optional[str]:
        return self._floor_id

    def get_walls_near(self, point: np.ndarray, radius: float) -> List[CampusWall]:
        """All walls whose closest point lies within ``radius`` of ``point``."""
        return [
            wall for wall in self._walls
            if distance_to_segment(point, wall.start, wall.end) <= radius
        ]

    def get_entrances_near(
        self,
        point: np.ndarray,
        radius: float,
        heading: Optional[float] = None,
        tolerance: float = DEFAULT_HEADING_TOLERANCE,
    ) -> List[CampusEntrance]:
        """
        Entrances within ``radius`` of ``point``.

        When ``heading`` is given, entrances whose direction from ``point``
        deviates from it by more than ``tolerance`` radians are dropped.
        Entrances closer than one unit skip the direction check because
        their bearing is meaningless.
        """
        result = []
        for entrance in self._entrances:
            dist = distance(point, entrance.position)
            if dist > radius:
                continue
            if heading is not None and dist > 1.0:
                bearing = direction_angle(point, entrance.position)
                if abs(angle_difference(heading, bearing)) > tolerance:
                    continue
            result.append(entrance)
        return result

    def all_walls(self) -> List[CampusWall]:
        return list(self._walls)

    def all_entrances(self) -> List[CampusEntrance]:
        return list(self._entrances)

    def is_loaded(self) -> bool:
        """True once a floor with at least one wall has been loaded."""
        return len(self._walls) > 0

    def clear(self) -> None:
        self._walls = []
        self._entrances = []
        self._floor_id = None
