"""Route result types."""

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple

import numpy as np

from indoor_nav.utils.geometry import polyline_length


@dataclass(frozen=True)
class FloorPathSegment:
    """
    Waypoints of one route leg on a single floor.

    Attributes:
        floor_id: Floor the segment belongs to, e.g. ``"floor_1"``.
        floor_number: Numeric level, e.g. 1.0 or 1.5.
        building_id: Building the leg runs through.
        points: Ordered campus-space waypoints, each of shape (2,).
        is_transition: True when the segment draws a stairwell crossing.
    """

    floor_id: str
    floor_number: float
    building_id: str
    points: Tuple[np.ndarray, ...] = ()
    is_transition: bool = False

    def length(self) -> float:
        return polyline_length(self.points)


@dataclass(frozen=True)
class MultiFloorPath:
    """
    Complete route, ordered segment by segment.

    Immutable once built; a reroute replaces the whole object.
    """

    segments: Tuple[FloorPathSegment, ...] = ()
    total_floors: int = 0
    is_multi_floor: bool = False

    EMPTY: ClassVar["MultiFloorPath"]

    @property
    def all_points(self) -> List[np.ndarray]:
        """Every waypoint flattened across floors."""
        return [p for s in self.segments for p in s.points]

    @property
    def is_empty(self) -> bool:
        return len(self.segments) == 0 or all(len(s.points) == 0 for s in self.segments)

    def total_length(self) -> float:
        """Sum of the per-floor polyline lengths."""
        return float(sum(s.length() for s in self.segments))

    def segment_for_floor(self, floor_id: str) -> Optional[FloorPathSegment]:
        for segment in self.segments:
            if segment.floor_id == floor_id:
                return segment
        return None


MultiFloorPath.EMPTY = MultiFloorPath()


@dataclass(frozen=True)
class GridPath:
    """Raw A* result: visited cells and the accumulated movement cost."""

    cells: List[Tuple[int, int]] = field(default_factory=list)
    cost: float = float("inf")

    @property
    def found(self) -> bool:
        return len(self.cells) > 0
