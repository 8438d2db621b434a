"""Building detection by boundary polygons."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import CampusBoundary, CampusFloor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildingDetection:
    """Building and floor containing a position (None outdoors)."""

    building_id: Optional[str]
    floor_id: Optional[str]
    changed: bool


class BuildingDetector:
    """
    Tracks which building footprint contains the user.

    Each building is represented by the boundary polygons of one of its
    floors. A point is inside a building if it is inside any of them.
    """

    def __init__(self) -> None:
        self._buildings: List[CampusFloor] = []
        self.current_building_id: Optional[str] = None
        self.current_floor_id: Optional[str] = None

    def load_buildings(self, floors: Sequence[CampusFloor]) -> None:
        """Register one representative floor per building."""
        self._buildings = [f for f in floors if f.boundaries]

    def set_initial(self, building_id: Optional[str], floor_id: Optional[str]) -> None:
        self.current_building_id = building_id
        self.current_floor_id = floor_id

    def is_loaded(self) -> bool:
        return len(self._buildings) > 0

    def clear(self) -> None:
        self._buildings = []
        self.current_building_id = None
        self.current_floor_id = None

    def detect(self, position: np.ndarray) -> BuildingDetection:
        """Locate ``position`` and report whether building or floor changed."""
        found: Optional[CampusFloor] = None
        for floor in self._buildings:
            if _inside_any(position, floor.boundaries):
                found = floor
                break

        building_id = found.building_id if found else None
        floor_id = found.floor_id if found else None
        changed = (building_id != self.current_building_id
                   or floor_id != self.current_floor_id)
        if changed:
            logger.debug(f"Building changed: {self.current_building_id} -> {building_id}")
        self.current_building_id = building_id
        self.current_floor_id = floor_id
        return BuildingDetection(building_id, floor_id, changed)


def _inside_any(position: np.ndarray, boundaries: Sequence[CampusBoundary]) -> bool:
    return any(b.contains(position) for b in boundaries)
