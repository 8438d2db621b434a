"""
Campus geometry owned by one tracking or routing session.

Holds every floor of every building in campus coordinates together with the
lookups derived from them: walls, entrances and boundaries grouped by floor
id, the stair pairs, and the per-floor router cache. Reloading is explicit
through :meth:`CampusGeometry.refresh`.
"""

import logging
from typing import Dict, List, Optional, Sequence

from indoor_nav.floorplan.source import FloorPlanSource
from indoor_nav.floorplan.transforms import transform_floor
from indoor_nav.floorplan.types import (
    BuildingMetadata,
    CampusBoundary,
    CampusEntrance,
    CampusFloor,
    CampusWall,
    floor_number_from_id,
)
from indoor_nav.navigation.grid import GridConfig
from indoor_nav.navigation.multi_floor import FloorRouterCache
from indoor_nav.stairs.pairing import build_stair_pairs
from indoor_nav.stairs.types import StairPair


logger = logging.getLogger(__name__)


class CampusGeometry:
    """
    Transformed floors of a campus plus derived lookups.

    Floors sharing a floor id across buildings are merged in the by-floor
    lookups, since tracking and routing work in one campus-wide space.

    Args:
        floors: Floors already in campus coordinates.
        source: Where the floors came from, needed by :meth:`refresh`.
        grid_config: Grid tunables of the router cache.
    """

    def __init__(
        self,
        floors: Sequence[CampusFloor] = (),
        source: Optional[FloorPlanSource] = None,
        grid_config: Optional[GridConfig] = None,
    ):
        self.source = source
        self.metadata: Dict[str, BuildingMetadata] = {}
        self.router_cache = FloorRouterCache(grid_config)
        self._set_floors(floors)

    @classmethod
    def from_source(
        cls,
        source: FloorPlanSource,
        grid_config: Optional[GridConfig] = None,
    ) -> "CampusGeometry":
        """Load and transform every floor of every building of ``source``."""
        geometry = cls(source=source, grid_config=grid_config)
        geometry.refresh()
        return geometry

    @classmethod
    def from_floors(
        cls,
        floors: Sequence[CampusFloor],
        grid_config: Optional[GridConfig] = None,
    ) -> "CampusGeometry":
        return cls(floors=floors, grid_config=grid_config)

    def _set_floors(self, floors: Sequence[CampusFloor]) -> None:
        self.floors: List[CampusFloor] = sorted(
            floors, key=lambda f: (f.building_id, f.floor_number)
        )
        self.walls_by_floor: Dict[str, List[CampusWall]] = {}
        self.entrances_by_floor: Dict[str, List[CampusEntrance]] = {}
        self.boundary_by_floor: Dict[str, List[CampusBoundary]] = {}
        for floor in self.floors:
            self.walls_by_floor.setdefault(floor.floor_id, []).extend(floor.walls)
            self.entrances_by_floor.setdefault(floor.floor_id, []).extend(floor.entrances)
            self.boundary_by_floor.setdefault(floor.floor_id, []).extend(floor.boundaries)
        self.all_entrances: List[CampusEntrance] = [
            e for floor in self.floors for e in floor.entrances
        ]
        self.stair_pairs: List[StairPair] = build_stair_pairs(self.floors)
        self.router_cache.invalidate()
        logger.debug(f"Campus geometry: {len(self.floors)} floors, "
                     f"{len(self.all_entrances)} entrances, {len(self.stair_pairs)} stair pairs")

    @property
    def is_loaded(self) -> bool:
        return len(self.floors) > 0

    @property
    def floor_ids(self) -> List[str]:
        """Distinct floor ids, bottom to top."""
        return sorted(self.walls_by_floor, key=floor_number_from_id)

    def floor(self, building_id: str, floor_id: str) -> Optional[CampusFloor]:
        for f in self.floors:
            if f.building_id == building_id and f.floor_id == floor_id:
                return f
        return None

    def campus_floor(self, floor_id: str) -> CampusFloor:
        """All buildings' geometry for ``floor_id`` merged into one floor."""
        return CampusFloor(
            floor_id=floor_id,
            building_id="",
            walls=list(self.walls_by_floor.get(floor_id, [])),
            entrances=list(self.entrances_by_floor.get(floor_id, [])),
            boundaries=list(self.boundary_by_floor.get(floor_id, [])),
        )

    def invalidate(self) -> None:
        """Forget all floors and derived data."""
        self.metadata = {}
        self._set_floors([])

    def refresh(self) -> None:
        """
        Reload every floor from the source.

        Raises:
            ValueError: If the geometry was not built from a source.
        """
        if self.source is None:
            raise ValueError("CampusGeometry has no source to refresh from")

        floors = []
        metadata = {}
        for building_id in self.source.available_buildings():
            meta = self.source.load_building_metadata(building_id)
            metadata[building_id] = meta
            for floor_id in self.source.available_floors(building_id):
                plan = self.source.load_floor_plan(building_id, floor_id)
                floors.append(transform_floor(plan, meta.placement))
        self.metadata = metadata
        self._set_floors(floors)
