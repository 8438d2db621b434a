"""Floor plan sources.

A source supplies floor-local geometry plus the building metadata needed to
place it on the campus. The tracking and routing code only talks to the
:class:`FloorPlanSource` interface, so a file based source and a network
backed one are interchangeable.

JSON layout read by :class:`JsonFloorPlanSource`::

    <root>/
        building_1/
            building_1_metadata.json
            floor_1/
                floor_1_walls.json       # [{"x1":..,"y1":..,"x2":..,"y2":..}, ...]
                floor_1_entrances.json   # {"entrances": [{"id":..,"x":..,"y":.., ...}]}
                floor_1_boundary.json    # {"polygons": [{"name":..,"points":[{"id":..,"x":..,"y":..}]}]}
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from .types import (
    BoundaryPolygon,
    BuildingMetadata,
    Entrance,
    FloorPlan,
    STAIRS_BOTTOM,
    VALID_STAIRS,
    Wall,
    floor_number_from_id,
)


logger = logging.getLogger(__name__)

BUILDING_PREFIX = "building_"
FLOOR_PREFIX = "floor_"


class FloorPlanSource(ABC):
    """Where floor plans come from."""

    @abstractmethod
    def available_buildings(self) -> List[str]:
        """Building ids, sorted."""

    @abstractmethod
    def load_building_metadata(self, building_id: str) -> BuildingMetadata:
        """Scale, rotation and campus offset of a building."""

    @abstractmethod
    def available_floors(self, building_id: str) -> List[str]:
        """Floor ids of a building, bottom to top."""

    @abstractmethod
    def load_floor_plan(self, building_id: str, floor_id: str) -> FloorPlan:
        """Walls, entrances and boundary of one floor."""


def parse_stairs(value: Any) -> Optional[str]:
    """
    Normalise the ``stairs`` field of an entrance.

    Accepts the legacy boolean form (``true`` means a bottom entrance) as well
    as ``"top"`` / ``"bottom"``. Anything else means a regular entrance.
    """
    if isinstance(value, bool):
        return STAIRS_BOTTOM if value else None
    if isinstance(value, str):
        stairs = value.strip().lower()
        if stairs in VALID_STAIRS:
            return stairs
    return None


def entrance_from_dict(data: Dict[str, Any]) -> Entrance:
    """Build an Entrance from one JSON record."""
    floor = data.get("floor")
    return Entrance(
        id=int(data["id"]),
        x=float(data["x"]),
        y=float(data["y"]),
        name=data.get("name"),
        room_no=data.get("room_no"),
        stairs=parse_stairs(data.get("stairs")),
        floor=float(floor) if floor is not None else None,
        available=bool(data.get("available", True)),
    )


def wall_from_dict(data: Dict[str, Any]) -> Wall:
    return Wall(float(data["x1"]), float(data["y1"]), float(data["x2"]), float(data["y2"]))


def boundary_from_dict(data: Dict[str, Any]) -> BoundaryPolygon:
    """Boundary points are ordered by their ``id``."""
    points = sorted(data.get("points", []), key=lambda p: p.get("id", 0))
    coords = np.array([[float(p["x"]), float(p["y"])] for p in points], dtype=np.float64)
    return BoundaryPolygon(name=data.get("name", ""), points=coords.reshape(-1, 2))


def metadata_from_dict(building_id: str, data: Dict[str, Any]) -> BuildingMetadata:
    rel = data.get("relative_position") or {}
    return BuildingMetadata(
        building_id=data.get("building_id", building_id),
        building_name=data.get("building_name", ""),
        available_floors=tuple(data.get("available_floors", [])),
        scale=float(data.get("scale", 1.0)),
        rotation=float(data.get("rotation", 0.0)),
        relative_position=(float(rel.get("x", 0.0)), float(rel.get("y", 0.0))),
    )


def _parse_records(records: Any, parse: Callable[[Dict[str, Any]], Any], kind: str,
                   label: str) -> list:
    """Parse each record, skipping malformed ones with a warning."""
    if not isinstance(records, list):
        logger.warning(f"Expected a list of {kind} records in {label}, got {type(records).__name__}")
        return []
    parsed = []
    for i, record in enumerate(records):
        try:
            parsed.append(parse(record))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping {kind} record {i} in {label}: {e!r}")
    return parsed


def _suffix_number(name: str, prefix: str) -> float:
    try:
        return float(name[len(prefix):])
    except ValueError:
        return 0.0


class JsonFloorPlanSource(FloorPlanSource):
    """
    Floor plans stored as JSON files under a campus directory.

    Optional per-floor files (walls, entrances, boundary) that are missing or
    unreadable load as empty lists with a warning, so a partially authored
    floor still tracks. Malformed records inside a file are skipped the same
    way. Building metadata is required.

    Args:
        root: Campus directory containing ``building_*`` folders.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        if not self.root.is_dir():
            raise ValueError(f"Campus directory not found: {self.root}")

    def available_buildings(self) -> List[str]:
        names = [p.name for p in self.root.iterdir()
                 if p.is_dir() and p.name.startswith(BUILDING_PREFIX)]
        return sorted(names, key=lambda n: _suffix_number(n, BUILDING_PREFIX))

    def load_building_metadata(self, building_id: str) -> BuildingMetadata:
        path = self.root / building_id / f"{building_id}_metadata.json"
        with open(path, "r") as f:
            return metadata_from_dict(building_id, json.load(f))

    def available_floors(self, building_id: str) -> List[str]:
        building_dir = self.root / building_id
        if not building_dir.is_dir():
            return []
        names = [p.name for p in building_dir.iterdir()
                 if p.is_dir() and p.name.startswith(FLOOR_PREFIX)]
        return sorted(names, key=floor_number_from_id)

    def load_floor_plan(self, building_id: str, floor_id: str) -> FloorPlan:
        floor_dir = self.root / building_id / floor_id

        walls_data = self._read_optional(floor_dir / f"{floor_id}_walls.json", [])
        entrances_data = self._read_optional(floor_dir / f"{floor_id}_entrances.json", {})
        boundary_data = self._read_optional(floor_dir / f"{floor_id}_boundary.json", {})

        if not isinstance(entrances_data, dict):
            logger.warning(f"Entrances file of {building_id}/{floor_id} is not an object, ignoring")
            entrances_data = {}
        if not isinstance(boundary_data, dict):
            logger.warning(f"Boundary file of {building_id}/{floor_id} is not an object, ignoring")
            boundary_data = {}

        label = f"{building_id}/{floor_id}"
        return FloorPlan(
            floor_id=floor_id,
            building_id=building_id,
            walls=_parse_records(walls_data, wall_from_dict, "wall", label),
            entrances=_parse_records(entrances_data.get("entrances", []), entrance_from_dict,
                                     "entrance", label),
            boundary_polygons=_parse_records(boundary_data.get("polygons", []), boundary_from_dict,
                                             "boundary polygon", label),
        )

    @staticmethod
    def _read_optional(path: Path, default: Any) -> Any:
        if not path.exists():
            logger.warning(f"Missing floor plan file {path}, using empty geometry")
            return default
        try:
            with open(path, "r") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Unreadable floor plan file {path}: {e}")
            return default


def floor_plan_to_dict(floor_plan: FloorPlan) -> Dict[str, Any]:
    """
    Serialise a FloorPlan into the three JSON documents of the file layout.

    Returns:
        Dictionary with keys ``walls``, ``entrances`` and ``boundary``.
    """
    return {
        "walls": [
            {"x1": w.x1, "y1": w.y1, "x2": w.x2, "y2": w.y2} for w in floor_plan.walls
        ],
        "entrances": {
            "entrances": [
                {
                    "id": e.id, "x": e.x, "y": e.y, "name": e.name, "room_no": e.room_no,
                    "stairs": e.stairs, "floor": e.floor, "available": e.available,
                }
                for e in floor_plan.entrances
            ]
        },
        "boundary": {
            "polygons": [
                {
                    "name": poly.name,
                    "points": [
                        {"id": i, "x": float(x), "y": float(y)}
                        for i, (x, y) in enumerate(poly.points)
                    ],
                }
                for poly in floor_plan.boundary_polygons
            ]
        },
    }
