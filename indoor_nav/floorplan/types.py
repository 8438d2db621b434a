"""Floor plan data structures.

Two families of types live here:

Floor-local (as authored, per floor file):
    - Wall: wall segment in floor plan coordinates
    - Entrance: door or stairwell entry point, with optional stair metadata
    - BoundaryPolygon: outline of the building footprint
    - FloorPlan: everything loaded for one floor of one building
    - BuildingMetadata / FloorPlacement: how a building sits on the campus

Campus space (after scale -> rotate -> translate):
    - CampusWall, CampusEntrance, CampusBoundary
    - CampusFloor: a fully transformed floor

Floors are identified by strings of the form ``"floor_<number>"`` where the
number may be fractional for mezzanine levels (e.g. ``"floor_1.5"``).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from indoor_nav.utils.geometry import points_in_polygon, point_in_polygon


FLOOR_ID_PREFIX = "floor_"
DEFAULT_FLOOR_NUMBER = 1.0

STAIRS_TOP = "top"
STAIRS_BOTTOM = "bottom"
VALID_STAIRS = (STAIRS_TOP, STAIRS_BOTTOM)


def floor_number_from_id(floor_id: Optional[str]) -> float:
    """
    Parse the numeric level out of a floor identifier.

    Example:
        >>> floor_number_from_id("floor_1.5")
        1.5
        >>> floor_number_from_id("basement")  # unparseable -> ground floor
        1.0
    """
    if not floor_id:
        return DEFAULT_FLOOR_NUMBER
    try:
        return float(floor_id[len(FLOOR_ID_PREFIX):]) if floor_id.startswith(FLOOR_ID_PREFIX) \
            else DEFAULT_FLOOR_NUMBER
    except ValueError:
        return DEFAULT_FLOOR_NUMBER


def floor_id_for_number(number: float) -> str:
    """Format a floor number back into an identifier (``2.0 -> "floor_2"``)."""
    if float(number).is_integer():
        return f"{FLOOR_ID_PREFIX}{int(number)}"
    return f"{FLOOR_ID_PREFIX}{number:g}"


# ----------------------------------------------------------------------------
# Floor-local types
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Wall:
    """Wall segment from (x1, y1) to (x2, y2) in floor plan coordinates."""

    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Entrance:
    """
    Entrance point in floor plan coordinates.

    Attributes:
        id: Entrance identifier, unique within a floor.
        x: X coordinate.
        y: Y coordinate.
        name: Display name, if any.
        room_no: Room number the entrance belongs to, if any.
        stairs: ``"bottom"`` for the foot of a stairwell (use it to go up to
            ``floor``), ``"top"`` for where a stairwell from a lower level
            arrives (use it to go down), None for a regular door.
        floor: Floor number the stair connects to. A stair entrance whose
            ``floor`` equals its own floor's number is where a stairwell
            starts on that floor.
        available: False for entrances that are closed.
    """

    id: int
    x: float
    y: float
    name: Optional[str] = None
    room_no: Optional[str] = None
    stairs: Optional[str] = None
    floor: Optional[float] = None
    available: bool = True

    def __post_init__(self) -> None:
        if self.stairs is not None and self.stairs not in VALID_STAIRS:
            raise ValueError(f"stairs must be one of {VALID_STAIRS} or None, got {self.stairs!r}")


@dataclass(frozen=True)
class BoundaryPolygon:
    """Named building outline; ``points`` has shape (N, 2)."""

    name: str
    points: np.ndarray

    def __post_init__(self) -> None:
        pts = np.asarray(self.points, dtype=np.float64).reshape(-1, 2)
        object.__setattr__(self, "points", pts)


@dataclass
class FloorPlan:
    """Raw geometry for one floor of one building, in floor plan coordinates."""

    floor_id: str
    building_id: str
    walls: List[Wall] = field(default_factory=list)
    entrances: List[Entrance] = field(default_factory=list)
    boundary_polygons: List[BoundaryPolygon] = field(default_factory=list)

    @property
    def floor_number(self) -> float:
        return floor_number_from_id(self.floor_id)


@dataclass(frozen=True)
class FloorPlacement:
    """
    Placement of a building's floor plans in the shared campus frame.

    Attributes:
        scale: Uniform scale applied first.
        rotation_degrees: Rotation applied second (standard rotation matrix).
        offset_x: Translation applied last, x component.
        offset_y: Translation applied last, y component.
    """

    scale: float = 1.0
    rotation_degrees: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def __post_init__(self) -> None:
        if not np.isfinite(self.scale) or self.scale <= 0:
            raise ValueError(f"scale must be positive and finite, got {self.scale}")
        if not np.isfinite(self.rotation_degrees):
            raise ValueError(f"rotation_degrees must be finite, got {self.rotation_degrees}")


@dataclass(frozen=True)
class BuildingMetadata:
    """Building-level configuration loaded from ``<building>_metadata.json``."""

    building_id: str
    building_name: str = ""
    available_floors: Tuple[str, ...] = ()
    scale: float = 1.0
    rotation: float = 0.0
    relative_position: Tuple[float, float] = (0.0, 0.0)

    @property
    def placement(self) -> FloorPlacement:
        return FloorPlacement(
            scale=self.scale,
            rotation_degrees=self.rotation,
            offset_x=self.relative_position[0],
            offset_y=self.relative_position[1],
        )


# ----------------------------------------------------------------------------
# Campus space types
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class CampusWall:
    """Wall segment in campus coordinates."""

    start: np.ndarray
    end: np.ndarray

    def as_row(self) -> np.ndarray:
        """Wall as a [x1, y1, x2, y2] row."""
        return np.array([self.start[0], self.start[1], self.end[0], self.end[1]], dtype=np.float64)

    @property
    def length(self) -> float:
        return float(np.hypot(*(self.end - self.start)))


@dataclass(frozen=True)
class CampusEntrance:
    """
    Entrance in campus coordinates.

    Carries the identity and stair metadata of the source :class:`Entrance`
    plus the floor and building it was loaded from.
    """

    id: int
    position: np.ndarray
    name: Optional[str] = None
    room_no: Optional[str] = None
    stairs: Optional[str] = None
    connected_floor: Optional[float] = None
    floor_id: Optional[str] = None
    building_id: Optional[str] = None
    available: bool = True

    @property
    def is_stairs(self) -> bool:
        return self.stairs is not None

    @property
    def is_stairs_top(self) -> bool:
        return self.stairs == STAIRS_TOP

    @property
    def is_stairs_bottom(self) -> bool:
        return self.stairs == STAIRS_BOTTOM

    @property
    def floor_number(self) -> float:
        return floor_number_from_id(self.floor_id)


@dataclass(frozen=True)
class CampusBoundary:
    """Boundary polygon in campus coordinates; ``points`` has shape (N, 2)."""

    points: np.ndarray
    name: str = ""

    def contains(self, point: np.ndarray) -> bool:
        return point_in_polygon(point, self.points)

    def contains_points(self, points: np.ndarray) -> np.ndarray:
        return points_in_polygon(points, self.points)


@dataclass
class CampusFloor:
    """One floor transformed into campus coordinates."""

    floor_id: str
    building_id: str
    walls: List[CampusWall] = field(default_factory=list)
    entrances: List[CampusEntrance] = field(default_factory=list)
    boundaries: List[CampusBoundary] = field(default_factory=list)

    @property
    def floor_number(self) -> float:
        return floor_number_from_id(self.floor_id)
