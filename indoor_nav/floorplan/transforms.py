"""
Floor-local to campus coordinate transforms.

Every floor plan is placed on the campus by the fixed pipeline
scale -> rotate -> translate. The order matters: rotating before scaling
is equivalent, but translating before rotating is not.
"""

import math

import numpy as np

from .types import (
    CampusBoundary,
    CampusEntrance,
    CampusFloor,
    CampusWall,
    FloorPlacement,
    FloorPlan,
)


def raw_to_campus(
    x: float,
    y: float,
    scale: float,
    rotation_degrees: float,
    offset_x: float,
    offset_y: float,
) -> np.ndarray:
    """
    Transform one floor-local point into campus coordinates.

    Args:
        x: Floor-local x.
        y: Floor-local y.
        scale: Uniform scale factor.
        rotation_degrees: Rotation angle in degrees.
        offset_x: Building offset on the campus, x.
        offset_y: Building offset on the campus, y.

    Returns:
        Campus point, shape (2,).

    Example:
        >>> raw_to_campus(10.0, 0.0, 2.0, 90.0, 5.0, 5.0)  # -> (5, 25)
        array([ 5., 25.])
    """
    sx = x * scale
    sy = y * scale
    rad = math.radians(rotation_degrees)
    cos_r, sin_r = math.cos(rad), math.sin(rad)
    rx = sx * cos_r - sy * sin_r
    ry = sx * sin_r + sy * cos_r
    return np.array([rx + offset_x, ry + offset_y], dtype=np.float64)


def raw_to_campus_array(points: np.ndarray, placement: FloorPlacement) -> np.ndarray:
    """Vectorised :func:`raw_to_campus` for an (N, 2) array."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2) * placement.scale
    rad = math.radians(placement.rotation_degrees)
    rot = np.array([[math.cos(rad), -math.sin(rad)],
                    [math.sin(rad), math.cos(rad)]])
    return pts @ rot.T + np.array([placement.offset_x, placement.offset_y])


def _place(x: float, y: float, placement: FloorPlacement) -> np.ndarray:
    return raw_to_campus(x, y, placement.scale, placement.rotation_degrees,
                         placement.offset_x, placement.offset_y)


def transform_floor(floor_plan: FloorPlan, placement: FloorPlacement) -> CampusFloor:
    """
    Transform every wall, entrance and boundary vertex of a floor.

    Entrances keep their identity and stair metadata and are tagged with the
    floor and building they came from.
    """
    walls = [
        CampusWall(start=_place(w.x1, w.y1, placement), end=_place(w.x2, w.y2, placement))
        for w in floor_plan.walls
    ]
    entrances = [
        CampusEntrance(
            id=e.id,
            position=_place(e.x, e.y, placement),
            name=e.name,
            room_no=e.room_no,
            stairs=e.stairs,
            connected_floor=e.floor,
            floor_id=floor_plan.floor_id,
            building_id=floor_plan.building_id,
            available=e.available,
        )
        for e in floor_plan.entrances
    ]
    boundaries = [
        CampusBoundary(points=raw_to_campus_array(poly.points, placement), name=poly.name)
        for poly in floor_plan.boundary_polygons
        if len(poly.points) > 0
    ]
    return CampusFloor(
        floor_id=floor_plan.floor_id,
        building_id=floor_plan.building_id,
        walls=walls,
        entrances=entrances,
        boundaries=boundaries,
    )
