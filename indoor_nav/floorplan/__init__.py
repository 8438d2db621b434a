"""
Floor plan model, campus transforms and spatial queries.
"""

from .types import (
    Wall,
    Entrance,
    BoundaryPolygon,
    FloorPlan,
    FloorPlacement,
    BuildingMetadata,
    CampusWall,
    CampusEntrance,
    CampusBoundary,
    CampusFloor,
    floor_number_from_id,
    floor_id_for_number,
)
from .transforms import raw_to_campus, raw_to_campus_array, transform_floor
from .provider import FloorConstraintProvider
from .source import FloorPlanSource, JsonFloorPlanSource, floor_plan_to_dict
from .buildings import BuildingDetector, BuildingDetection

__all__ = [
    'Wall',
    'Entrance',
    'BoundaryPolygon',
    'FloorPlan',
    'FloorPlacement',
    'BuildingMetadata',
    'CampusWall',
    'CampusEntrance',
    'CampusBoundary',
    'CampusFloor',
    'floor_number_from_id',
    'floor_id_for_number',
    'raw_to_campus',
    'raw_to_campus_array',
    'transform_floor',
    'FloorConstraintProvider',
    'FloorPlanSource',
    'JsonFloorPlanSource',
    'floor_plan_to_dict',
    'BuildingDetector',
    'BuildingDetection',
]
