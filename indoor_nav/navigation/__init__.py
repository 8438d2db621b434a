"""
Multi-floor A* routing over wall distance-transform grids.
"""

from .types import FloorPathSegment, MultiFloorPath, GridPath
from .grid import GridConfig, WallDistanceGrid
from .astar import (
    astar_grid,
    octile_distance,
    has_line_of_sight,
    smooth_path,
    FloorRouter,
)
from .multi_floor import FloorRouterCache, MultiFloorPathfinder, find_entrance_for_room
from .route_tracker import RouteTracker, RouteProgress

__all__ = [
    'FloorPathSegment',
    'MultiFloorPath',
    'GridPath',
    'GridConfig',
    'WallDistanceGrid',
    'astar_grid',
    'octile_distance',
    'has_line_of_sight',
    'smooth_path',
    'FloorRouter',
    'FloorRouterCache',
    'MultiFloorPathfinder',
    'find_entrance_for_room',
    'RouteTracker',
    'RouteProgress',
]
