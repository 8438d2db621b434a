"""
Utility functions shared by the tracking and routing components.

This module provides the geometry kernel and angle helpers.
"""

from .angles import (
    normalize_angle,
    angle_difference,
    circular_mean,
)
from .geometry import (
    as_point,
    distance,
    segment_intersection,
    closest_point_on_segment,
    distance_to_segment,
    distances_to_segments,
    distance_to_line,
    project_onto_segment,
    heading_to_unit_vector,
    direction_angle,
    advance,
    polyline_length,
    point_in_polygon,
    points_in_polygon,
)

__all__ = [
    'normalize_angle',
    'angle_difference',
    'circular_mean',
    'as_point',
    'distance',
    'segment_intersection',
    'closest_point_on_segment',
    'distance_to_segment',
    'distances_to_segments',
    'distance_to_line',
    'project_onto_segment',
    'heading_to_unit_vector',
    'direction_angle',
    'advance',
    'polyline_length',
    'point_in_polygon',
    'points_in_polygon',
]
