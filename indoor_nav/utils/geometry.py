"""
Planar geometry kernel.

Provides the pure functions shared by the correction pipeline, the stairwell
subsystem and the pathfinder:
- Segment-segment intersection
- Closest point and distance from a point to a segment
- Projection of a vector onto a segment direction
- Heading <-> direction vector conversion (0 = screen-up, clockwise positive)
- Point-in-polygon tests

Points are NumPy arrays of shape (2,) in campus units. Every function is
total over finite inputs: zero-length segments degrade to a point instead of
dividing by zero.
"""

import math
from typing import Optional, Sequence, Tuple

import numpy as np
from matplotlib.path import Path


# Squared length below which a segment is treated as a single point
EPSILON_LENGTH_SQ = 1e-10
# Cross product magnitude below which two segments are treated as parallel
EPSILON_PARALLEL = 1e-10


def as_point(point: Sequence[float]) -> np.ndarray:
    """
    Convert any 2-element sequence to a float64 point.

    Raises:
        ValueError: If the input does not hold exactly two values.
    """
    arr = np.asarray(point, dtype=np.float64).reshape(-1)
    if arr.shape != (2,):
        raise ValueError(f"point must have 2 coordinates, got shape {arr.shape}")
    return arr


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two points."""
    return float(math.hypot(b[0] - a[0], b[1] - a[1]))


def segment_intersection(
    p1: np.ndarray,
    p2: np.ndarray,
    p3: np.ndarray,
    p4: np.ndarray,
) -> Optional[Tuple[np.ndarray, float]]:
    """
    Intersect segment p1-p2 with segment p3-p4.

    Uses the parametric form p1 + t (p2 - p1) = p3 + u (p4 - p3) and accepts
    the hit only when both t and u lie in [0, 1].

    Args:
        p1: Start of the first segment (e.g. the movement origin).
        p2: End of the first segment.
        p3: Start of the second segment (e.g. a wall endpoint).
        p4: End of the second segment.

    Returns:
        Tuple of (intersection point, t along p1-p2), or None when the
        segments are parallel, collinear or do not overlap.

    Example:
        >>> hit = segment_intersection(np.array([50., -20.]), np.array([50., 20.]),
        ...                            np.array([0., 0.]), np.array([100., 0.]))
        >>> hit[0], hit[1]
        (array([50.,  0.]), 0.5)
    """
    d1x, d1y = p2[0] - p1[0], p2[1] - p1[1]
    d2x, d2y = p4[0] - p3[0], p4[1] - p3[1]
    denom = d1x * d2y - d1y * d2x
    if abs(denom) < EPSILON_PARALLEL:
        return None

    ex, ey = p3[0] - p1[0], p3[1] - p1[1]
    t = (ex * d2y - ey * d2x) / denom
    u = (ex * d1y - ey * d1x) / denom
    if t < 0.0 or t > 1.0 or u < 0.0 or u > 1.0:
        return None

    point = np.array([p1[0] + t * d1x, p1[1] + t * d1y], dtype=np.float64)
    return point, float(t)


def closest_point_on_segment(
    point: np.ndarray,
    a: np.ndarray,
    b: np.ndarray,
) -> np.ndarray:
    """
    Closest point to ``point`` on segment a-b.

    A zero-length segment returns ``a``.
    """
    abx, aby = b[0] - a[0], b[1] - a[1]
    len_sq = abx * abx + aby * aby
    if len_sq < EPSILON_LENGTH_SQ:
        return np.array([a[0], a[1]], dtype=np.float64)
    t = ((point[0] - a[0]) * abx + (point[1] - a[1]) * aby) / len_sq
    t = min(1.0, max(0.0, t))
    return np.array([a[0] + t * abx, a[1] + t * aby], dtype=np.float64)


def distance_to_segment(point: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    """Shortest distance from ``point`` to segment a-b."""
    return distance(point, closest_point_on_segment(point, a, b))


def distances_to_segments(points: np.ndarray, segments: np.ndarray) -> np.ndarray:
    """
    Minimum distance from each point to any of the segments.

    Vectorised counterpart of :func:`distance_to_segment` used to build
    distance transforms.

    Args:
        points: Query points, shape (N, 2).
        segments: Segments as rows [x1, y1, x2, y2], shape (M, 4).

    Returns:
        Array of shape (N,) with the minimum distance per point, or +inf for
        every point when no segments are given.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    segments = np.asarray(segments, dtype=np.float64).reshape(-1, 4)
    result = np.full(points.shape[0], np.inf)
    if segments.shape[0] == 0 or points.shape[0] == 0:
        return result

    for x1, y1, x2, y2 in segments:
        abx, aby = x2 - x1, y2 - y1
        len_sq = abx * abx + aby * aby
        apx = points[:, 0] - x1
        apy = points[:, 1] - y1
        if len_sq < EPSILON_LENGTH_SQ:
            t = np.zeros(points.shape[0])
        else:
            t = np.clip((apx * abx + apy * aby) / len_sq, 0.0, 1.0)
        dx = apx - t * abx
        dy = apy - t * aby
        np.minimum(result, np.hypot(dx, dy), out=result)
    return result


def distance_to_line(point: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    """
    Perpendicular distance from ``point`` to the infinite line through a and b.

    Falls back to the distance to ``a`` for a zero-length segment.
    """
    abx, aby = b[0] - a[0], b[1] - a[1]
    length = math.hypot(abx, aby)
    if length * length < EPSILON_LENGTH_SQ:
        return distance(point, a)
    return abs(abx * (point[1] - a[1]) - aby * (point[0] - a[0])) / length


def project_onto_segment(vector: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Project a vector onto the direction of segment a-b.

    Used to turn the blocked remainder of a movement into a slide along a
    wall. A zero-length segment yields the zero vector.
    """
    abx, aby = b[0] - a[0], b[1] - a[1]
    len_sq = abx * abx + aby * aby
    if len_sq < EPSILON_LENGTH_SQ:
        return np.zeros(2, dtype=np.float64)
    scale = (vector[0] * abx + vector[1] * aby) / len_sq
    return np.array([scale * abx, scale * aby], dtype=np.float64)


def heading_to_unit_vector(heading: float) -> np.ndarray:
    """
    Unit direction vector for a heading.

    Heading 0 points to screen-up (-y), π/2 points to +x.
    """
    return np.array([math.sin(heading), -math.cos(heading)], dtype=np.float64)


def direction_angle(a: np.ndarray, b: np.ndarray) -> float:
    """Heading of the direction from ``a`` to ``b`` (inverse of :func:`heading_to_unit_vector`)."""
    return float(math.atan2(b[0] - a[0], -(b[1] - a[1])))


def advance(position: np.ndarray, heading: float, length: float) -> np.ndarray:
    """Dead-reckon one stride of ``length`` from ``position`` along ``heading``."""
    return np.asarray(position, dtype=np.float64) + length * heading_to_unit_vector(heading)


def polyline_length(points: Sequence[np.ndarray]) -> float:
    """Total length of a polyline (0.0 for fewer than two points)."""
    if len(points) < 2:
        return 0.0
    arr = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return float(np.sum(np.hypot(np.diff(arr[:, 0]), np.diff(arr[:, 1]))))


def point_in_polygon(point: np.ndarray, polygon: np.ndarray) -> bool:
    """
    Ray-casting point-in-polygon test.

    Args:
        point: Query point, shape (2,).
        polygon: Polygon vertices, shape (N, 2). Fewer than three vertices
            never contain anything.
    """
    polygon = np.asarray(polygon, dtype=np.float64).reshape(-1, 2)
    if polygon.shape[0] < 3:
        return False
    return bool(Path(polygon).contains_point((float(point[0]), float(point[1]))))


def points_in_polygon(points: np.ndarray, polygon: np.ndarray) -> np.ndarray:
    """Vectorised :func:`point_in_polygon`, returns a boolean array of shape (N,)."""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    polygon = np.asarray(polygon, dtype=np.float64).reshape(-1, 2)
    if polygon.shape[0] < 3:
        return np.zeros(points.shape[0], dtype=bool)
    return Path(polygon).contains_points(points)
