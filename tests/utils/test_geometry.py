"""
Unit tests for indoor_nav/utils/geometry.py (planar geometry kernel).

Tests cover:
    - Segment-segment intersection (crossing, parallel, disjoint)
    - Closest point / distance to a segment, zero-length segments
    - Vectorised distance transform helper
    - Heading <-> unit vector conventions
    - Point-in-polygon

Run with: pytest tests/utils/test_geometry.py -v
"""

import math
import unittest

import numpy as np
import pytest

from indoor_nav.utils.geometry import (
    advance,
    as_point,
    closest_point_on_segment,
    direction_angle,
    distance,
    distance_to_line,
    distance_to_segment,
    distances_to_segments,
    heading_to_unit_vector,
    point_in_polygon,
    points_in_polygon,
    polyline_length,
    project_onto_segment,
    segment_intersection,
)


class TestSegmentIntersection(unittest.TestCase):
    """Test suite for segment_intersection."""

    def test_crossing_segments(self) -> None:
        hit = segment_intersection(np.array([50.0, -20.0]), np.array([50.0, 20.0]),
                                   np.array([0.0, 0.0]), np.array([100.0, 0.0]))

        assert hit is not None
        point, t = hit
        np.testing.assert_allclose(point, [50.0, 0.0])
        assert np.isclose(t, 0.5)

    def test_parallel_segments(self) -> None:
        hit = segment_intersection(np.array([0.0, 1.0]), np.array([10.0, 1.0]),
                                   np.array([0.0, 0.0]), np.array([10.0, 0.0]))

        assert hit is None

    def test_segments_that_would_meet_if_extended(self) -> None:
        hit = segment_intersection(np.array([50.0, -20.0]), np.array([50.0, -5.0]),
                                   np.array([0.0, 0.0]), np.array([100.0, 0.0]))

        assert hit is None

    def test_touching_endpoint_counts(self) -> None:
        hit = segment_intersection(np.array([50.0, -20.0]), np.array([50.0, 0.0]),
                                   np.array([0.0, 0.0]), np.array([100.0, 0.0]))

        assert hit is not None
        assert np.isclose(hit[1], 1.0)

    def test_zero_length_movement(self) -> None:
        """A point never intersects anything, and never yields NaN."""
        hit = segment_intersection(np.array([50.0, 0.0]), np.array([50.0, 0.0]),
                                   np.array([0.0, 0.0]), np.array([100.0, 0.0]))

        assert hit is None


class TestDistances(unittest.TestCase):
    """Test suite for closest-point and distance helpers."""

    def test_closest_point_interior(self) -> None:
        p = closest_point_on_segment(np.array([5.0, 3.0]), np.array([0.0, 0.0]), np.array([10.0, 0.0]))

        np.testing.assert_allclose(p, [5.0, 0.0])

    def test_closest_point_clamped_to_endpoint(self) -> None:
        p = closest_point_on_segment(np.array([-4.0, 3.0]), np.array([0.0, 0.0]), np.array([10.0, 0.0]))

        np.testing.assert_allclose(p, [0.0, 0.0])
        assert np.isclose(distance_to_segment(np.array([-4.0, 3.0]),
                                              np.array([0.0, 0.0]), np.array([10.0, 0.0])), 5.0)

    def test_zero_length_segment_is_a_point(self) -> None:
        a = np.array([2.0, 2.0])
        p = closest_point_on_segment(np.array([5.0, 6.0]), a, a.copy())

        np.testing.assert_allclose(p, a)
        assert np.isclose(distance_to_segment(np.array([5.0, 6.0]), a, a.copy()), 5.0)
        assert np.isclose(distance_to_line(np.array([5.0, 6.0]), a, a.copy()), 5.0)
        np.testing.assert_allclose(project_onto_segment(np.array([1.0, 1.0]), a, a.copy()), [0.0, 0.0])

    def test_distance_to_line_ignores_segment_ends(self) -> None:
        d = distance_to_line(np.array([50.0, 7.0]), np.array([0.0, 0.0]), np.array([1.0, 0.0]))

        assert np.isclose(d, 7.0)

    def test_vectorised_matches_scalar(self) -> None:
        rng = np.random.default_rng(0)
        points = rng.uniform(-50, 150, size=(40, 2))
        segments = np.array([[0.0, 0.0, 100.0, 0.0],
                             [100.0, 0.0, 100.0, 80.0],
                             [30.0, 30.0, 30.0, 30.0]])

        result = distances_to_segments(points, segments)

        expected = [min(distance_to_segment(p, s[:2], s[2:]) for s in segments) for p in points]
        np.testing.assert_allclose(result, expected)

    def test_vectorised_without_segments(self) -> None:
        result = distances_to_segments(np.zeros((3, 2)), np.empty((0, 4)))

        assert result.shape == (3,)
        assert np.all(np.isinf(result))

    def test_projection_onto_wall_direction(self) -> None:
        v = project_onto_segment(np.array([3.0, 4.0]), np.array([0.0, 0.0]), np.array([10.0, 0.0]))

        np.testing.assert_allclose(v, [3.0, 0.0])


class TestHeadingConvention(unittest.TestCase):
    """Heading 0 points to screen-up (-y), clockwise positive."""

    def test_cardinal_headings(self) -> None:
        np.testing.assert_allclose(heading_to_unit_vector(0.0), [0.0, -1.0], atol=1e-12)
        np.testing.assert_allclose(heading_to_unit_vector(math.pi / 2), [1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(heading_to_unit_vector(math.pi), [0.0, 1.0], atol=1e-12)

    def test_direction_angle_inverts_unit_vector(self) -> None:
        origin = np.array([10.0, 10.0])
        for heading in (-2.5, -0.3, 0.0, 1.0, 3.0):
            target = origin + 7.0 * heading_to_unit_vector(heading)
            assert np.isclose(direction_angle(origin, target), heading)

    def test_advance(self) -> None:
        p = advance(np.array([0.0, 0.0]), 0.0, 35.0)

        np.testing.assert_allclose(p, [0.0, -35.0], atol=1e-12)


class TestMisc(unittest.TestCase):

    def test_as_point_validates(self) -> None:
        np.testing.assert_allclose(as_point([1, 2]), [1.0, 2.0])
        with pytest.raises(ValueError, match="2 coordinates"):
            as_point([1.0, 2.0, 3.0])

    def test_distance(self) -> None:
        assert distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == 5.0

    def test_polyline_length(self) -> None:
        assert polyline_length([np.array([0.0, 0.0]), np.array([3.0, 4.0]),
                                np.array([3.0, 10.0])]) == pytest.approx(11.0)
        assert polyline_length([np.array([1.0, 1.0])]) == 0.0

    def test_point_in_polygon(self) -> None:
        square = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])

        assert point_in_polygon(np.array([5.0, 5.0]), square)
        assert not point_in_polygon(np.array([15.0, 5.0]), square)
        assert not point_in_polygon(np.array([5.0, 5.0]), square[:2])
        np.testing.assert_array_equal(
            points_in_polygon(np.array([[5.0, 5.0], [-1.0, 5.0]]), square), [True, False]
        )
