"""
Unit tests for indoor_nav/correction/wall_constraint.py.

Tests cover:
    - Stop short of a wall by wall_epsilon
    - Slide along a wall, corners
    - Non-penetration for random movements
    - Heading correction from slides

Run with: pytest tests/correction/test_wall_constraint.py -v
"""

import unittest

import numpy as np

from indoor_nav.correction import CorrectionConfig, WallConstraint
from indoor_nav.floorplan import CampusWall
from indoor_nav.utils.geometry import distance_to_segment, segment_intersection


def _wall(x1, y1, x2, y2) -> CampusWall:
    return CampusWall(start=np.array([x1, y1], dtype=float), end=np.array([x2, y2], dtype=float))


class TestWallConstraint(unittest.TestCase):

    def setUp(self) -> None:
        self.constraint = WallConstraint(CorrectionConfig(wall_epsilon=1.0))

    def test_head_on_hit_stops_short(self) -> None:
        result = self.constraint.constrain(np.array([50.0, -20.0]), np.array([50.0, 20.0]),
                                           [_wall(0, 0, 100, 0)])

        assert result.was_constrained
        np.testing.assert_allclose(result.constrained_position, [50.0, -1.0], atol=1e-9)

    def test_no_walls(self) -> None:
        result = self.constraint.constrain(np.array([0.0, 0.0]), np.array([5.0, 5.0]), [])

        assert not result.was_constrained
        np.testing.assert_allclose(result.constrained_position, [5.0, 5.0])

    def test_movement_clear_of_wall(self) -> None:
        result = self.constraint.constrain(np.array([50.0, -20.0]), np.array([60.0, -5.0]),
                                           [_wall(0, 0, 100, 0)])

        assert not result.was_constrained
        np.testing.assert_allclose(result.constrained_position, [60.0, -5.0])

    def test_oblique_hit_slides_along_wall(self) -> None:
        result = self.constraint.constrain(np.array([0.0, -10.0]), np.array([30.0, 20.0]),
                                           [_wall(-100, 0, 100, 0)])

        pos = result.constrained_position
        assert result.was_constrained
        # Kept on the near side, one epsilon off the wall, slid past the hit point
        assert np.isclose(pos[1], -1.0)
        assert pos[0] > 10.0

    def test_corner_needs_two_rounds(self) -> None:
        walls = [_wall(-100, 0, 100, 0), _wall(20, -100, 20, 0)]

        result = self.constraint.constrain(np.array([0.0, -10.0]), np.array([40.0, 30.0]), walls)

        pos = result.constrained_position
        assert pos[1] < 0.0
        assert pos[0] < 20.0
        for wall in walls:
            assert segment_intersection(np.array([0.0, -10.0]), pos, wall.start, wall.end) is None

    def test_heading_correction_disabled_by_default(self) -> None:
        result = WallConstraint().constrain(np.array([0.0, -10.0]), np.array([30.0, 20.0]),
                                            [_wall(-100, 0, 100, 0)])

        assert result.heading_correction == 0.0

    def test_heading_correction_follows_slide(self) -> None:
        constraint = WallConstraint(CorrectionConfig(heading_correction_factor=0.5))

        result = constraint.constrain(np.array([0.0, -10.0]), np.array([30.0, 20.0]),
                                      [_wall(-100, 0, 100, 0)])

        # Original direction is 135 deg, slid direction 90 deg
        assert np.isclose(result.heading_correction, 0.5 * np.deg2rad(-45.0))


class TestNonPenetration(unittest.TestCase):
    """Any movement crossing a wall ends on the near side, >= epsilon away."""

    def test_random_movements(self) -> None:
        rng = np.random.default_rng(42)
        eps = 1.0
        constraint = WallConstraint(CorrectionConfig(wall_epsilon=eps))
        wall = _wall(0, 0, 100, 0)

        for _ in range(200):
            start = np.array([rng.uniform(0, 100), rng.uniform(-40, -2)])
            end = np.array([rng.uniform(-20, 120), rng.uniform(1, 40)])
            crosses = segment_intersection(start, end, wall.start, wall.end) is not None

            pos = constraint.constrain(start, end, [wall]).constrained_position

            if crosses:
                assert pos[1] < 0.0
                assert distance_to_segment(pos, wall.start, wall.end) >= eps - 1e-6
