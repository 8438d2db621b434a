"""
Wall constraint.

Keeps the dead-reckoned path from passing through walls. A movement that
crosses a wall stops ``wall_epsilon`` short of it and the blocked remainder
slides along the wall. The slide is checked again, so running into a corner
takes two rounds. Slides also yield an optional heading nudge that pulls
future headings toward the corridor direction.
"""

from typing import List, Optional, Tuple

import numpy as np

from indoor_nav.floorplan.types import CampusWall
from indoor_nav.utils.angles import angle_difference
from indoor_nav.utils.geometry import (
    direction_angle,
    distance,
    distance_to_line,
    project_onto_segment,
    segment_intersection,
)
from .config import CorrectionConfig
from .types import WallConstraintResult


# Slides shorter than this do not contribute a heading correction
MIN_SLIDE_FOR_HEADING = 0.5


class WallConstraint:
    """Stop-and-slide clamping of a single movement against walls."""

    def __init__(self, config: Optional[CorrectionConfig] = None):
        self.config = config or CorrectionConfig()

    def constrain(
        self,
        from_pos: np.ndarray,
        to_pos: np.ndarray,
        walls: List[CampusWall],
    ) -> WallConstraintResult:
        """
        Constrain the movement ``from_pos -> to_pos``.

        Args:
            from_pos: Last committed position.
            to_pos: Raw target of this step.
            walls: Nearby walls in campus coordinates.

        Returns:
            WallConstraintResult with the final position, whether any wall
            blocked the movement and the accumulated heading correction.

        Example:
            >>> wall = CampusWall(np.array([0., 0.]), np.array([100., 0.]))
            >>> WallConstraint().constrain(np.array([50., -20.]), np.array([50., 20.]), [wall])
            WallConstraintResult(constrained_position=array([50., -1.]), ...)
        """
        current_from = np.asarray(from_pos, dtype=np.float64)
        current_to = np.asarray(to_pos, dtype=np.float64)
        if not walls:
            return WallConstraintResult(current_to, False)

        was_constrained = False
        heading_correction = 0.0

        for _ in range(self.config.max_wall_iterations):
            hit = self._first_intersection(current_from, current_to, walls)
            if hit is None:
                return WallConstraintResult(current_to, was_constrained, heading_correction)
            point, wall = hit
            was_constrained = True

            # Stand-off is measured perpendicular to the wall so oblique hits keep it too
            clearance = distance_to_line(current_from, wall.start, wall.end)
            eps = self.config.wall_epsilon if clearance > self.config.wall_epsilon else clearance * 0.5
            if clearance > eps:
                stopped = current_from + (point - current_from) * ((clearance - eps) / clearance)
            else:
                stopped = current_from.copy()

            slide = project_onto_segment(current_to - point, wall.start, wall.end)
            slide_target = stopped + slide
            if distance(stopped, slide_target) > MIN_SLIDE_FOR_HEADING:
                original = direction_angle(current_from, current_to)
                slid = direction_angle(stopped, slide_target)
                heading_correction += (angle_difference(original, slid)
                                       * self.config.heading_correction_factor)

            current_from = stopped
            current_to = slide_target

        # Out of rounds: never finish on the far side of a wall
        if self._first_intersection(current_from, current_to, walls) is not None:
            current_to = current_from
        return WallConstraintResult(current_to, was_constrained, heading_correction)

    @staticmethod
    def _first_intersection(
        from_pos: np.ndarray,
        to_pos: np.ndarray,
        walls: List[CampusWall],
    ) -> Optional[Tuple[np.ndarray, CampusWall]]:
        best = None
        best_dist = np.inf
        for wall in walls:
            hit = segment_intersection(from_pos, to_pos, wall.start, wall.end)
            if hit is None:
                continue
            dist = distance(from_pos, hit[0])
            if dist < best_dist:
                best, best_dist = (hit[0], wall), dist
        return best
