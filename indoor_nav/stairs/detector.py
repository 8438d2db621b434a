"""Stairwell transition detection.

Two independent paths can confirm that the user is entering a stairwell:

    1. Spatial candidate + classifier: a stair entrance on the current floor
       that the user is approaching (within a proximity radius and inside a
       field-of-view cone around a lagged heading) is latched as a candidate
       for a few steps. While it is latched, the recent classifier labels are
       checked for the matching stair direction.
    2. Sustained labels: a long enough run of identical stair labels locates
       the nearest stairwell by proximity alone, for users who enter at an
       angle the FOV check rejects.

Low-confidence labels never enter any counter or window.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np

from indoor_nav.utils.angles import angle_difference
from indoor_nav.utils.geometry import direction_angle, distance
from .types import (
    LABEL_UPSTAIRS,
    STAIR_LABELS,
    StairDirection,
    StairPair,
    StairTransitionEvent,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StairDetectorConfig:
    """
    Tunables for :class:`StairwellTransitionDetector` (campus units, radians).

    Attributes:
        proximity_radius: Radius around a stair start that counts as near.
        fov_half_angle: Half-angle of the approach cone (60 deg by default).
        window_size: Number of accepted labels kept in the sliding window.
        required_in_window: Matching labels needed to confirm a candidate.
        min_confidence: Labels below this confidence are dropped.
        candidate_expiry_steps: Steps a candidate stays latched after the
            user leaves proximity.
        heading_buffer_size: Heading history length; the oldest entry is the
            lagged heading.
        sustained_label_threshold: Run length of identical stair labels that
            triggers the proximity-only path.
        sustained_proximity_radius: Search radius of the proximity-only path.
    """

    proximity_radius: float = 100.0
    fov_half_angle: float = 1.047
    window_size: int = 3
    required_in_window: int = 1
    min_confidence: float = 0.45
    candidate_expiry_steps: int = 8
    heading_buffer_size: int = 3
    sustained_label_threshold: int = 3
    sustained_proximity_radius: float = 200.0

    def __post_init__(self) -> None:
        if self.proximity_radius <= 0 or self.sustained_proximity_radius <= 0:
            raise ValueError("proximity radii must be positive")
        if not 0 < self.fov_half_angle <= np.pi:
            raise ValueError(f"fov_half_angle must be in (0, π], got {self.fov_half_angle}")
        if self.window_size < 1 or self.heading_buffer_size < 1:
            raise ValueError("window_size and heading_buffer_size must be >= 1")
        if not 1 <= self.required_in_window <= self.window_size:
            raise ValueError(
                f"required_in_window must be in [1, {self.window_size}], "
                f"got {self.required_in_window}"
            )
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0, 1], got {self.min_confidence}")
        if self.candidate_expiry_steps < 0 or self.sustained_label_threshold < 1:
            raise ValueError("candidate_expiry_steps must be >= 0 and "
                             "sustained_label_threshold >= 1")


class StairwellTransitionDetector:
    """
    Decides when a floor change through a stairwell begins.

    Feed every classifier result to :meth:`on_motion_label` and call
    :meth:`check_transition` / :meth:`check_sustained_ml_transition` once per
    step. Call :meth:`reset` after a transition resolves so that a new one can
    be detected on the new floor.

    Example:
        >>> detector = StairwellTransitionDetector()
        >>> for _ in range(3):
        ...     detector.on_motion_label("upstairs", 0.9)
        >>> event = detector.check_transition(position, heading, pairs, 1.0)
        >>> event.direction
        <StairDirection.UP: 'up'>
    """

    def __init__(self, config: Optional[StairDetectorConfig] = None):
        self.config = config or StairDetectorConfig()
        self._labels: Deque[str] = deque(maxlen=self.config.window_size)
        self._headings: Deque[float] = deque(maxlen=self.config.heading_buffer_size)
        self._run_label: Optional[str] = None
        self._run_count = 0
        self._candidate: Optional[StairPair] = None
        self._candidate_direction = StairDirection.UP
        self._candidate_steps_remaining = 0
        self._steps_since_latch = 0

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def on_motion_label(self, label: str, confidence: float) -> bool:
        """
        Record one classifier output.

        Returns:
            True if the label was accepted, False if it was dropped for low
            confidence.
        """
        if confidence < self.config.min_confidence:
            return False

        self._labels.append(label)
        if label in STAIR_LABELS:
            if label == self._run_label:
                self._run_count += 1
            else:
                self._run_label = label
                self._run_count = 1
        else:
            self._run_label = None
            self._run_count = 0
        return True

    @property
    def label_window(self) -> List[str]:
        return list(self._labels)

    @property
    def sustained_run(self) -> Tuple[Optional[str], int]:
        """(label, length) of the current run of identical stair labels."""
        return self._run_label, self._run_count

    @property
    def has_candidate(self) -> bool:
        return self._candidate is not None

    # ------------------------------------------------------------------
    # Path 1: spatial candidate + classifier window
    # ------------------------------------------------------------------

    def check_transition(
        self,
        position: np.ndarray,
        heading: float,
        stair_pairs: Sequence[StairPair],
        current_floor_number: float,
    ) -> Optional[StairTransitionEvent]:
        """
        Update the candidate latch and confirm it against recent labels.

        Args:
            position: Current campus position.
            heading: Current heading (radians).
            stair_pairs: Every stair pair of the campus.
            current_floor_number: Level the user is on.

        Returns:
            A StairTransitionEvent when the latched candidate is confirmed,
            otherwise None.
        """
        self._headings.append(heading)
        lagged_heading = self._headings[0]

        match = self._find_facing_pair(position, lagged_heading, stair_pairs, current_floor_number)
        if match is not None:
            if self._candidate is None:
                self._steps_since_latch = 0
            self._candidate, self._candidate_direction = match
            self._candidate_steps_remaining = self.config.candidate_expiry_steps
            self._steps_since_latch += 1
            logger.debug(
                f"Stair candidate latched ({self._candidate_direction.value}), "
                f"lag={self._steps_since_latch}"
            )
        elif self._candidate_steps_remaining > 0:
            self._candidate_steps_remaining -= 1
            self._steps_since_latch += 1
        elif self._candidate is not None:
            logger.debug("Stair candidate expired")
            self._candidate = None
            self._steps_since_latch = 0

        if self._candidate is None:
            return None

        wanted = self._candidate_direction.same_label
        count = sum(1 for label in self._labels if label == wanted)
        if count < self.config.required_in_window:
            return None

        event = StairTransitionEvent.from_pair(
            self._candidate, self._candidate_direction, self._steps_since_latch
        )
        logger.info(
            f"Stair transition {event.direction.value}: "
            f"{event.origin_floor_id} -> {event.destination_floor_id}"
        )
        return event

    def _find_facing_pair(
        self,
        position: np.ndarray,
        heading: float,
        stair_pairs: Sequence[StairPair],
        current_floor_number: float,
    ) -> Optional[Tuple[StairPair, StairDirection]]:
        # Up candidates win over down candidates
        for direction in (StairDirection.UP, StairDirection.DOWN):
            best = None
            best_dist = np.inf
            for pair in stair_pairs:
                start, floor_number = _start_of(pair, direction)
                if floor_number != current_floor_number:
                    continue
                dist = distance(position, start)
                if dist > self.config.proximity_radius:
                    continue
                if dist > 1.0:
                    bearing = direction_angle(position, start)
                    if abs(angle_difference(heading, bearing)) > self.config.fov_half_angle:
                        continue
                if dist < best_dist:
                    best, best_dist = pair, dist
            if best is not None:
                return best, direction
        return None

    # ------------------------------------------------------------------
    # Path 2: sustained labels, proximity only
    # ------------------------------------------------------------------

    def check_sustained_ml_transition(
        self,
        position: np.ndarray,
        stair_pairs: Sequence[StairPair],
        current_floor_number: float,
    ) -> Optional[StairTransitionEvent]:
        """
        Fire a transition from a long run of identical stair labels.

        The stairwell is the nearest one in the labelled direction whose start
        entrance is on the current floor. When none is close enough, every
        pair connecting the current floor in that direction is checked at
        both ends. This second pass is a best-effort heuristic and can pick
        the wrong stairwell when several sit close together.
        """
        if self._run_count < self.config.sustained_label_threshold:
            return None

        direction = StairDirection.UP if self._run_label == LABEL_UPSTAIRS else StairDirection.DOWN
        pair = self._find_pair_by_proximity(position, stair_pairs, current_floor_number, direction)
        if pair is None:
            logger.debug(
                f"{self._run_count}x {self._run_label} but no stairwell within "
                f"{self.config.sustained_proximity_radius}"
            )
            return None

        event = StairTransitionEvent.from_pair(pair, direction, self._run_count)
        logger.info(
            f"Sustained-label stair transition {direction.value}: "
            f"{event.origin_floor_id} -> {event.destination_floor_id}"
        )
        return event

    def _find_pair_by_proximity(
        self,
        position: np.ndarray,
        stair_pairs: Sequence[StairPair],
        current_floor_number: float,
        direction: StairDirection,
    ) -> Optional[StairPair]:
        radius = self.config.sustained_proximity_radius

        best = None
        best_dist = np.inf
        for pair in stair_pairs:
            start, floor_number = _start_of(pair, direction)
            if floor_number != current_floor_number:
                continue
            dist = distance(position, start)
            if dist <= radius and dist < best_dist:
                best, best_dist = pair, dist
        if best is not None:
            return best

        for pair in stair_pairs:
            if direction is StairDirection.UP:
                connects = (pair.bottom_floor_number == current_floor_number
                            or pair.top_floor_number > current_floor_number)
            else:
                connects = (pair.top_floor_number == current_floor_number
                            or pair.bottom_floor_number < current_floor_number)
            if not connects:
                continue
            dist = min(distance(position, pair.bottom_position),
                       distance(position, pair.top_position))
            if dist <= radius and dist < best_dist:
                best, best_dist = pair, dist
        if best is not None:
            logger.warning("Stair pair matched by cross-floor proximity fallback")
        return best

    def reset(self) -> None:
        """Clear labels, heading history, runs and the candidate latch."""
        self._labels.clear()
        self._headings.clear()
        self._run_label = None
        self._run_count = 0
        self._candidate = None
        self._candidate_direction = StairDirection.UP
        self._candidate_steps_remaining = 0
        self._steps_since_latch = 0


def _start_of(pair: StairPair, direction: StairDirection) -> Tuple[np.ndarray, float]:
    if direction is StairDirection.UP:
        return pair.bottom_position, pair.bottom_floor_number
    return pair.top_position, pair.top_floor_number
