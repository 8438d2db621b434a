"""Data structures flowing through the correction pipeline.

Key types:
    - RawStep: a buffered, not yet committed step
    - PathPoint: a committed point of the corrected path
    - TurnEvent: a heading change detected inside the buffer
    - SnapResult: outcome of an entrance snap attempt
    - WallConstraintResult: outcome of clamping one movement against walls
    - CorrectionResult: what the engine reports after each step
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


@dataclass
class RawStep:
    """
    A step waiting in the correction buffer.

    Positions are rewritten whenever the buffer is re-chained from a new
    anchor. ``snapped`` marks a step already moved onto an entrance, so it
    keeps its position through re-chaining and is not snapped twice.

    Attributes:
        position: Dead-reckoned campus position.
        heading: Heading used for this step, including accumulated
            wall-slide correction (rad).
        stride_length: Stride length in campus units.
        timestamp: Caller supplied time of the step (seconds), if any.
        snapped: True once the step has been moved onto an entrance.
    """

    position: np.ndarray
    heading: float
    stride_length: float
    timestamp: Optional[float] = None
    snapped: bool = False


@dataclass(frozen=True)
class PathPoint:
    """A committed point of the corrected path."""

    position: np.ndarray
    heading: float


@dataclass(frozen=True)
class TurnEvent:
    """
    A heading change detected inside the step buffer.

    Attributes:
        buffer_index: Index of the first step after the turn.
        pre_heading: Heading before the turn (rad).
        post_heading: Heading at ``buffer_index`` (rad).
        heading_delta: Signed change from pre to post heading (rad).
        approximate_position: Buffered position of the turn step.
    """

    buffer_index: int
    pre_heading: float
    post_heading: float
    heading_delta: float
    approximate_position: np.ndarray


@dataclass(frozen=True)
class SnapResult:
    """
    Outcome of an entrance snap attempt.

    ``stride_calibration_factor`` is above 1 when the entrance lay farther
    along the walking direction than dead reckoning placed the user (stride
    underestimated) and below 1 otherwise.
    """

    snapped_position: np.ndarray
    was_snapped: bool
    correction_delta: np.ndarray = field(default_factory=lambda: np.zeros(2))
    stride_calibration_factor: float = 1.0
    entrance_id: Optional[int] = None


@dataclass(frozen=True)
class WallConstraintResult:
    """Constrained position of one movement plus the wall-slide heading nudge."""

    constrained_position: np.ndarray
    was_constrained: bool
    heading_correction: float = 0.0


@dataclass(frozen=True)
class CorrectionResult:
    """
    Engine output for one processed step.

    Attributes:
        new_committed_points: Points committed by this call (empty while the
            buffer fills).
        corrected_current_position: Latest position, possibly still buffered.
        heading_correction: Accumulated wall-slide heading correction (rad).
        stride_calibration_factor: Smoothed stride calibration factor.
        turn_event: Turn detected during this call, if any.
        snap: Successful entrance snap during this call, if any.
    """

    new_committed_points: List[PathPoint]
    corrected_current_position: np.ndarray
    heading_correction: float
    stride_calibration_factor: float
    turn_event: Optional[TurnEvent] = None
    snap: Optional[SnapResult] = None
