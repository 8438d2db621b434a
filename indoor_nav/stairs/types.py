"""Type definitions for stairwell transitions.

Key types:
    - StairPair: precomputed link between the two ends of one stairwell
    - StairDirection: travel direction of a transition
    - StairTransitionEvent: emitted by the detector when a climb starts
    - ArrivalReason: why a climb was considered finished
    - ClimbPhase: coarse phase of the animator state
    - Idle / Climbing / Returning / Arrived / Cancelled: animator states

The animator state is a single value of the ``ClimbState`` union. Each state
carries exactly the fields that are meaningful in it, so an idle animator
cannot hold a transition event and a returning one cannot lack its
turnaround point.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np


# Motion classifier labels
LABEL_WALKING = "walking"
LABEL_UPSTAIRS = "upstairs"
LABEL_DOWNSTAIRS = "downstairs"
STAIR_LABELS = (LABEL_UPSTAIRS, LABEL_DOWNSTAIRS)


class StairDirection(Enum):
    UP = "up"
    DOWN = "down"

    @property
    def same_label(self) -> str:
        """Classifier label agreeing with this direction."""
        return LABEL_UPSTAIRS if self is StairDirection.UP else LABEL_DOWNSTAIRS

    @property
    def opposite_label(self) -> str:
        """Classifier label contradicting this direction."""
        return LABEL_DOWNSTAIRS if self is StairDirection.UP else LABEL_UPSTAIRS


class ArrivalReason(Enum):
    """How a climb finished; only WALKING arrivals need step replay."""

    NONE = "none"
    WALKING = "walking"
    TURN = "turn"
    STEP_CAP = "step_cap"


class ClimbPhase(Enum):
    IDLE = "idle"
    CLIMBING = "climbing"
    RETURNING = "returning"
    ARRIVED = "arrived"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StairPair:
    """
    Both ends of one physical stairwell in campus coordinates.

    Attributes:
        bottom_position: Entrance at the foot of the stairs.
        top_position: Entrance at the head of the stairs.
        bottom_floor_id: Floor the bottom entrance is on.
        top_floor_id: Floor the stairs lead up to.
        bottom_floor_number: Numeric level of the bottom floor.
        top_floor_number: Numeric level of the top floor.
    """

    bottom_position: np.ndarray
    top_position: np.ndarray
    bottom_floor_id: str
    top_floor_id: str
    bottom_floor_number: float
    top_floor_number: float

    def endpoints(self, direction: StairDirection) -> Tuple[np.ndarray, np.ndarray]:
        """(start, end) positions when travelling in ``direction``."""
        if direction is StairDirection.UP:
            return self.bottom_position, self.top_position
        return self.top_position, self.bottom_position

    def floors(self, direction: StairDirection) -> Tuple[str, str]:
        """(origin, destination) floor ids when travelling in ``direction``."""
        if direction is StairDirection.UP:
            return self.bottom_floor_id, self.top_floor_id
        return self.top_floor_id, self.bottom_floor_id


@dataclass(frozen=True)
class StairTransitionEvent:
    """
    A confirmed stairwell entry.

    ``pre_climbed_steps`` counts the steps between the first detection signal
    and confirmation, so the caller can compensate for classifier lag.
    """

    stair_pair: StairPair
    direction: StairDirection
    start_position: np.ndarray
    end_position: np.ndarray
    origin_floor_id: str
    destination_floor_id: str
    pre_climbed_steps: int = 0

    @classmethod
    def from_pair(
        cls,
        pair: StairPair,
        direction: StairDirection,
        pre_climbed_steps: int,
    ) -> "StairTransitionEvent":
        start, end = pair.endpoints(direction)
        origin, destination = pair.floors(direction)
        return cls(
            stair_pair=pair,
            direction=direction,
            start_position=start,
            end_position=end,
            origin_floor_id=origin,
            destination_floor_id=destination,
            pre_climbed_steps=pre_climbed_steps,
        )


# ----------------------------------------------------------------------------
# Animator states
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    """Normal walking, no transition in progress."""

    position: np.ndarray

    phase = ClimbPhase.IDLE
    progress = 0.0


@dataclass(frozen=True)
class Climbing:
    """
    Moving along the stairwell.

    ``heading_window`` holds the most recent headings (oldest first) that the
    landing-turn check compares against.
    """

    event: StairTransitionEvent
    estimated_total_steps: int
    steps_received: int
    progress: float
    position: np.ndarray
    heading_window: Tuple[float, ...]
    walking_run: int = 0
    opposite_run: int = 0

    phase = ClimbPhase.CLIMBING


@dataclass(frozen=True)
class Returning:
    """Turned around mid-climb; animating back to the start."""

    event: StairTransitionEvent
    steps_received: int
    progress: float
    position: np.ndarray
    progress_at_turnaround: float
    return_total_steps: int
    return_steps_received: int = 0

    phase = ClimbPhase.RETURNING


@dataclass(frozen=True)
class Arrived:
    """Reached the destination landing, waiting for the caller to switch floors."""

    event: StairTransitionEvent
    steps_received: int
    position: np.ndarray
    reason: ArrivalReason

    phase = ClimbPhase.ARRIVED
    progress = 1.0


@dataclass(frozen=True)
class Cancelled:
    """Back at the start, waiting for the caller to restore the origin floor."""

    event: StairTransitionEvent
    position: np.ndarray

    phase = ClimbPhase.CANCELLED
    progress = 0.0


ClimbState = Union[Idle, Climbing, Returning, Arrived, Cancelled]
