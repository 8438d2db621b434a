"""Stairwell transition animation.

While the user is on a staircase, dead reckoning is replaced by a position
interpolated between the two ends of the stairwell. The state machine is

    IDLE --start--> CLIMBING --step--> ARRIVED ----------+
                       |                                 |
                       +--step--> RETURNING --> CANCELLED +--finalize--> IDLE

All transitions are expressed by :func:`transition`, a total function from
(state, event) to the next state. Events that make no sense in the current
state leave it unchanged. :class:`StairwellTransitionAnimator` wraps the
function with the imperative interface used by the tracking session.

Arrival (only once progress exceeds ``min_progress_for_arrival``) fires on
either a run of "walking" labels or a sharp heading change against the
circular mean of recent headings while the label is not a stair label.
Reaching 100 % progress holds the position at the landing but does not
arrive by itself unless ``arrive_at_step_cap`` is set. A run of
opposite-direction labels after a minimum step count turns the climb around.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

import numpy as np

from indoor_nav.utils.angles import angle_difference, circular_mean
from indoor_nav.utils.geometry import distance
from .types import (
    LABEL_WALKING,
    STAIR_LABELS,
    Arrived,
    ArrivalReason,
    Cancelled,
    ClimbPhase,
    Climbing,
    ClimbState,
    Idle,
    Returning,
    StairTransitionEvent,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StairAnimatorConfig:
    """
    Tunables for the stairwell animation.

    Attributes:
        stair_step_unit_length: Horizontal distance covered per stair step
            (15 units = 30 cm).
        min_estimated_steps: Lower clamp on the estimated step count.
        max_estimated_steps: Upper clamp on the estimated step count.
        sharp_turn_threshold: Heading change (rad) that counts as a landing
            turn (~60 deg).
        min_progress_for_arrival: Progress that must be exceeded before any
            arrival check fires.
        walking_arrival_count: Consecutive "walking" labels that arrive.
        opposite_direction_cancel_count: Consecutive opposite stair labels
            that turn the climb around.
        min_steps_before_cancel: Steps that must be taken before a turnaround
            is accepted.
        heading_window_size: Headings kept for the landing-turn reference.
        arrive_at_step_cap: Also arrive once the step estimate is used up and
            the label no longer agrees with the travel direction.
    """

    stair_step_unit_length: float = 15.0
    min_estimated_steps: int = 6
    max_estimated_steps: int = 20
    sharp_turn_threshold: float = 1.05
    min_progress_for_arrival: float = 0.3
    walking_arrival_count: int = 2
    opposite_direction_cancel_count: int = 3
    min_steps_before_cancel: int = 3
    heading_window_size: int = 3
    arrive_at_step_cap: bool = False

    def __post_init__(self) -> None:
        if self.stair_step_unit_length <= 0:
            raise ValueError(
                f"stair_step_unit_length must be positive, got {self.stair_step_unit_length}"
            )
        if not 1 <= self.min_estimated_steps <= self.max_estimated_steps:
            raise ValueError(
                "need 1 <= min_estimated_steps <= max_estimated_steps, got "
                f"{self.min_estimated_steps}, {self.max_estimated_steps}"
            )
        if not 0.0 <= self.min_progress_for_arrival < 1.0:
            raise ValueError(
                f"min_progress_for_arrival must be in [0, 1), got {self.min_progress_for_arrival}"
            )
        if self.heading_window_size < 1:
            raise ValueError(f"heading_window_size must be >= 1, got {self.heading_window_size}")


# ----------------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Start:
    event: StairTransitionEvent
    heading: float


@dataclass(frozen=True)
class Step:
    heading: float
    motion_label: Optional[str] = None


@dataclass(frozen=True)
class ReturnStep:
    motion_label: Optional[str] = None


@dataclass(frozen=True)
class ForceArrive:
    reason: ArrivalReason = ArrivalReason.TURN


@dataclass(frozen=True)
class Finalize:
    pass


ClimbEvent = Union[Start, Step, ReturnStep, ForceArrive, Finalize]


# ----------------------------------------------------------------------------
# Transition function
# ----------------------------------------------------------------------------

def _interpolate(event: StairTransitionEvent, progress: float) -> np.ndarray:
    start = np.asarray(event.start_position, dtype=np.float64)
    end = np.asarray(event.end_position, dtype=np.float64)
    return start + (end - start) * progress


def estimate_total_steps(event: StairTransitionEvent, config: StairAnimatorConfig) -> int:
    """Stair steps needed to cover the stairwell, clamped to the configured range."""
    length = distance(event.start_position, event.end_position)
    estimate = int(length / config.stair_step_unit_length)
    return int(np.clip(estimate, config.min_estimated_steps, config.max_estimated_steps))


def transition(state: ClimbState, event: ClimbEvent, config: StairAnimatorConfig) -> ClimbState:
    """
    Compute the next animator state.

    Args:
        state: Current state.
        event: Input event.
        config: Animation tunables.

    Returns:
        The next state. Events that do not apply to ``state`` return it
        unchanged.
    """
    if isinstance(event, Finalize):
        return Idle(position=state.position)

    if isinstance(event, Start):
        if not isinstance(state, Idle):
            return state
        return Climbing(
            event=event.event,
            estimated_total_steps=estimate_total_steps(event.event, config),
            steps_received=0,
            progress=0.0,
            position=np.asarray(event.event.start_position, dtype=np.float64),
            heading_window=(event.heading,),
        )

    if isinstance(event, ForceArrive):
        if not isinstance(state, (Climbing, Returning)):
            return state
        return _arrive(state, state.steps_received, event.reason)

    if isinstance(event, Step):
        if not isinstance(state, Climbing):
            return state
        return _climb_step(state, event, config)

    if isinstance(event, ReturnStep):
        if not isinstance(state, Returning):
            return state
        return _return_step(state, event)

    raise TypeError(f"unknown climb event {event!r}")


def _arrive(state: Union[Climbing, Returning], steps: int, reason: ArrivalReason) -> Arrived:
    logger.debug(f"Stair arrival after {steps} steps (reason={reason.value})")
    return Arrived(
        event=state.event,
        steps_received=steps,
        position=np.asarray(state.event.end_position, dtype=np.float64),
        reason=reason,
    )


def _climb_step(state: Climbing, step: Step, config: StairAnimatorConfig) -> ClimbState:
    direction = state.event.direction
    steps = state.steps_received + 1
    progress = min(1.0, steps / state.estimated_total_steps)
    position = _interpolate(state.event, progress)

    label = step.motion_label
    is_same = label == direction.same_label
    is_opposite = label == direction.opposite_label
    walking_run = state.walking_run + 1 if label == LABEL_WALKING else 0
    opposite_run = state.opposite_run + 1 if is_opposite else 0

    reference = circular_mean(state.heading_window) if state.heading_window else step.heading
    is_sharp_turn = abs(angle_difference(reference, step.heading)) > config.sharp_turn_threshold
    window = (state.heading_window + (step.heading,))[-config.heading_window_size:]

    past_min = progress > config.min_progress_for_arrival
    by_walking = past_min and walking_run >= config.walking_arrival_count
    by_turn = past_min and is_sharp_turn and label not in STAIR_LABELS
    by_cap = (config.arrive_at_step_cap
              and steps >= state.estimated_total_steps and not is_same)

    climbing = replace(
        state,
        steps_received=steps,
        progress=progress,
        position=position,
        heading_window=window,
        walking_run=walking_run,
        opposite_run=opposite_run,
    )

    if by_walking:
        return _arrive(climbing, steps, ArrivalReason.WALKING)
    if by_turn:
        return _arrive(climbing, steps, ArrivalReason.TURN)
    if by_cap:
        return _arrive(climbing, steps, ArrivalReason.STEP_CAP)

    if steps >= config.min_steps_before_cancel and \
            opposite_run >= config.opposite_direction_cancel_count:
        return_total = max(int(steps * progress), config.min_estimated_steps // 2)
        logger.debug(f"Stair turnaround at progress {progress:.2f}, {return_total} return steps")
        return Returning(
            event=state.event,
            steps_received=steps,
            progress=progress,
            position=position,
            progress_at_turnaround=progress,
            return_total_steps=return_total,
        )
    return climbing


def _return_step(state: Returning, step: ReturnStep) -> ClimbState:
    received = state.return_steps_received + 1
    if state.return_total_steps > 0:
        return_progress = min(1.0, received / state.return_total_steps)
    else:
        return_progress = 1.0

    if return_progress >= 1.0 or step.motion_label == LABEL_WALKING:
        logger.debug(f"Stair transition cancelled after {received} return steps")
        return Cancelled(
            event=state.event,
            position=np.asarray(state.event.start_position, dtype=np.float64),
        )

    progress = state.progress_at_turnaround * (1.0 - return_progress)
    return replace(
        state,
        return_steps_received=received,
        progress=progress,
        position=_interpolate(state.event, progress),
    )


# ----------------------------------------------------------------------------
# Imperative wrapper
# ----------------------------------------------------------------------------

class StairwellTransitionAnimator:
    """
    Drives the interpolated stairwell crossing.

    Attributes:
        config: Animation tunables.
        state: Current :data:`ClimbState` value.

    Example:
        >>> animator = StairwellTransitionAnimator()
        >>> animator.start_transition(event, heading=0.0)
        >>> animator.advance_step(0.0, "upstairs")
        >>> animator.phase
        <ClimbPhase.CLIMBING: 'climbing'>
    """

    def __init__(self, config: Optional[StairAnimatorConfig] = None):
        self.config = config or StairAnimatorConfig()
        self.state: ClimbState = Idle(position=np.zeros(2))

    def _apply(self, event: ClimbEvent) -> np.ndarray:
        self.state = transition(self.state, event, self.config)
        return self.state.position

    def start_transition(self, event: StairTransitionEvent, heading: float) -> None:
        """Begin climbing from ``event.start_position``. Ignored unless idle."""
        self._apply(Start(event, heading))
        if isinstance(self.state, Climbing):
            logger.info(
                f"Stair climb {event.origin_floor_id} -> {event.destination_floor_id}, "
                f"~{self.state.estimated_total_steps} steps"
            )

    def advance_step(self, heading: float, motion_label: Optional[str] = None) -> np.ndarray:
        """Advance one climbing step and return the interpolated position."""
        return self._apply(Step(heading, motion_label))

    def advance_return_step(self, motion_label: Optional[str] = None) -> np.ndarray:
        """Advance one step back towards the start and return the position."""
        return self._apply(ReturnStep(motion_label))

    def force_arrive(self, reason: ArrivalReason = ArrivalReason.TURN) -> None:
        """Snap to the landing immediately."""
        self._apply(ForceArrive(reason))

    def finalize(self) -> None:
        """Return to IDLE once the caller has switched or restored the floor."""
        self._apply(Finalize())

    def reset(self) -> None:
        """Clear everything, including the last position."""
        self.state = Idle(position=np.zeros(2))

    @property
    def phase(self) -> ClimbPhase:
        return self.state.phase

    @property
    def progress(self) -> float:
        return float(self.state.progress)

    @property
    def current_position(self) -> np.ndarray:
        return self.state.position

    @property
    def active_event(self) -> Optional[StairTransitionEvent]:
        return getattr(self.state, "event", None)

    @property
    def arrival_reason(self) -> ArrivalReason:
        if isinstance(self.state, Arrived):
            return self.state.reason
        return ArrivalReason.NONE

    @property
    def is_active(self) -> bool:
        """True while the animator owns the user position."""
        return self.phase in (ClimbPhase.CLIMBING, ClimbPhase.RETURNING)
