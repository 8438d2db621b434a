"""
Tracking session: one user walking through a campus.

Wires the per-step control flow. Each step goes through the correction
engine; the corrected position and heading feed the stairwell detector;
once a transition fires the animator owns the position until it arrives
on the next floor or is cancelled back to the start.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from indoor_nav.campus import CampusGeometry
from indoor_nav.correction.config import CorrectionConfig
from indoor_nav.correction.engine import StepCorrectionEngine
from indoor_nav.correction.types import CorrectionResult, PathPoint
from indoor_nav.floorplan.provider import FloorConstraintProvider
from indoor_nav.floorplan.types import floor_number_from_id
from indoor_nav.stairs.animator import StairAnimatorConfig, StairwellTransitionAnimator
from indoor_nav.stairs.detector import StairDetectorConfig, StairwellTransitionDetector
from indoor_nav.stairs.types import (
    ArrivalReason,
    ClimbPhase,
    StairTransitionEvent,
)
from indoor_nav.utils.geometry import as_point


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionConfig:
    """
    Session-level tunables.

    Attributes:
        replay_step_range: Inclusive clamp for the steps replayed after a
            walking-confirmed stair arrival. The classifier reports the
            landing a few steps late, so that many steps are re-applied on
            the new floor. Tuned empirically.
    """

    replay_step_range: Tuple[int, int] = (1, 4)

    def __post_init__(self):
        low, high = self.replay_step_range
        if low < 0 or high < low:
            raise ValueError(f"replay_step_range must satisfy 0 <= low <= high, "
                             f"got {self.replay_step_range}")


@dataclass(frozen=True)
class SessionUpdate:
    """
    Result of one step.

    Attributes:
        position: Position to display.
        floor_id: Floor the user is on after this step.
        phase: Stairwell phase after this step.
        progress: Stairwell progress in [0, 1].
        correction: Engine output when the step went through the engine.
        transition: Stair transition that started on this step.
        floor_changed: True when this step completed a floor change.
        committed_points: Points newly added to the session track.
    """

    position: np.ndarray
    floor_id: Optional[str]
    phase: ClimbPhase
    progress: float
    correction: Optional[CorrectionResult] = None
    transition: Optional[StairTransitionEvent] = None
    floor_changed: bool = False
    committed_points: List[PathPoint] = field(default_factory=list)


class TrackingSession:
    """
    Owns the correction engine and stairwell subsystem of one user.

    Not thread-safe: steps and labels must be delivered from one thread.

    Args:
        geometry: Campus geometry of the session.
        correction_config: Correction pipeline tunables.
        detector_config: Stair detector tunables.
        animator_config: Stair animator tunables.
        session_config: Session tunables.

    Example:
        >>> session = TrackingSession(geometry)
        >>> session.set_origin(np.array([100.0, 200.0]), heading=0.0, floor_id="floor_1")
        >>> update = session.on_step(heading=0.0, stride_length=35.0)
    """

    def __init__(
        self,
        geometry: CampusGeometry,
        correction_config: Optional[CorrectionConfig] = None,
        detector_config: Optional[StairDetectorConfig] = None,
        animator_config: Optional[StairAnimatorConfig] = None,
        session_config: Optional[SessionConfig] = None,
    ):
        self.geometry = geometry
        self.config = session_config or SessionConfig()
        self.provider = FloorConstraintProvider()
        self.engine = StepCorrectionEngine(correction_config, self.provider)
        self.detector = StairwellTransitionDetector(detector_config)
        self.animator = StairwellTransitionAnimator(animator_config)

        self.floor_id: Optional[str] = None
        self.last_label: Optional[str] = None
        self._track: List[PathPoint] = []

    @property
    def track(self) -> List[PathPoint]:
        """Every committed point of the session, across floors."""
        return list(self._track)

    @property
    def current_position(self) -> Optional[np.ndarray]:
        if self.animator.phase is not ClimbPhase.IDLE:
            return self.animator.current_position
        return self.engine.current_position

    def set_origin(self, position: np.ndarray, heading: float, floor_id: str) -> None:
        """Start tracking at ``position`` on ``floor_id``."""
        position = as_point(position)
        self.animator.reset()
        self.detector.reset()
        self._load_floor(floor_id)
        self.engine.set_origin(position, heading)
        self._track = [PathPoint(position=position.copy(), heading=heading)]
        logger.info(f"Tracking started on {floor_id} at ({position[0]:.1f}, {position[1]:.1f})")

    def on_motion_label(self, label: str, confidence: float) -> bool:
        """
        Forward one classifier output.

        Returns:
            True if the label passed the confidence gate.
        """
        accepted = self.detector.on_motion_label(label, confidence)
        if accepted:
            self.last_label = label
        return accepted

    def on_step(self, heading: float, stride_length: float) -> SessionUpdate:
        """Process one detected step."""
        if self.animator.is_active:
            return self._stair_step(heading, stride_length)

        result = self.engine.process_step(heading, stride_length)
        self._track.extend(result.new_committed_points)
        position = result.corrected_current_position

        event = self._check_stairs(position, heading)
        if event is None:
            return self._update(position, correction=result,
                                committed=result.new_committed_points)

        flushed = self.engine.flush()
        self._track.extend(flushed)
        self.animator.start_transition(event, heading)
        return self._update(self.animator.current_position, correction=result,
                            transition=event,
                            committed=result.new_committed_points + flushed)

    def stop(self) -> List[PathPoint]:
        """Flush the correction buffer and return the flushed points."""
        flushed = self.engine.flush()
        self._track.extend(flushed)
        return flushed

    def reset(self) -> None:
        self.engine.reset()
        self.detector.reset()
        self.animator.reset()
        self.provider.clear()
        self.floor_id = None
        self.last_label = None
        self._track = []

    def _check_stairs(self, position: np.ndarray, heading: float) -> Optional[StairTransitionEvent]:
        pairs = self.geometry.stair_pairs
        if not pairs or self.floor_id is None:
            return None
        floor_number = floor_number_from_id(self.floor_id)
        event = self.detector.check_transition(position, heading, pairs, floor_number)
        if event is None:
            event = self.detector.check_sustained_ml_transition(position, pairs, floor_number)
        return event

    def _stair_step(self, heading: float, stride_length: float) -> SessionUpdate:
        if self.animator.phase is ClimbPhase.CLIMBING:
            self.animator.advance_step(heading, self.last_label)
        else:
            self.animator.advance_return_step(self.last_label)

        phase = self.animator.phase
        if phase is ClimbPhase.ARRIVED:
            return self._complete_arrival(heading, stride_length)
        if phase is ClimbPhase.CANCELLED:
            return self._complete_cancel(heading)
        return self._update(self.animator.current_position)

    def _complete_arrival(self, heading: float, stride_length: float) -> SessionUpdate:
        event = self.animator.active_event
        reason = self.animator.arrival_reason
        end = np.asarray(event.end_position, dtype=np.float64)

        self._load_floor(event.destination_floor_id)
        self.engine.set_origin(end, heading)
        committed = [PathPoint(position=end.copy(), heading=heading)]

        if reason is ArrivalReason.WALKING:
            low, high = self.config.replay_step_range
            replay = int(np.clip(event.pre_climbed_steps, low, high))
            logger.debug(f"Replaying {replay} steps after walking arrival")
            for _ in range(replay):
                committed.extend(self.engine.process_step(heading, stride_length).new_committed_points)

        self.animator.finalize()
        self.detector.reset()
        self._track.extend(committed)
        logger.info(f"Arrived on {event.destination_floor_id} ({reason.value})")
        return self._update(self.engine.current_position, floor_changed=True,
                            committed=committed, phase=ClimbPhase.ARRIVED, progress=1.0)

    def _complete_cancel(self, heading: float) -> SessionUpdate:
        event = self.animator.active_event
        start = np.asarray(event.start_position, dtype=np.float64)

        self._load_floor(event.origin_floor_id)
        self.engine.set_origin(start, heading)

        self.animator.finalize()
        self.detector.reset()
        committed = [PathPoint(position=start.copy(), heading=heading)]
        self._track.extend(committed)
        logger.info(f"Stair transition cancelled, back on {event.origin_floor_id}")
        return self._update(start, committed=committed,
                            phase=ClimbPhase.CANCELLED, progress=0.0)

    def _load_floor(self, floor_id: str) -> None:
        self.floor_id = floor_id
        self.provider.load_campus_floor(self.geometry.campus_floor(floor_id))

    def _update(
        self,
        position: np.ndarray,
        correction: Optional[CorrectionResult] = None,
        transition: Optional[StairTransitionEvent] = None,
        floor_changed: bool = False,
        committed: Optional[List[PathPoint]] = None,
        phase: Optional[ClimbPhase] = None,
        progress: Optional[float] = None,
    ) -> SessionUpdate:
        return SessionUpdate(
            position=np.asarray(position, dtype=np.float64).copy(),
            floor_id=self.floor_id,
            phase=phase if phase is not None else self.animator.phase,
            progress=progress if progress is not None else self.animator.progress,
            correction=correction,
            transition=transition,
            floor_changed=floor_changed,
            committed_points=list(committed or []),
        )
