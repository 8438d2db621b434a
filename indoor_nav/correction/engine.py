"""Step correction engine.

Orchestrates the buffered dead-reckoning correction pipeline:

    raw step -> [buffer of N steps] -> turn detection
                                          |
                                   entrance snap (on a turn)
                                          |
                                   wall constraint on the oldest step
                                          |
                                   commit oldest -> committed path

The committed path lags the live position by ``buffer_size`` steps so the
pipeline can look across the buffer before finalising a position.
``visual_path`` joins the committed points with the speculative buffered
ones for display.
"""

import logging
from typing import Iterator, List, Optional

import numpy as np

from indoor_nav.floorplan.provider import FloorConstraintProvider
from indoor_nav.utils.geometry import advance, as_point
from .config import CorrectionConfig
from .entrance_snapper import EntranceSnapper
from .turn_detector import TurnDetector
from .types import CorrectionResult, PathPoint, RawStep, SnapResult, TurnEvent
from .wall_constraint import WallConstraint


logger = logging.getLogger(__name__)

# Weight of the previous factor when blending in a new snap calibration
CALIBRATION_RETENTION = 0.9


class StepBuffer:
    """
    Ordered buffer of uncommitted steps.

    Positions are derived by chaining each step's stride and heading from an
    anchor. All re-chaining goes through :meth:`rebase`; callers never see a
    partially rebased buffer.
    """

    def __init__(self) -> None:
        self._steps: List[RawStep] = []

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[RawStep]:
        return iter(self._steps)

    def __getitem__(self, index: int) -> RawStep:
        return self._steps[index]

    @property
    def steps(self) -> List[RawStep]:
        return list(self._steps)

    def last_position(self) -> Optional[np.ndarray]:
        return self._steps[-1].position if self._steps else None

    def append(self, step: RawStep) -> None:
        self._steps.append(step)

    def pop_oldest(self) -> RawStep:
        return self._steps.pop(0)

    def clear(self) -> None:
        self._steps.clear()

    def pin(self, index: int, position: np.ndarray) -> None:
        """Move step ``index`` to ``position`` and keep it there through rebases."""
        step = self._steps[index]
        step.position = np.asarray(position, dtype=np.float64)
        step.snapped = True

    def rebase(self, anchor: np.ndarray, start: int = 0) -> None:
        """
        Re-chain steps from ``start`` onward from ``anchor``.

        A pinned (snapped) step keeps its position and becomes the anchor of
        the steps after it.
        """
        current = np.asarray(anchor, dtype=np.float64)
        for step in self._steps[start:]:
            if not step.snapped:
                step.position = advance(current, step.heading, step.stride_length)
            current = step.position


class StepCorrectionEngine:
    """
    Buffered dead-reckoning with geometric correction.

    Attributes:
        config: Active correction parameters.
        provider: Geometry of the active floor (shared with the caller).

    Example:
        >>> engine = StepCorrectionEngine(provider=provider)
        >>> engine.set_origin(np.array([0.0, 0.0]), heading=0.0)
        >>> result = engine.process_step(heading=0.0, stride_length=35.0)
        >>> result.corrected_current_position
        array([  0., -35.])
    """

    def __init__(
        self,
        config: Optional[CorrectionConfig] = None,
        provider: Optional[FloorConstraintProvider] = None,
    ):
        self.config = config or CorrectionConfig()
        self.provider = provider if provider is not None else FloorConstraintProvider()
        self._build_components()

        self._buffer = StepBuffer()
        self._committed: List[PathPoint] = []
        self._recent_committed: List[RawStep] = []
        self._last_committed: Optional[np.ndarray] = None
        self._heading_correction = 0.0
        self._stride_calibration = 1.0

    def _build_components(self) -> None:
        self.turn_detector = TurnDetector(self.config)
        self.entrance_snapper = EntranceSnapper(self.config)
        self.wall_constraint = WallConstraint(self.config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_origin(self, position: np.ndarray, heading: float) -> None:
        """Start a new path at ``position``; clears buffer and history."""
        self.reset()
        origin = as_point(position)
        self._last_committed = origin
        self._committed.append(PathPoint(position=origin, heading=heading))

    def reset(self) -> None:
        """Discard everything without flushing."""
        self._buffer.clear()
        self._committed = []
        self._recent_committed = []
        self._last_committed = None
        self._heading_correction = 0.0
        self._stride_calibration = 1.0

    def update_config(self, config: CorrectionConfig) -> None:
        """Swap parameters; buffer and committed path are kept."""
        self.config = config
        self._build_components()
        logger.debug(f"Correction config updated: {config}")

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def has_origin(self) -> bool:
        return self._last_committed is not None

    @property
    def is_active(self) -> bool:
        """True when wall data is loaded, i.e. corrections can fire."""
        return self.provider.is_loaded()

    @property
    def heading_correction(self) -> float:
        return self._heading_correction

    @property
    def stride_calibration_factor(self) -> float:
        return self._stride_calibration

    @property
    def committed_path(self) -> List[PathPoint]:
        return list(self._committed)

    @property
    def buffered_steps(self) -> List[RawStep]:
        return self._buffer.steps

    @property
    def visual_path(self) -> List[PathPoint]:
        """Committed points followed by the speculative buffered ones."""
        return self._committed + [
            PathPoint(position=s.position.copy(), heading=s.heading) for s in self._buffer
        ]

    @property
    def current_position(self) -> Optional[np.ndarray]:
        last = self._buffer.last_position()
        return last if last is not None else self._last_committed

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def process_step(
        self,
        heading: float,
        stride_length: float,
        timestamp: Optional[float] = None,
    ) -> CorrectionResult:
        """
        Feed one step through the pipeline.

        Args:
            heading: Sensor heading (rad, 0 = screen-up, clockwise positive).
            stride_length: Stride length in campus units.
            timestamp: Optional time of the step (seconds).

        Returns:
            CorrectionResult with the points committed by this call and the
            current (possibly still buffered) position.
        """
        anchor = self.current_position
        if anchor is None:
            return self._pass_through(heading)

        corrected_heading = heading + self._heading_correction
        self._buffer.append(RawStep(
            position=advance(anchor, corrected_heading, stride_length),
            heading=corrected_heading,
            stride_length=stride_length,
            timestamp=timestamp,
        ))

        if len(self._buffer) < self.config.buffer_size:
            return self._result([])

        turn = self.turn_detector.detect(self._buffer.steps, self._recent_committed)
        snap = self._try_snap(turn) if turn is not None else None

        committed = []
        # A config swap can shrink the buffer; drain down to size - 1
        while len(self._buffer) >= self.config.buffer_size:
            committed.append(self._commit_oldest())
        return self._result(committed, turn, snap)

    def flush(self) -> List[PathPoint]:
        """Wall-constrain and commit every buffered step, oldest first."""
        flushed = []
        while len(self._buffer) > 0:
            flushed.append(self._commit_oldest())
        if flushed:
            logger.debug(f"Flushed {len(flushed)} buffered steps")
        return flushed

    def _try_snap(self, turn: TurnEvent) -> Optional[SnapResult]:
        turn_step = self._buffer[turn.buffer_index]
        if turn_step.snapped:
            return None
        snap = self.entrance_snapper.snap(
            turn_step.position, turn.pre_heading, turn_step.stride_length, self.provider
        )
        if not snap.was_snapped:
            return None

        self._buffer.pin(turn.buffer_index, snap.snapped_position)
        self._smooth_committed(snap.correction_delta)
        # Pre-turn steps follow the shifted history, post-turn steps the pinned one
        self._buffer.rebase(self._last_committed)
        self._stride_calibration = (CALIBRATION_RETENTION * self._stride_calibration
                                    + (1.0 - CALIBRATION_RETENTION) * snap.stride_calibration_factor)
        logger.debug(
            f"Snapped turn step {turn.buffer_index} to entrance {snap.entrance_id}, "
            f"stride calibration {self._stride_calibration:.3f}"
        )
        return snap

    def _smooth_committed(self, delta: np.ndarray) -> None:
        """
        Spread a snap correction over the last committed points with a linear ramp.

        Each shifted point is wall-constrained against its (already shifted)
        predecessor, so the smoothed history never crosses a wall. Shifts do
        not feed the heading correction. The commit anchor follows the last
        shifted point.
        """
        # Index 0 is the origin and never moves
        count = min(self.config.retroactive_smooth_steps, len(self._committed) - 1)
        if count <= 0:
            return
        start = len(self._committed) - count
        for k, i in enumerate(range(start, len(self._committed))):
            fraction = (k + 1) / (count + 1)
            point = self._committed[i]
            shifted = point.position + delta * fraction
            previous = self._committed[i - 1].position
            walls = self.provider.get_walls_near(shifted, self.config.wall_search_radius)
            result = self.wall_constraint.constrain(previous, shifted, walls)
            self._committed[i] = PathPoint(position=result.constrained_position,
                                           heading=point.heading)
        self._last_committed = self._committed[-1].position

    def _commit_oldest(self) -> PathPoint:
        oldest = self._buffer.pop_oldest()
        previous = self._last_committed if self._last_committed is not None else oldest.position
        walls = self.provider.get_walls_near(oldest.position, self.config.wall_search_radius)
        result = self.wall_constraint.constrain(previous, oldest.position, walls)
        if result.was_constrained:
            self._heading_correction += result.heading_correction

        point = PathPoint(position=result.constrained_position, heading=oldest.heading)
        self._committed.append(point)
        self._last_committed = result.constrained_position

        self._recent_committed.append(oldest)
        del self._recent_committed[:-2 * self.config.buffer_size]

        self._buffer.rebase(result.constrained_position)
        return point

    def _pass_through(self, heading: float) -> CorrectionResult:
        """No origin yet: record the step uncorrected at (0, 0), which anchors later steps."""
        position = np.zeros(2)
        point = PathPoint(position=position, heading=heading)
        self._committed.append(point)
        self._last_committed = position
        return self._result([point])

    def _result(
        self,
        committed: List[PathPoint],
        turn: Optional[TurnEvent] = None,
        snap: Optional[SnapResult] = None,
    ) -> CorrectionResult:
        current = self.current_position
        return CorrectionResult(
            new_committed_points=committed,
            corrected_current_position=np.array(current, dtype=np.float64),
            heading_correction=self._heading_correction,
            stride_calibration_factor=self._stride_calibration,
            turn_event=turn,
            snap=snap,
        )
