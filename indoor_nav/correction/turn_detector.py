"""
Turn detection over the step buffer.

The pre-buffer heading (mean of the last couple of committed steps, or the
first buffered step when nothing is committed yet) is compared with every
heading in the buffer. A turn is reported at the step that deviates most,
provided that deviation reaches the turn threshold. Looking at the whole
buffer instead of consecutive pairs keeps single-step compass jitter from
registering while a real turn is still caught within one buffer window.
"""

from typing import Optional, Sequence

import numpy as np

from indoor_nav.utils.angles import angle_difference, circular_mean
from .config import CorrectionConfig
from .types import RawStep, TurnEvent


# Committed steps averaged into the pre-buffer reference heading
CONTEXT_STEPS = 2


class TurnDetector:
    """Finds at most one turn per buffer pass."""

    def __init__(self, config: Optional[CorrectionConfig] = None):
        self.config = config or CorrectionConfig()

    def detect(
        self,
        buffer_steps: Sequence[RawStep],
        recent_committed: Sequence[RawStep] = (),
    ) -> Optional[TurnEvent]:
        """
        Scan the buffer for a turn.

        Args:
            buffer_steps: Buffered steps, oldest first.
            recent_committed: Recently committed steps, oldest first. May be
                empty.

        Returns:
            TurnEvent at the index of maximum deviation from the pre-buffer
            heading, or None if no deviation reaches the threshold.
        """
        if len(buffer_steps) == 0:
            return None

        context = list(recent_committed)[-CONTEXT_STEPS:]
        if context:
            reference = circular_mean([s.heading for s in context])
            first = 0
        else:
            reference = buffer_steps[0].heading
            first = 1
        if first >= len(buffer_steps):
            return None

        deviations = np.array([
            abs(angle_difference(reference, step.heading)) for step in buffer_steps[first:]
        ])
        offset = int(np.argmax(deviations))
        if deviations[offset] < self.config.turn_detection_threshold:
            return None

        index = first + offset
        turn_step = buffer_steps[index]
        return TurnEvent(
            buffer_index=index,
            pre_heading=reference,
            post_heading=turn_step.heading,
            heading_delta=angle_difference(reference, turn_step.heading),
            approximate_position=np.array(turn_step.position, dtype=np.float64),
        )
