"""
Stairwell subsystem: pairing, transition detection and animation.
"""

from .types import (
    LABEL_WALKING,
    LABEL_UPSTAIRS,
    LABEL_DOWNSTAIRS,
    StairPair,
    StairDirection,
    StairTransitionEvent,
    ArrivalReason,
    ClimbPhase,
    Idle,
    Climbing,
    Returning,
    Arrived,
    Cancelled,
)
from .pairing import build_stair_pairs
from .detector import StairDetectorConfig, StairwellTransitionDetector
from .animator import (
    StairAnimatorConfig,
    StairwellTransitionAnimator,
    Start,
    Step,
    ReturnStep,
    ForceArrive,
    Finalize,
    transition,
    estimate_total_steps,
)

__all__ = [
    'LABEL_WALKING',
    'LABEL_UPSTAIRS',
    'LABEL_DOWNSTAIRS',
    'StairPair',
    'StairDirection',
    'StairTransitionEvent',
    'ArrivalReason',
    'ClimbPhase',
    'Idle',
    'Climbing',
    'Returning',
    'Arrived',
    'Cancelled',
    'build_stair_pairs',
    'StairDetectorConfig',
    'StairwellTransitionDetector',
    'StairAnimatorConfig',
    'StairwellTransitionAnimator',
    'Start',
    'Step',
    'ReturnStep',
    'ForceArrive',
    'Finalize',
    'transition',
    'estimate_total_steps',
]
