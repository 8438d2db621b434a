"""
Buffered dead-reckoning correction pipeline.

Turn detection, entrance snapping, wall constraint and the engine that
orchestrates them.
"""

from .config import CorrectionConfig, load_config, save_config
from .types import (
    RawStep,
    PathPoint,
    TurnEvent,
    SnapResult,
    WallConstraintResult,
    CorrectionResult,
)
from .turn_detector import TurnDetector
from .entrance_snapper import EntranceSnapper
from .wall_constraint import WallConstraint
from .engine import StepBuffer, StepCorrectionEngine

__all__ = [
    'CorrectionConfig',
    'load_config',
    'save_config',
    'RawStep',
    'PathPoint',
    'TurnEvent',
    'SnapResult',
    'WallConstraintResult',
    'CorrectionResult',
    'TurnDetector',
    'EntranceSnapper',
    'WallConstraint',
    'StepBuffer',
    'StepCorrectionEngine',
]
