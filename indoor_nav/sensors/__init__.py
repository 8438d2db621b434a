"""
Caller-side sensor helpers feeding the tracking pipeline.
"""

from .stride import (
    StrideConfig,
    StrideEstimator,
    cadence_from_interval,
    stride_length_cm,
)

__all__ = [
    'StrideConfig',
    'StrideEstimator',
    'cadence_from_interval',
    'stride_length_cm',
]
