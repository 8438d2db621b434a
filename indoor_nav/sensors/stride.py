"""
Stride length estimation from step timing.

The step detector only reports when a step happened. This module turns the
interval between consecutive steps into a stride length with a
height-normalised linear gait model:

    f      = 1000 / interval_ms                      (cadence, steps/s)
    f_s    = 0.35 * f + 0.65 * mean(f over last N)   (smoothed cadence)
    L      = h * (k * f_s + c)                       (stride, metres)

Strides of users shorter than 170 cm get a 5% boost. The result is clamped
to [40 cm, 0.85 * h] and converted to campus units.
"""

from collections import deque
from dataclasses import dataclass
from typing import Optional


INSTANT_CADENCE_WEIGHT = 0.35
SHORT_USER_HEIGHT_CM = 170.0
SHORT_USER_BOOST = 1.05
MAX_STRIDE_HEIGHT_RATIO = 0.85


@dataclass(frozen=True)
class StrideConfig:
    """
    Gait model parameters.

    Attributes:
        height_cm: User height. None disables the model (stride 0).
        k_value: Sensitivity of stride to cadence.
            Typical height-normalised gait values are 0.15-0.17.
        c_value: Base stride constant.
        cadence_average_size: Cadences kept for the rolling average.
        min_stride_cm: Lower clamp, shorter steps are shuffles.
        pixels_per_cm: Campus units per centimetre (1 unit = 2 cm).
    """

    height_cm: Optional[float] = None
    k_value: float = 0.16
    c_value: float = 0.25
    cadence_average_size: int = 5
    min_stride_cm: float = 40.0
    pixels_per_cm: float = 0.5

    def __post_init__(self):
        if self.height_cm is not None and self.height_cm <= 0:
            raise ValueError(f"height_cm must be positive, got {self.height_cm}")
        if self.cadence_average_size < 1:
            raise ValueError(
                f"cadence_average_size must be >= 1, got {self.cadence_average_size}"
            )
        if self.min_stride_cm < 0:
            raise ValueError(f"min_stride_cm must be non-negative, got {self.min_stride_cm}")
        if self.pixels_per_cm <= 0:
            raise ValueError(f"pixels_per_cm must be positive, got {self.pixels_per_cm}")


def cadence_from_interval(interval_ms: float) -> float:
    """
    Step cadence in steps per second.

    Args:
        interval_ms: Time since the previous step in milliseconds.

    Returns:
        Cadence, or 0.0 for a non-positive interval (first step).
    """
    if interval_ms <= 0:
        return 0.0
    return 1000.0 / interval_ms


def stride_length_cm(
    instant_cadence: float,
    average_cadence: float,
    config: StrideConfig,
) -> float:
    """
    Stride length in centimetres from instant and average cadence.

    Example:
        >>> cfg = StrideConfig(height_cm=175.0)
        >>> round(stride_length_cm(2.0, 2.0, cfg), 2)
        99.75
    """
    if config.height_cm is None:
        return 0.0
    height_m = config.height_cm / 100.0

    smoothed = (INSTANT_CADENCE_WEIGHT * instant_cadence
                + (1.0 - INSTANT_CADENCE_WEIGHT) * average_cadence)
    stride_m = height_m * (config.k_value * smoothed + config.c_value)
    if config.height_cm < SHORT_USER_HEIGHT_CM:
        stride_m *= SHORT_USER_BOOST

    max_stride = MAX_STRIDE_HEIGHT_RATIO * config.height_cm
    return min(max(stride_m * 100.0, config.min_stride_cm), max_stride)


class StrideEstimator:
    """
    Per-session stride estimator.

    Keeps the rolling cadence window between steps and converts each step
    interval into a stride in campus units.

    Args:
        config: Gait model parameters.

    Example:
        >>> est = StrideEstimator(StrideConfig(height_cm=175.0))
        >>> stride = est.on_step(500)   # 2 steps/s
        >>> round(stride, 1)
        49.9
    """

    def __init__(self, config: Optional[StrideConfig] = None):
        self.config = config or StrideConfig()
        self._cadences = deque(maxlen=self.config.cadence_average_size)
        self.last_stride_cm = 0.0
        self.last_cadence = 0.0
        self.step_count = 0

    def update_config(self, config: StrideConfig) -> None:
        """Swap parameters, keeping the most recent cadences."""
        self.config = config
        self._cadences = deque(self._cadences, maxlen=config.cadence_average_size)

    @property
    def average_cadence(self) -> float:
        if not self._cadences:
            return 0.0
        return sum(self._cadences) / len(self._cadences)

    def on_step(self, interval_ms: float) -> float:
        """
        Register one step and return its stride in campus units.

        Args:
            interval_ms: Time since the previous step in milliseconds.

        Returns:
            Stride length in campus units, 0.0 when no height is configured.
        """
        cadence = cadence_from_interval(interval_ms)
        self._cadences.append(cadence)
        self.last_cadence = cadence
        self.last_stride_cm = stride_length_cm(cadence, self.average_cadence, self.config)
        self.step_count += 1
        return self.last_stride_cm * self.config.pixels_per_cm

    def reset(self) -> None:
        self._cadences.clear()
        self.last_stride_cm = 0.0
        self.last_cadence = 0.0
        self.step_count = 0
