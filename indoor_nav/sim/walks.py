"""
Synthetic step sequences.

Walks a polyline at a fixed stride and reports what a phone would: one
(heading, stride) pair per step, corrupted with heading bias, heading noise
and stride noise.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from indoor_nav.utils.geometry import direction_angle, heading_to_unit_vector


@dataclass(frozen=True)
class SimulatedWalk:
    """
    Attributes:
        truth: True positions, origin first, shape (N + 1, 2).
        true_headings: True heading per step, shape (N,).
        headings: Measured heading per step, shape (N,).
        strides: Measured stride per step, shape (N,).
    """

    truth: np.ndarray
    true_headings: np.ndarray
    headings: np.ndarray
    strides: np.ndarray

    @property
    def num_steps(self) -> int:
        return int(self.headings.shape[0])


def simulate_walk(
    waypoints: Sequence[Sequence[float]],
    stride: float = 35.0,
    heading_bias: float = 0.0,
    heading_noise_std: float = 0.0,
    stride_noise_std: float = 0.0,
    rng: Optional[np.random.Generator] = None,
) -> SimulatedWalk:
    """
    Walk along ``waypoints`` one stride at a time.

    Steps never cut corners: a step that would pass a waypoint stops on it
    and the remaining distance is dropped. The true position therefore
    always lies on the polyline.

    Args:
        waypoints: Polyline vertices, shape (M, 2), M >= 2.
        stride: True stride length (campus units).
        heading_bias: Constant heading error (rad).
        heading_noise_std: Per-step heading noise std (rad).
        stride_noise_std: Per-step stride noise std (campus units).
        rng: Random generator (default: fresh unseeded generator).

    Returns:
        SimulatedWalk with truth and measurements.
    """
    pts = np.asarray(waypoints, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] < 2:
        raise ValueError(f"need at least 2 waypoints, got {pts.shape[0]}")
    if stride <= 0:
        raise ValueError(f"stride must be positive, got {stride}")
    rng = rng if rng is not None else np.random.default_rng()

    positions = [pts[0].copy()]
    true_headings = []
    true_strides = []
    for a, b in zip(pts[:-1], pts[1:]):
        heading = direction_angle(a, b)
        remaining = float(np.hypot(*(b - a)))
        current = a.copy()
        while remaining > 1e-9:
            length = min(stride, remaining)
            current = current + length * heading_to_unit_vector(heading)
            remaining -= length
            positions.append(current.copy())
            true_headings.append(heading)
            true_strides.append(length)

    true_headings = np.array(true_headings)
    n = true_headings.shape[0]
    headings = true_headings + heading_bias
    if heading_noise_std > 0:
        headings = headings + rng.normal(0.0, heading_noise_std, n)
    strides = np.array(true_strides)
    if stride_noise_std > 0:
        strides = np.maximum(strides + rng.normal(0.0, stride_noise_std, n), 0.0)

    return SimulatedWalk(
        truth=np.array(positions),
        true_headings=true_headings,
        headings=headings,
        strides=strides,
    )
