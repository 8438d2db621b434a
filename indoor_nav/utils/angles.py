"""
Angle normalisation and heading helpers.

Headings throughout the package use the floor plan screen convention:
0 rad points to screen-up (negative y, "north") and angles grow clockwise.
All angular quantities are kept in the half-open range (-π, π].
"""

import math
from typing import Sequence

import numpy as np


def normalize_angle(angle: float) -> float:
    """
    Normalise an angle to the range (-π, π].

    Unlike a plain ``atan2`` wrap, -π is mapped to +π so that the range is
    half-open and every direction has exactly one representation.

    Args:
        angle: Angle in radians (any finite value).

    Returns:
        Equivalent angle in (-π, π].

    Example:
        >>> normalize_angle(3 * np.pi / 2)
        -1.5707963267948966
        >>> normalize_angle(-np.pi)
        3.141592653589793
    """
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped <= 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def angle_difference(from_angle: float, to_angle: float) -> float:
    """
    Signed shortest rotation that takes ``from_angle`` to ``to_angle``.

    Args:
        from_angle: Start angle in radians.
        to_angle: End angle in radians.

    Returns:
        ``to_angle - from_angle`` normalised to (-π, π]. Positive means a
        clockwise turn in the screen convention.

    Example:
        >>> round(angle_difference(np.pi - 0.1, -np.pi + 0.1), 6)  # across the seam
        0.2
    """
    return normalize_angle(to_angle - from_angle)


def circular_mean(angles: Sequence[float]) -> float:
    """
    Mean direction of a set of angles.

    Averages unit vectors, so headings on either side of the ±π seam do not
    cancel out. Returns 0.0 for an empty sequence.
    """
    if len(angles) == 0:
        return 0.0
    arr = np.asarray(angles, dtype=float)
    return float(np.arctan2(np.mean(np.sin(arr)), np.mean(np.cos(arr))))
