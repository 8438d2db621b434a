"""
Evaluation metrics for tracked walks.

Author: Navigation Engineering Team
"""

from typing import Dict, Sequence

import numpy as np

from indoor_nav.floorplan.types import CampusWall
from indoor_nav.utils.geometry import segment_intersection


def compute_position_errors(truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
    """
    Euclidean error of each estimated position.

    Args:
        truth: True positions, shape (N, 2)
        estimated: Estimated positions, shape (N, 2)

    Returns:
        errors: Error magnitudes, shape (N,)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.asarray(truth, dtype=np.float64)
    estimated = np.asarray(estimated, dtype=np.float64)
    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )
    return np.linalg.norm(estimated - truth, axis=-1)


def compute_error_stats(errors: np.ndarray) -> Dict[str, float]:
    """
    Summary statistics of error magnitudes.

    Args:
        errors: Error magnitudes, shape (N,)

    Returns:
        stats: Dictionary with 'mean', 'median', 'rmse', 'p90' and 'max'
    """
    errors = np.abs(np.asarray(errors, dtype=np.float64))
    if errors.size == 0:
        raise ValueError("errors must not be empty")
    return {
        "mean": float(np.mean(errors)),
        "median": float(np.median(errors)),
        "rmse": float(np.sqrt(np.mean(errors**2))),
        "p90": float(np.percentile(errors, 90)),
        "max": float(np.max(errors)),
    }


def count_wall_crossings(points: np.ndarray, walls: Sequence[CampusWall]) -> int:
    """
    Number of track segments that cross a wall.

    A corrected track should always score zero.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    crossings = 0
    for a, b in zip(points[:-1], points[1:]):
        for wall in walls:
            if segment_intersection(a, b, wall.start, wall.end) is not None:
                crossings += 1
                break
    return crossings
