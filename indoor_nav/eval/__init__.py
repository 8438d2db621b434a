"""
Evaluation and Visualization Module.

Modules:
    metrics: Track error statistics and wall-crossing counts
    plots: Floor geometry, tracked walk and route figures
"""

from .metrics import (
    compute_position_errors,
    compute_error_stats,
    count_wall_crossings,
)
from .plots import (
    plot_floor_geometry,
    plot_tracked_path,
    plot_route,
    save_figure,
)

__all__ = [
    # Metrics
    "compute_position_errors",
    "compute_error_stats",
    "count_wall_crossings",
    # Plots
    "plot_floor_geometry",
    "plot_tracked_path",
    "plot_route",
    "save_figure",
]
