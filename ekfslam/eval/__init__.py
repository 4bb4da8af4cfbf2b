"""
Evaluation and Visualization Module.

Modules:
    metrics: Error metrics (RMSE, NEES, chi-square bounds, map errors)
    plots: Trajectory/map and error-over-time figures
"""

from .metrics import (
    compute_map_errors,
    compute_nees,
    compute_pose_errors,
    compute_position_errors,
    compute_position_rmse,
    compute_rmse,
    nees_bounds,
)
from .plots import plot_pose_errors, plot_slam_result, save_figure

__all__ = [
    # Metrics
    "compute_position_errors",
    "compute_pose_errors",
    "compute_rmse",
    "compute_position_rmse",
    "compute_nees",
    "nees_bounds",
    "compute_map_errors",
    # Plots
    "plot_slam_result",
    "plot_pose_errors",
    "save_figure",
]
