"""
Figures for EKF-SLAM runs: trajectories with the landmark map, and pose
errors over time. Every function returns the Figure it draws.
"""

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Ellipse

_STYLES = [("tab:red", "--"), ("tab:blue", "-"), ("tab:orange", "-."), ("tab:purple", ":")]


def _covariance_ellipse(center: np.ndarray, cov: np.ndarray, n_sigma: float, **kwargs) -> Ellipse:
    eigvals, eigvecs = np.linalg.eigh(cov)
    eigvals = np.clip(eigvals, 0.0, None)
    angle = np.degrees(np.arctan2(eigvecs[1, 1], eigvecs[0, 1]))
    width, height = 2.0 * n_sigma * np.sqrt(eigvals[::-1])
    return Ellipse(xy=center, width=width, height=height, angle=angle, **kwargs)


def plot_slam_result(
    truth: np.ndarray,
    estimates: Dict[str, np.ndarray],
    landmarks_true: Optional[np.ndarray] = None,
    landmark_estimates: Optional[Mapping[int, np.ndarray]] = None,
    landmark_covariances: Optional[Mapping[int, np.ndarray]] = None,
    n_sigma: float = 3.0,
    title: str = "EKF-SLAM",
) -> plt.Figure:
    """
    Draw the true path, estimated paths and the landmark map.

    Args:
        truth: True poses, shape (N, 2) or (N, 3); only x, y are drawn.
        estimates: {label: poses} for each estimated trajectory.
        landmarks_true: True landmark positions, row index = identity.
        landmark_estimates: {identity: [x, y]} from the filter.
        landmark_covariances: {identity: 2×2 covariance}; drawn as
                              n_sigma ellipses around the estimates.
        n_sigma: Ellipse size in standard deviations.
        title: Axes title.
    """
    fig, ax = plt.subplots(figsize=(9, 8))

    truth = np.asarray(truth)
    ax.plot(truth[:, 0], truth[:, 1], color="black", linewidth=2, label="Ground truth", zorder=10)
    ax.plot(truth[0, 0], truth[0, 1], "o", color="tab:green", markersize=9, label="Start", zorder=11)

    for i, (label, poses) in enumerate(estimates.items()):
        color, linestyle = _STYLES[i % len(_STYLES)]
        poses = np.asarray(poses)
        ax.plot(poses[:, 0], poses[:, 1], color=color, linestyle=linestyle,
                linewidth=1.5, alpha=0.85, label=label)

    if landmarks_true is not None and len(landmarks_true):
        ax.scatter(landmarks_true[:, 0], landmarks_true[:, 1], s=90, c="lightgray",
                   edgecolors="gray", label="Landmarks (true)", zorder=5)

    if landmark_estimates:
        xy = np.array(list(landmark_estimates.values()))
        ax.scatter(xy[:, 0], xy[:, 1], marker="x", s=60, c="tab:green",
                   label="Landmarks (EKF)", zorder=12)
        for marker_id, (x, y) in landmark_estimates.items():
            ax.annotate(str(marker_id), (x, y), textcoords="offset points", xytext=(5, 5), fontsize=9)
            if landmark_covariances and marker_id in landmark_covariances:
                ax.add_patch(_covariance_ellipse(
                    np.array([x, y]), landmark_covariances[marker_id], n_sigma,
                    fill=False, edgecolor="tab:green", alpha=0.7,
                ))

    ax.set_xlabel("x (m)")
    ax.set_ylabel("y (m)")
    ax.set_title(title, fontweight="bold")
    ax.legend(loc="best", fontsize=9)
    ax.grid(True, alpha=0.3)
    ax.set_aspect("equal", adjustable="datalim")

    fig.tight_layout()
    return fig


def plot_pose_errors(errors: Dict[str, np.ndarray], dt: float = 1.0) -> plt.Figure:
    """
    Position error magnitude and heading error over time.

    Args:
        errors: {label: pose errors [dx, dy, dθ]}, each of shape (N, 3),
                heading errors already normalized (see compute_pose_errors).
        dt: Time between samples (s).
    """
    fig, (ax_pos, ax_head) = plt.subplots(2, 1, figsize=(10, 6), sharex=True)

    for i, (label, err) in enumerate(errors.items()):
        color, linestyle = _STYLES[i % len(_STYLES)]
        err = np.asarray(err)
        t = np.arange(len(err)) * dt
        ax_pos.plot(t, np.hypot(err[:, 0], err[:, 1]), color=color, linestyle=linestyle, label=label)
        ax_head.plot(t, np.degrees(err[:, 2]), color=color, linestyle=linestyle, label=label)

    ax_pos.set_ylabel("position error (m)")
    ax_head.set_ylabel("heading error (deg)")
    ax_head.set_xlabel("time (s)")
    for ax in (ax_pos, ax_head):
        ax.grid(True, alpha=0.3)
    ax_pos.legend(fontsize=9)

    fig.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Sequence[str] = ("png",),
) -> List[Path]:
    """Write fig to out_dir/name.<fmt> for every format; returns the paths."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = [out_dir / f"{name}.{fmt}" for fmt in formats]
    for path in paths:
        fig.savefig(path, dpi=150, bbox_inches="tight")
    return paths
