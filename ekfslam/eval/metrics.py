"""
Evaluation metrics for SLAM runs.

This module provides error metrics for trajectories and maps and the
chi-square consistency bounds used to judge filter covariance.
"""

from typing import Dict, Mapping, Optional, Tuple, Union

import numpy as np
from scipy import stats

from ekfslam.utils.angles import normalize_angle_array


def compute_position_errors(
    truth: np.ndarray, estimated: np.ndarray
) -> np.ndarray:
    """
    Compute position errors between true and estimated positions.

    Args:
        truth: True positions, shape (N, 2)
        estimated: Estimated positions, shape (N, 2)

    Returns:
        errors: Position error vectors, shape (N, 2)

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    truth = np.asarray(truth)
    estimated = np.asarray(estimated)

    if truth.shape != estimated.shape:
        raise ValueError(
            f"Shape mismatch: truth {truth.shape} vs estimated {estimated.shape}"
        )

    return estimated - truth


def compute_pose_errors(truth: np.ndarray, estimated: np.ndarray) -> np.ndarray:
    """
    Pose errors [dx, dy, dθ] with the heading error normalized to (-π, π].

    Args:
        truth: True poses [x, y, θ], shape (N, 3)
        estimated: Estimated poses [x, y, θ], shape (N, 3)
    """
    errors = compute_position_errors(truth, estimated)
    errors = np.array(errors, dtype=float)
    errors[:, 2] = normalize_angle_array(errors[:, 2])
    return errors


def compute_rmse(errors: np.ndarray, axis: Optional[int] = None) -> Union[float, np.ndarray]:
    """
    Compute Root Mean Square Error (RMSE).

    Args:
        errors: Error vectors, shape (N, d) or (N,)
        axis: None for a scalar over everything, 0 per dimension, 1 per sample

    Returns:
        rmse: RMSE value(s)
    """
    errors = np.asarray(errors)

    if axis is None:
        return float(np.sqrt(np.mean(errors**2)))
    return np.sqrt(np.mean(errors**2, axis=axis))


def compute_position_rmse(truth: np.ndarray, estimated: np.ndarray) -> float:
    """RMSE of the Euclidean position error over a trajectory."""
    errors = compute_position_errors(np.asarray(truth)[:, :2], np.asarray(estimated)[:, :2])
    return float(np.sqrt(np.mean(np.sum(errors**2, axis=1))))


def compute_nees(
    truth: np.ndarray, estimated: np.ndarray, covariance: np.ndarray
) -> np.ndarray:
    """
    Compute Normalized Estimation Error Squared (NEES).

        NEES = (x_true - x_est)^T P^{-1} (x_true - x_est)

    For a consistent estimator NEES follows a chi-square distribution with
    n degrees of freedom (state dimension).

    Args:
        truth: True states, shape (N, n)
        estimated: Estimated states, shape (N, n)
        covariance: Estimation covariances, shape (N, n, n)

    Returns:
        nees: NEES values, shape (N,); NaN where a covariance is singular
    """
    truth = np.asarray(truth)
    estimated = np.asarray(estimated)
    covariance = np.asarray(covariance)

    if truth.shape != estimated.shape:
        raise ValueError("truth and estimated must have same shape")

    N, n = truth.shape

    if covariance.shape != (N, n, n):
        raise ValueError(
            f"covariance must have shape ({N}, {n}, {n}), "
            f"got {covariance.shape}"
        )

    nees = np.zeros(N)
    for i in range(N):
        error = estimated[i] - truth[i]
        try:
            nees[i] = error @ np.linalg.solve(covariance[i], error)
        except np.linalg.LinAlgError:
            nees[i] = np.nan

    return nees


def nees_bounds(dof: int, n_runs: int = 1, confidence: float = 0.95) -> Tuple[float, float]:
    """
    Two-sided chi-square bounds for the average NEES over n_runs.

    Args:
        dof: State dimension.
        n_runs: Number of independent runs averaged.
        confidence: Probability mass inside the bounds.

    Returns:
        (lower, upper) bounds on the averaged NEES.
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError(f"confidence must be in (0, 1), got {confidence}")
    alpha = 1.0 - confidence
    k = dof * n_runs
    lower = stats.chi2.ppf(alpha / 2.0, k) / n_runs
    upper = stats.chi2.ppf(1.0 - alpha / 2.0, k) / n_runs
    return float(lower), float(upper)


def compute_map_errors(
    estimated: Mapping[int, np.ndarray], truth: np.ndarray
) -> Dict[int, float]:
    """
    Euclidean error of each estimated landmark.

    Args:
        estimated: Mapping identity -> estimated [x, y].
        truth: True landmark positions indexed by identity, shape (N, 2).

    Returns:
        Mapping identity -> position error (m).
    """
    truth = np.asarray(truth)
    errors = {}
    for marker_id, xy in estimated.items():
        if not 0 <= marker_id < len(truth):
            raise KeyError(f"No true position for landmark {marker_id}")
        errors[marker_id] = float(np.linalg.norm(np.asarray(xy) - truth[marker_id]))
    return errors
