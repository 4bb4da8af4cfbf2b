"""
Motion model of the EKF-SLAM prediction step.

The robot block of the state vector is ordered [θ, x, y]. The control input
is a body-frame twist that is treated as noise-free; uncertainty is injected
afterwards as additive process noise.

Two branches on the angular rate θ̇:

Straight motion (|θ̇| < ε):
    θ' = θ
    x' = x + ẋ cos θ - ẏ sin θ
    y' = y + ẋ sin θ + ẏ cos θ

Arc motion (θ̇ ≠ 0), constant-velocity unicycle with turning radius ẋ/θ̇:
    θ' = θ + θ̇
    x' = x - (ẋ/θ̇) sin θ + (ẋ/θ̇) sin(θ + θ̇)
    y' = y + (ẋ/θ̇) cos θ - (ẋ/θ̇) cos(θ + θ̇)

A lateral rate ẏ, which a differential drive never produces, is carried
through the same exact arc integration (see integrate_twist).

The Jacobian A = ∂f/∂[θ, x, y] is the identity plus the partials of the new
position with respect to the old heading (first column).
"""

from typing import Tuple

import numpy as np

from ekfslam.slam.se2 import integrate_twist
from ekfslam.slam.types import Twist2
from ekfslam.utils.angles import DEFAULT_EPSILON, normalize_angle


def predict_pose(
    pose: np.ndarray, twist: Twist2, epsilon: float = DEFAULT_EPSILON
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Propagate the robot pose by one twist and linearize the motion.

    Args:
        pose: Robot pose block [θ, x, y] of the state vector.
        twist: Body-frame twist for the interval.
        epsilon: Tolerance under which θ̇ is treated as zero.

    Returns:
        Tuple (new_pose, A):
            new_pose: [θ', x', y'] with θ' normalized to (-π, π].
            A: 3×3 Jacobian of the motion model evaluated at the
               pre-prediction pose.

    Example:
        >>> new_pose, A = predict_pose(np.zeros(3), Twist2(xdot=1.0))
        >>> new_pose
        array([0., 1., 0.])
    """
    pose = np.asarray(pose, dtype=float)
    if pose.shape != (3,):
        raise ValueError(f"pose must have shape (3,), got {pose.shape}")

    theta, x, y = pose
    dx_b, dy_b, dtheta = integrate_twist(twist, epsilon)

    c, s = np.cos(theta), np.sin(theta)

    # Rotate the body displacement into the world frame
    dx_w = c * dx_b - s * dy_b
    dy_w = s * dx_b + c * dy_b

    new_pose = np.array([normalize_angle(theta + dtheta), x + dx_w, y + dy_w])

    # ∂(dx_w, dy_w)/∂θ; for ẏ = 0 in the arc branch this reduces to
    # -(ẋ/θ̇) cos θ + (ẋ/θ̇) cos(θ + θ̇) and -(ẋ/θ̇) sin θ + (ẋ/θ̇) sin(θ + θ̇)
    A = np.eye(3)
    A[1, 0] = -dy_w
    A[2, 0] = dx_w

    return new_pose, A
