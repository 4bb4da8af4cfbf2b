"""SE(2) operations for planar SLAM.

This module implements the rigid-body helpers shared by the kinematic model,
the odometry driver and the simulator.

Key functions:
    - se2_compose: Compose two SE(2) poses (p1 ⊕ p2)
    - se2_inverse: Invert an SE(2) pose (p⁻¹)
    - integrate_twist: Exact body-frame displacement produced by a twist
    - map_to_odom: Correction transform between the SLAM map and odometry frames

SE(2) representation: poses are NumPy arrays [x, y, theta] of shape (3,).
"""

from typing import Union

import numpy as np

from ekfslam.utils.angles import DEFAULT_EPSILON, normalize_angle

from .types import Pose2, Twist2


def _as_array(p: Union[np.ndarray, Pose2], name: str) -> np.ndarray:
    if isinstance(p, Pose2):
        return p.to_array()
    p = np.asarray(p, dtype=float)
    if p.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {p.shape}")
    return p


def se2_compose(
    p1: Union[np.ndarray, Pose2], p2: Union[np.ndarray, Pose2]
) -> np.ndarray:
    """
    Compose two SE(2) poses: p_result = p1 ⊕ p2.

    The composition formula for SE(2):
        x_result = x1 + x2*cos(θ1) - y2*sin(θ1)
        y_result = y1 + x2*sin(θ1) + y2*cos(θ1)
        θ_result = θ1 + θ2  (normalized to (-π, π])

    Args:
        p1: First pose, array [x1, y1, θ1] or Pose2 instance.
        p2: Second pose, array [x2, y2, θ2] or Pose2 instance.

    Returns:
        Composed pose as array [x, y, θ] of shape (3,).

    Raises:
        ValueError: If poses do not have shape (3,).

    Examples:
        >>> p1 = np.array([0, 0, np.pi/2])  # 90° rotation
        >>> p2 = np.array([1, 0, 0])  # 1m forward
        >>> np.allclose(se2_compose(p1, p2), [0, 1, np.pi/2])
        True
    """
    x1, y1, th1 = _as_array(p1, "p1")
    x2, y2, th2 = _as_array(p2, "p2")

    c, s = np.cos(th1), np.sin(th1)

    return np.array(
        [x1 + x2 * c - y2 * s, y1 + x2 * s + y2 * c, normalize_angle(th1 + th2)],
        dtype=np.float64,
    )


def se2_inverse(p: Union[np.ndarray, Pose2]) -> np.ndarray:
    """
    Compute the inverse of an SE(2) pose, such that p ⊕ p⁻¹ = identity.

    The inverse formula for SE(2):
        x_inv = -(x*cos(θ) + y*sin(θ))
        y_inv = -(-x*sin(θ) + y*cos(θ))
        θ_inv = -θ  (normalized to (-π, π])

    Args:
        p: Pose to invert, array [x, y, θ] or Pose2 instance.

    Returns:
        Inverted pose as array [x, y, θ] of shape (3,).
    """
    x, y, th = _as_array(p, "p")
    c, s = np.cos(th), np.sin(th)

    return np.array(
        [-(x * c + y * s), -(-x * s + y * c), normalize_angle(-th)],
        dtype=np.float64,
    )


def integrate_twist(
    twist: Twist2, epsilon: float = DEFAULT_EPSILON
) -> np.ndarray:
    """
    Body-frame displacement obtained by following a twist for unit time.

    This is the exponential map of se(2): the twist is held constant over
    the interval, so the robot travels along a circular arc (or a straight
    line when the angular rate is zero). The result is expressed in the
    body frame at the start of the interval and is composed with the
    starting pose by se2_compose().

    For θ̇ = 0:
        Δ = [ẋ, ẏ, 0]
    For θ̇ ≠ 0:
        Δx = (ẋ sin θ̇ + ẏ (cos θ̇ - 1)) / θ̇
        Δy = (ẏ sin θ̇ + ẋ (1 - cos θ̇)) / θ̇
        Δθ = θ̇

    Args:
        twist: Body-frame twist.
        epsilon: Tolerance under which the angular rate is treated as zero.

    Returns:
        Displacement [Δx, Δy, Δθ] of shape (3,).

    Examples:
        >>> d = integrate_twist(Twist2(xdot=np.pi / 2, thetadot=np.pi / 2))
        >>> np.allclose(d, [1.0, 1.0, np.pi / 2])
        True
    """
    vx, vy, w = twist.xdot, twist.ydot, twist.thetadot

    if twist.is_straight(epsilon):
        return np.array([vx, vy, 0.0], dtype=np.float64)

    sw, cw = np.sin(w), np.cos(w)
    return np.array(
        [(vx * sw + vy * (cw - 1.0)) / w, (vy * sw + vx * (1.0 - cw)) / w, w],
        dtype=np.float64,
    )


def map_to_odom(
    map_pose: Union[np.ndarray, Pose2], odom_pose: Union[np.ndarray, Pose2]
) -> np.ndarray:
    """
    Transform from the SLAM map frame to the odometry frame.

    Given the robot pose estimated by SLAM in the map frame (T_MB) and the
    dead-reckoning pose in the odometry frame (T_OB), the correction that
    places the odometry frame in the map is:

        T_MO = T_MB ⊕ T_OB⁻¹

    so that T_MO ⊕ T_OB recovers T_MB.

    Args:
        map_pose: Robot pose in the map frame.
        odom_pose: Robot pose in the odometry frame.

    Returns:
        Pose of the odometry frame in the map frame, array [x, y, θ].
    """
    return se2_compose(map_pose, se2_inverse(odom_pose))
