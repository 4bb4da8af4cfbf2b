"""
Range-bearing measurement model for landmark SLAM.

Robot pose block q = [θ, x, y], landmark m = [m_x, m_y]:

    δ = m - [x, y],   d = δᵀδ
    h(q, m) = [ √d,  atan2(δ_y, δ_x) - θ ]

Jacobians:
    ∂h/∂q = [[ 0,  -δ_x/√d, -δ_y/√d ],
             [ -1,  δ_y/d,  -δ_x/d  ]]
    ∂h/∂m = [[ δ_x/√d,  δ_y/√d ],
             [ -δ_y/d,  δ_x/d  ]]

Inverse model (landmark initialization from one observation (r, φ)):
    m = [x, y] + r [cos(θ + φ), sin(θ + φ)]
"""

from typing import Tuple

import numpy as np

from ekfslam.utils.angles import normalize_angle

#: Squared distance below which the bearing Jacobian is clamped.
_MIN_DIST_SQ = 1e-12


def range_bearing(pose: np.ndarray, landmark: np.ndarray) -> np.ndarray:
    """
    Theoretical measurement of a landmark from a pose.

    Args:
        pose: Robot pose [θ, x, y].
        landmark: Landmark position [m_x, m_y].

    Returns:
        [range, bearing] with bearing in (-π, π].

    Example:
        >>> range_bearing(np.array([np.pi / 2, 1.0, 0.0]), np.array([1.0, 1.0]))
        array([1., 0.])
    """
    theta, x, y = pose
    dx = landmark[0] - x
    dy = landmark[1] - y
    return np.array([np.hypot(dx, dy), normalize_angle(np.arctan2(dy, dx) - theta)])


def range_bearing_jacobian(
    pose: np.ndarray, landmark: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Jacobians of the range-bearing model.

    Args:
        pose: Robot pose [θ, x, y].
        landmark: Landmark position [m_x, m_y].

    Returns:
        Tuple (H_pose, H_landmark) of shapes (2, 3) and (2, 2).

    Notes:
        When the landmark coincides with the robot the bearing is undefined;
        the distance is clamped so the Jacobian stays finite. The resulting
        innovation covariance is then checked by the estimator.
    """
    theta, x, y = pose
    dx = landmark[0] - x
    dy = landmark[1] - y
    d = max(dx * dx + dy * dy, _MIN_DIST_SQ)
    sqrt_d = np.sqrt(d)

    H_pose = np.array([
        [0.0, -dx / sqrt_d, -dy / sqrt_d],
        [-1.0, dy / d, -dx / d],
    ])
    H_landmark = np.array([
        [dx / sqrt_d, dy / sqrt_d],
        [-dy / d, dx / d],
    ])
    return H_pose, H_landmark


def landmark_from_measurement(
    pose: np.ndarray, r: float, phi: float
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Inverse observation model: landmark position from a range-bearing pair.

    Args:
        pose: Robot pose [θ, x, y].
        r: Measured range (m).
        phi: Measured bearing (rad).

    Returns:
        Tuple (landmark, G_pose, G_meas):
            landmark: [m_x, m_y] in the world frame.
            G_pose: ∂m/∂[θ, x, y], shape (2, 3).
            G_meas: ∂m/∂[r, φ], shape (2, 2).
    """
    theta, x, y = pose
    alpha = normalize_angle(theta + phi)
    c, s = np.cos(alpha), np.sin(alpha)

    landmark = np.array([x + r * c, y + r * s])
    G_pose = np.array([
        [-r * s, 1.0, 0.0],
        [r * c, 0.0, 1.0],
    ])
    G_meas = np.array([
        [c, -r * s],
        [s, r * c],
    ])
    return landmark, G_pose, G_meas
