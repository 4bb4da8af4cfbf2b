"""
Angle normalization utilities.

Headings and bearings in this package live in the half-open interval
(-π, π]. The upper end is included and the lower end is not, so -π is
reported as +π. Every angular quantity that enters or leaves the filter
passes through these helpers:
- Robot heading after a prediction or correction
- Landmark bearings (measured and predicted)
- Bearing innovations in the EKF correction
"""

from typing import Union

import numpy as np

#: Default tolerance used to decide whether a rotation rate is zero.
DEFAULT_EPSILON = 1e-12


def normalize_angle(theta: float) -> float:
    """
    Normalize an angle to the range (-π, π].

    Angles already inside the range are returned unchanged, which makes the
    function exactly idempotent: normalize_angle(normalize_angle(a)) equals
    normalize_angle(a) bit for bit.

    Args:
        theta: Angle in radians (any finite value).

    Returns:
        Equivalent angle in (-π, π].

    Example:
        >>> normalize_angle(3 * np.pi / 2)
        -1.5707963267948966
        >>> normalize_angle(-np.pi)
        3.141592653589793
    """
    theta = float(theta)
    if -np.pi < theta <= np.pi:
        return theta

    # atan2 trick, then fold the excluded endpoint onto +π
    wrapped = float(np.arctan2(np.sin(theta), np.cos(theta)))
    if wrapped <= -np.pi:
        wrapped = float(np.pi)
    return wrapped


def normalize_angle_array(angles: np.ndarray) -> np.ndarray:
    """
    Normalize an array of angles to (-π, π].

    Vectorized version of normalize_angle().

    Args:
        angles: Array of angles in radians.

    Returns:
        Array of the same shape with every entry in (-π, π].
    """
    angles = np.asarray(angles, dtype=float)
    inside = (angles > -np.pi) & (angles <= np.pi)
    wrapped = np.arctan2(np.sin(angles), np.cos(angles))
    wrapped = np.where(wrapped <= -np.pi, np.pi, wrapped)
    return np.where(inside, angles, wrapped)


def angle_diff(angle1: Union[float, np.ndarray],
               angle2: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Shortest signed difference angle1 - angle2, normalized to (-π, π].

    This is the bearing innovation used by the EKF correction. Without it a
    measured bearing of +179° against a predicted -179° would produce a 358°
    innovation instead of -2°.

    Args:
        angle1: Measured angle(s) in radians.
        angle2: Predicted angle(s) in radians.

    Returns:
        Normalized difference, scalar or array matching the inputs.
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return normalize_angle_array(np.asarray(angle1) - np.asarray(angle2))
    return normalize_angle(angle1 - angle2)


def almost_equal(a: float, b: float, epsilon: float = DEFAULT_EPSILON) -> bool:
    """Return True when |a - b| < epsilon."""
    return abs(a - b) < epsilon
