"""
Utility functions shared by the kinematic model and the estimator.
"""

from .angles import (
    DEFAULT_EPSILON,
    almost_equal,
    angle_diff,
    normalize_angle,
    normalize_angle_array,
)

__all__ = [
    'DEFAULT_EPSILON',
    'almost_equal',
    'angle_diff',
    'normalize_angle',
    'normalize_angle_array',
]
