"""
Kinematic, motion and measurement models used by the EKF-SLAM estimator.
"""

from .diff_drive import DiffDrive
from .measurement_models import (
    landmark_from_measurement,
    range_bearing,
    range_bearing_jacobian,
)
from .motion_models import predict_pose

__all__ = [
    # Kinematics
    'DiffDrive',

    # Motion model
    'predict_pose',

    # Measurement model
    'range_bearing',
    'range_bearing_jacobian',
    'landmark_from_measurement',
]
