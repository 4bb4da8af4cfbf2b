"""
State estimation for landmark SLAM.

Available estimators:
    - EKFSlam: Extended Kalman Filter SLAM with identity-based association
    - OdometrySlam: driver coupling wheel odometry to an EKFSlam instance
"""

from ekfslam.estimators.base import StateEstimator
from ekfslam.estimators.ekf_slam import EKFSlam, UpdateReport
from ekfslam.estimators.odometry_slam import OdometrySlam

__all__ = [
    "StateEstimator",
    "EKFSlam",
    "UpdateReport",
    "OdometrySlam",
]
