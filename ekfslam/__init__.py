"""Landmark EKF-SLAM for differential-drive robots.

This package contains the estimation core and its supporting tools:
- utils: Angle normalization helpers
- slam: Planar data types, SE(2) helpers, configuration
- models: Differential-drive kinematics, motion and measurement models
- estimators: Extended Kalman Filter SLAM with a growing state vector and
  the odometry driver that feeds it
- sim: Ground-truth simulator used to generate test data
- eval: Error metrics and plots
"""

__version__ = "0.1.0"
