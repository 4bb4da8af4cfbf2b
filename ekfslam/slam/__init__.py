"""Planar SLAM data types, SE(2) helpers and configuration.

Main components:
    - Pose2, Twist2, WheelState, LandmarkMeasurement: Core data structures
    - se2_compose, se2_inverse, integrate_twist, map_to_odom: SE(2) operations
    - RobotGeometry, EKFSlamConfig, SimConfig, load_config: Configuration

Example usage:
    >>> from ekfslam.slam import Pose2, Twist2, integrate_twist, se2_compose
    >>> import numpy as np
    >>>
    >>> p = Pose2(x=1.0, y=0.0, theta=np.pi / 2)
    >>> p_next = se2_compose(p, integrate_twist(Twist2(xdot=1.0)))
"""

from .config import (
    EKFSlamConfig,
    RobotGeometry,
    SimConfig,
    config_from_dict,
    config_to_dict,
    load_config,
)
from .se2 import integrate_twist, map_to_odom, se2_compose, se2_inverse
from .types import LandmarkMeasurement, Pose2, Twist2, WheelState

__all__ = [
    # Types
    "Pose2",
    "Twist2",
    "WheelState",
    "LandmarkMeasurement",
    # SE(2) operations
    "se2_compose",
    "se2_inverse",
    "integrate_twist",
    "map_to_odom",
    # Configuration
    "RobotGeometry",
    "EKFSlamConfig",
    "SimConfig",
    "config_from_dict",
    "config_to_dict",
    "load_config",
]
