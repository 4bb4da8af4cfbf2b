"""
In-process driver that feeds wheel odometry and landmark batches to EKF-SLAM.

The driver keeps two estimates side by side:
    - odom_pose: dead reckoning from the kinematic model alone
    - slam_pose: the EKF-SLAM estimate
and exposes the map->odom correction between them. Message transport and
frame broadcasting stay with the caller.

Typical loop::

    slam = OdometrySlam(DiffDrive(0.033, 0.16), EKFSlam())
    for angles in wheel_samples:           # encoder cadence
        slam.on_wheel_angles(angles)
        if batch_ready:                     # sensor cadence
            slam.on_observations(batch)
"""

from typing import Iterable, Optional

import numpy as np

from ekfslam.estimators.ekf_slam import EKFSlam, UpdateReport
from ekfslam.models.diff_drive import DiffDrive
from ekfslam.slam.se2 import map_to_odom
from ekfslam.slam.types import LandmarkMeasurement, Pose2, Twist2, WheelState


class OdometrySlam:
    """
    Couples a DiffDrive kinematic model with an EKFSlam estimator.

    Every wheel-angle sample produces one incremental twist, which advances
    the odometry pose and is consumed once by EKFSlam.predict(). Landmark
    batches go straight to EKFSlam.update().

    Attributes:
        diff_drive: Kinematic model (holds the last wheel angles).
        estimator: The EKF-SLAM estimator.
        last_twist: Twist produced by the most recent wheel sample.
    """

    def __init__(
        self,
        diff_drive: DiffDrive,
        estimator: Optional[EKFSlam] = None,
        initial_pose: Optional[Pose2] = None,
    ):
        """
        Args:
            diff_drive: Kinematic model of the robot.
            estimator: Estimator to drive (default: EKFSlam()).
            initial_pose: Starting pose of both odometry and SLAM (default: origin).
        """
        self.diff_drive = diff_drive
        self.estimator = estimator if estimator is not None else EKFSlam()
        self._odom_pose = initial_pose if initial_pose is not None else Pose2()
        if initial_pose is not None:
            self.estimator.reset(initial_pose)
        self.last_twist = Twist2()

    def on_wheel_angles(self, wheel_angles: WheelState) -> Twist2:
        """
        Consume one wheel-angle sample.

        Args:
            wheel_angles: Current absolute wheel angles (rad).

        Returns:
            The incremental body twist since the previous sample.
        """
        twist = self.diff_drive.wheel_angle_twist(self.diff_drive.wheel_angles, wheel_angles)
        self._odom_pose = self.diff_drive.forward_kinematics(self._odom_pose, wheel_angles)
        self.estimator.predict(twist)
        self.last_twist = twist
        return twist

    def on_observations(self, observations: Iterable[LandmarkMeasurement]) -> UpdateReport:
        """Consume one batch of simultaneous landmark observations."""
        return self.estimator.update(observations)

    @property
    def odom_pose(self) -> Pose2:
        """Dead-reckoning pose."""
        return Pose2(self._odom_pose.x, self._odom_pose.y, self._odom_pose.theta)

    @property
    def slam_pose(self) -> Pose2:
        """EKF-SLAM pose estimate."""
        return self.estimator.pose

    def map_to_odom(self) -> np.ndarray:
        """Pose of the odometry frame in the map frame, [x, y, θ]."""
        return map_to_odom(self.slam_pose, self._odom_pose)
