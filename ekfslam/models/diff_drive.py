"""
Differential-drive kinematics.

This module converts wheel motion into a body-frame twist and integrates it
into a planar pose:
    - Body twist from wheel-angle deltas (forward velocity kinematics)
    - Forward kinematics: new pose from new wheel angles
    - Inverse kinematics: wheel velocities that realize a twist

Geometry:
    r: wheel radius
    D: distance from each wheel contact point to the robot centre
       (half of the wheel separation)

Equations for wheel-angle deltas (Δφ_L, Δφ_R):
    θ̇ = r (Δφ_R - Δφ_L) / (2D)
    ẋ = r (Δφ_R + Δφ_L) / 2
    ẏ = 0

Inverse:
    φ̇_L = (ẋ - D θ̇) / r
    φ̇_R = (ẋ + D θ̇) / r

The pose update composes the rigid-body displacement of the twist with the
starting pose, so a curved path lands on the correct arc instead of the
tangent line an Euler step would produce.
"""

from typing import Optional, Union

import numpy as np

from ekfslam.slam.config import RobotGeometry
from ekfslam.slam.se2 import integrate_twist, se2_compose
from ekfslam.slam.types import Pose2, Twist2, WheelState
from ekfslam.utils.angles import almost_equal


class DiffDrive:
    """
    Kinematic model of a differential-drive robot.

    Stateless apart from its geometry and the last wheel angles passed to
    forward_kinematics().

    Attributes:
        wheel_radius: Wheel radius r (m).
        wheel_separation: Distance between the wheels (m).
        half_track: Wheel-to-centre distance D (m).
        wheel_angles: Last known wheel angles (rad).

    Example:
        >>> dd = DiffDrive(wheel_radius=0.033, wheel_separation=0.16)
        >>> pose = dd.forward_kinematics(Pose2(), WheelState(1.0, 1.0))
        >>> round(pose.x, 3), pose.theta
        (0.033, 0.0)
    """

    def __init__(
        self,
        wheel_radius: float,
        wheel_separation: float,
        wheel_angles: Optional[WheelState] = None,
    ):
        """
        Initialize the kinematic model.

        Args:
            wheel_radius: Wheel radius (m), finite and positive.
            wheel_separation: Distance between the wheel contact points (m),
                              finite and positive.
            wheel_angles: Initial wheel angles (default: both zero).

        Raises:
            ValueError: If a geometric constant is zero, negative or not finite.
        """
        geometry = RobotGeometry(wheel_radius=wheel_radius, wheel_separation=wheel_separation)
        self.wheel_radius = float(geometry.wheel_radius)
        self.wheel_separation = float(geometry.wheel_separation)
        self.half_track = self.wheel_separation / 2.0
        self.wheel_angles = wheel_angles if wheel_angles is not None else WheelState()

    @classmethod
    def from_geometry(cls, geometry: RobotGeometry, wheel_angles: Optional[WheelState] = None) -> "DiffDrive":
        """Create a model from a RobotGeometry configuration."""
        return cls(geometry.wheel_radius, geometry.wheel_separation, wheel_angles)

    def body_twist(self, wheel_deltas: WheelState) -> Twist2:
        """
        Body twist implied by the wheel angular displacements.

        Equal wheel deltas give exactly zero angular twist.

        Args:
            wheel_deltas: Change in wheel angles over the interval (rad), or
                          equivalently wheel speeds (rad/s) for a velocity.

        Returns:
            Body-frame twist with ydot = 0.
        """
        r, d = self.wheel_radius, self.half_track
        dl, dr = wheel_deltas.left, wheel_deltas.right
        return Twist2(
            xdot=r * (dr + dl) / 2.0,
            ydot=0.0,
            thetadot=r * (dr - dl) / (2.0 * d),
        )

    def wheel_angle_twist(self, previous: WheelState, current: WheelState) -> Twist2:
        """Twist between two consecutive wheel-angle samples."""
        return self.body_twist(current - previous)

    def forward_kinematics(
        self, pose: Union[Pose2, np.ndarray], new_wheel_angles: WheelState
    ) -> Pose2:
        """
        Advance a pose to new wheel angles.

        The wheel deltas are measured against the stored wheel angles, which
        are then replaced by new_wheel_angles.

        Args:
            pose: Starting pose.
            new_wheel_angles: Current wheel angles (rad).

        Returns:
            New pose, pose ⊕ exp(twist).
        """
        twist = self.wheel_angle_twist(self.wheel_angles, new_wheel_angles)
        self.wheel_angles = new_wheel_angles
        return Pose2.from_array(se2_compose(pose, integrate_twist(twist)))

    def inverse_kinematics(self, twist: Twist2) -> WheelState:
        """
        Wheel velocities that realize a body twist.

        Args:
            twist: Desired body twist.

        Returns:
            Wheel velocities (rad per unit time of the twist).

        Raises:
            ValueError: If the twist has a lateral component, which a
                        differential drive cannot produce.
        """
        if not almost_equal(twist.ydot, 0.0):
            raise ValueError(
                f"A differential drive cannot move sideways (ydot={twist.ydot})"
            )
        r, d = self.wheel_radius, self.half_track
        return WheelState(
            left=(twist.xdot - d * twist.thetadot) / r,
            right=(twist.xdot + d * twist.thetadot) / r,
        )
