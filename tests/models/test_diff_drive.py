"""
Unit tests for differential-drive kinematics.

Tests cover:
    - Body twist from wheel deltas
    - Forward kinematics on straight and curved paths
    - Inverse kinematics and its lateral-motion rejection
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from ekfslam.models.diff_drive import DiffDrive
from ekfslam.slam.config import RobotGeometry
from ekfslam.slam.types import Pose2, Twist2, WheelState


class TestDiffDriveConstruction(unittest.TestCase):

    def test_half_track(self):
        dd = DiffDrive(wheel_radius=0.033, wheel_separation=0.16)
        self.assertAlmostEqual(dd.half_track, 0.08)
        self.assertEqual(dd.wheel_angles, WheelState())

    def test_from_geometry(self):
        dd = DiffDrive.from_geometry(RobotGeometry(0.05, 0.4), WheelState(1.0, 2.0))
        self.assertEqual(dd.wheel_radius, 0.05)
        self.assertEqual(dd.wheel_angles, WheelState(1.0, 2.0))

    def test_rejects_invalid_geometry(self):
        for r, sep in [(0.0, 0.16), (0.033, -0.16), (np.nan, 0.16), (0.033, np.inf)]:
            with self.assertRaises(ValueError):
                DiffDrive(r, sep)


class TestBodyTwist(unittest.TestCase):

    def setUp(self):
        self.dd = DiffDrive(wheel_radius=0.033, wheel_separation=0.16)

    def test_equal_deltas_have_no_rotation(self):
        twist = self.dd.body_twist(WheelState(2.5, 2.5))
        self.assertEqual(twist.thetadot, 0.0)
        self.assertEqual(twist.ydot, 0.0)
        self.assertAlmostEqual(twist.xdot, 0.033 * 2.5)

    def test_opposite_deltas_rotate_in_place(self):
        twist = self.dd.body_twist(WheelState(-1.0, 1.0))
        self.assertEqual(twist.xdot, 0.0)
        self.assertAlmostEqual(twist.thetadot, 0.033 / 0.08)

    def test_wheel_angle_twist_uses_difference(self):
        twist = self.dd.wheel_angle_twist(WheelState(1.0, 1.0), WheelState(2.0, 3.0))
        expected = self.dd.body_twist(WheelState(1.0, 2.0))
        self.assertEqual(twist, expected)


class TestForwardKinematics(unittest.TestCase):

    def setUp(self):
        self.dd = DiffDrive(wheel_radius=0.033, wheel_separation=0.16)

    def test_straight(self):
        pose = self.dd.forward_kinematics(Pose2(), WheelState(1.0, 1.0))
        assert_allclose(pose.to_array(), [0.033, 0.0, 0.0])
        self.assertEqual(self.dd.wheel_angles, WheelState(1.0, 1.0))

    def test_deltas_relative_to_stored_angles(self):
        self.dd.forward_kinematics(Pose2(), WheelState(1.0, 1.0))
        pose = self.dd.forward_kinematics(Pose2(), WheelState(1.0, 1.0))
        assert_allclose(pose.to_array(), np.zeros(3))

    def test_quarter_circle_lands_on_arc(self):
        wheels = self.dd.inverse_kinematics(Twist2(xdot=np.pi / 2, thetadot=np.pi / 2))
        pose = self.dd.forward_kinematics(Pose2(), wheels)
        assert_allclose(pose.to_array(), [1.0, 1.0, np.pi / 2], atol=1e-12)

    def test_array_pose_accepted(self):
        pose = self.dd.forward_kinematics(np.array([0.0, 0.0, np.pi / 2]), WheelState(1.0, 1.0))
        self.assertIsInstance(pose, Pose2)
        assert_allclose(pose.to_array(), [0.0, 0.033, np.pi / 2], atol=1e-12)

    def test_rotated_start(self):
        pose = self.dd.forward_kinematics(Pose2(theta=np.pi / 2), WheelState(1.0, 1.0))
        assert_allclose(pose.to_array(), [0.0, 0.033, np.pi / 2], atol=1e-12)


class TestInverseKinematics(unittest.TestCase):

    def setUp(self):
        self.dd = DiffDrive(wheel_radius=0.033, wheel_separation=0.16)

    def test_round_trip(self):
        twist = Twist2(xdot=0.1, thetadot=0.5)
        back = self.dd.body_twist(self.dd.inverse_kinematics(twist))
        self.assertAlmostEqual(back.xdot, 0.1)
        self.assertAlmostEqual(back.thetadot, 0.5)

    def test_pure_rotation(self):
        wheels = self.dd.inverse_kinematics(Twist2(thetadot=1.0))
        self.assertAlmostEqual(wheels.left, -wheels.right)
        self.assertAlmostEqual(wheels.right, 0.08 / 0.033)

    def test_lateral_motion_rejected(self):
        with self.assertRaises(ValueError):
            self.dd.inverse_kinematics(Twist2(xdot=1.0, ydot=0.1))


if __name__ == "__main__":
    unittest.main()
