"""
Unit tests for the differential-drive simulator.

Tests cover:
    - Command conversion, clipping and input noise
    - Ground truth without noise
    - Collision handling
    - Fake sensor geometry, range limit and cadence
    - Logging helper and shared random generator
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from ekfslam.sim import rng as sim_rng
from ekfslam.sim.turtle_sim import (
    TurtleSim,
    circle_twist,
    encoder_ticks_to_angles,
    simulate,
)
from ekfslam.slam.config import RobotGeometry, SimConfig
from ekfslam.slam.types import Pose2, Twist2, WheelState


class TestHelpers(unittest.TestCase):

    def test_circle_twist(self):
        twist = circle_twist(0.2, 0.5)
        self.assertEqual(twist.xdot, 0.2)
        self.assertAlmostEqual(twist.thetadot, 0.4)
        self.assertEqual(twist.ydot, 0.0)

    def test_circle_twist_zero_radius(self):
        with self.assertRaises(ValueError):
            circle_twist(0.2, 0.0)

    def test_encoder_ticks_to_angles(self):
        angles = encoder_ticks_to_angles(WheelState(4096, -2048), 4096 / (2 * np.pi))
        self.assertAlmostEqual(angles.left, 2 * np.pi)
        self.assertAlmostEqual(angles.right, -np.pi)


class TestCommands(unittest.TestCase):

    def test_clipping(self):
        sim = TurtleSim(config=SimConfig(seed=0))
        sim.command_wheels(1000, -1000)
        sim.step()
        expected = 265 * 0.024 * 0.01
        assert_allclose(sim.true_wheel_angles.to_array(), [expected, -expected])

    def test_noise_only_on_nonzero_commands(self):
        sim = TurtleSim(config=SimConfig(input_noise=0.5, seed=1))
        sim.command_wheels(0, 100)
        for _ in range(10):
            sim.step()
        self.assertEqual(sim.wheel_angles.left, 0.0)
        self.assertNotAlmostEqual(sim.wheel_angles.right, sim.true_wheel_angles.right, places=6)

    def test_noise_free_reports_truth(self):
        sim = TurtleSim(config=SimConfig(seed=2))
        sim.command_wheels(50, 80)
        for _ in range(25):
            sim.step()
        assert_allclose(sim.wheel_angles.to_array(), sim.true_wheel_angles.to_array())

    def test_slip_scales_reported_angles(self):
        sim = TurtleSim(config=SimConfig(slip_fraction=0.2, seed=3))
        sim.command_wheels(100, 100)
        sim.step()
        ratio = sim.wheel_angles.to_array() / sim.true_wheel_angles.to_array()
        self.assertTrue(np.all(ratio >= 0.8))
        self.assertTrue(np.all(ratio <= 1.2))

    def test_seeded_runs_repeat(self):
        config = SimConfig(input_noise=0.1, slip_fraction=0.1, seed=11)
        runs = []
        for _ in range(2):
            sim = TurtleSim(config=config)
            for _ in range(20):
                sim.command_wheels(100, 120)
                sim.step()
            runs.append(sim.wheel_angles.to_array())
        assert_allclose(runs[0], runs[1])


class TestGroundTruth(unittest.TestCase):

    def test_straight_drive(self):
        sim = TurtleSim(config=SimConfig(seed=0))
        sim.command_twist(Twist2(xdot=0.1))
        for _ in range(100):
            sim.step()
        pose = sim.true_pose
        self.assertAlmostEqual(pose.x, 0.1, delta=1e-3)
        self.assertEqual(pose.y, 0.0)
        self.assertEqual(pose.theta, 0.0)

    def test_truth_ignores_input_noise(self):
        clean = TurtleSim(config=SimConfig(seed=0))
        noisy = TurtleSim(config=SimConfig(input_noise=0.3, slip_fraction=0.2, seed=0))
        for sim in (clean, noisy):
            sim.command_twist(Twist2(xdot=0.1, thetadot=0.3))
            for _ in range(50):
                sim.step()
        assert_allclose(noisy.true_pose.to_array(), clean.true_pose.to_array())

    def test_encoder_ticks(self):
        sim = TurtleSim(config=SimConfig(seed=0))
        sim.command_wheels(100, 100)
        for _ in range(100):
            sim.step()
        ticks = sim.encoder_ticks
        self.assertIsInstance(ticks.left, int)
        self.assertEqual(ticks.left, int(sim.wheel_angles.left * sim.config.encoder_ticks_per_rad))

    def test_reset_and_teleport(self):
        sim = TurtleSim(config=SimConfig(initial_pose=(1.0, 2.0, 0.0), seed=0))
        sim.teleport(Pose2(5.0, 5.0, 1.0))
        assert_allclose(sim.true_pose.to_array(), [5.0, 5.0, 1.0])
        sim.command_wheels(100, 100)
        sim.step()
        sim.reset()
        assert_allclose(sim.true_pose.to_array(), [1.0, 2.0, 0.0])
        self.assertEqual(sim.wheel_angles, WheelState())
        self.assertEqual(sim.step_count, 0)


class TestCollisions(unittest.TestCase):

    def test_robot_stops_at_obstacle(self):
        config = SimConfig(obstacles=((0.3, 0.0),), seed=0)
        sim = TurtleSim(config=config)
        sim.command_twist(Twist2(xdot=0.2))
        contact = config.obstacle_radius + config.collision_radius
        for _ in range(300):
            sim.step()
            pose = sim.true_pose
            self.assertGreaterEqual(np.hypot(pose.x - 0.3, pose.y), contact - 1e-9)
        self.assertAlmostEqual(sim.true_pose.x, 0.3 - contact, places=6)


class TestSensor(unittest.TestCase):

    def test_relative_geometry(self):
        sim = TurtleSim(config=SimConfig(obstacles=((0.5, 0.0), (0.0, 2.0)), seed=0))
        observations = sim.sense()
        self.assertEqual(len(observations), 1)
        z = observations[0]
        self.assertEqual(z.marker_id, 0)
        self.assertAlmostEqual(z.r, 0.5)
        self.assertAlmostEqual(z.phi, 0.0)

        sim.teleport(Pose2(0.0, 0.0, np.pi / 2))
        z = sim.sense()[0]
        self.assertAlmostEqual(z.r, 0.5)
        self.assertAlmostEqual(z.phi, -np.pi / 2)

    def test_identity_is_obstacle_index(self):
        obstacles = ((0.5, 0.0), (0.0, 0.5), (-0.5, 0.0))
        sim = TurtleSim(config=SimConfig(obstacles=obstacles, seed=0))
        self.assertEqual([z.marker_id for z in sim.sense()], [0, 1, 2])

    def test_no_obstacles(self):
        self.assertEqual(TurtleSim(config=SimConfig(seed=0)).sense(), [])

    def test_sensor_cadence(self):
        sim = TurtleSim(config=SimConfig(rate=100, sensor_rate=5.0, seed=0))
        sensor_steps = []
        for _ in range(60):
            sim.step()
            if sim.is_sensor_step():
                sensor_steps.append(sim.step_count)
        self.assertEqual(sensor_steps, [20, 40, 60])


class TestSimulate(unittest.TestCase):

    def test_log_shapes(self):
        sim = TurtleSim(RobotGeometry(), SimConfig(obstacles=((0.5, 0.2),), seed=0))
        log = simulate(sim, Twist2(xdot=0.1), 50)
        self.assertEqual(log.n_steps, 50)
        self.assertEqual(log.true_poses.shape, (51, 3))
        self.assertEqual(log.wheel_angles.shape, (51, 2))
        self.assertEqual(sorted(log.observations), [20, 40])
        assert_allclose(log.landmarks, [[0.5, 0.2]])

    def test_callable_command(self):
        sim = TurtleSim(config=SimConfig(seed=0))
        log = simulate(sim, lambda k: Twist2(xdot=0.1) if k < 50 else Twist2(), 100)
        assert_allclose(log.true_poses[50], log.true_poses[100])


class TestSharedRandom(unittest.TestCase):

    def test_lazily_created_and_shared(self):
        generator = sim_rng.seed_random(5)
        self.assertIs(sim_rng.get_random(), generator)
        self.assertIs(TurtleSim().rng, generator)

    def test_seed_random_repeats(self):
        a = sim_rng.seed_random(9).normal(size=3)
        b = sim_rng.seed_random(9).normal(size=3)
        assert_allclose(a, b)


if __name__ == "__main__":
    unittest.main()
