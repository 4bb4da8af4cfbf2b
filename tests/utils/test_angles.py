"""
Unit tests for angle normalization.

Tests cover:
    - Range (-π, π] with -π folded onto +π
    - Exact idempotence
    - Shortest signed difference across the ±π seam
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from ekfslam.utils.angles import (
    almost_equal,
    angle_diff,
    normalize_angle,
    normalize_angle_array,
)


class TestNormalizeAngle(unittest.TestCase):
    """Scalar normalization."""

    def test_values_inside_range_unchanged(self):
        for theta in [0.0, 0.5, -0.5, 3.0, -3.0, np.pi]:
            self.assertEqual(normalize_angle(theta), theta)

    def test_minus_pi_maps_to_pi(self):
        self.assertEqual(normalize_angle(-np.pi), np.pi)

    def test_wraps_large_angles(self):
        self.assertAlmostEqual(normalize_angle(3 * np.pi / 2), -np.pi / 2)
        self.assertAlmostEqual(normalize_angle(-3 * np.pi / 2), np.pi / 2)
        self.assertAlmostEqual(normalize_angle(2 * np.pi), 0.0)
        self.assertAlmostEqual(normalize_angle(5 * np.pi / 2), np.pi / 2)

    def test_result_in_half_open_range(self):
        for theta in np.linspace(-50.0, 50.0, 2001):
            wrapped = normalize_angle(theta)
            self.assertGreater(wrapped, -np.pi)
            self.assertLessEqual(wrapped, np.pi)

    def test_idempotent_bit_for_bit(self):
        for theta in np.linspace(-50.0, 50.0, 2001):
            once = normalize_angle(theta)
            self.assertEqual(normalize_angle(once), once)

    def test_preserves_direction(self):
        for theta in np.linspace(-20.0, 20.0, 101):
            wrapped = normalize_angle(theta)
            self.assertAlmostEqual(np.cos(wrapped), np.cos(theta))
            self.assertAlmostEqual(np.sin(wrapped), np.sin(theta))


class TestNormalizeAngleArray(unittest.TestCase):
    """Vectorized normalization matches the scalar version."""

    def test_matches_scalar(self):
        angles = np.array([-np.pi, np.pi, 3 * np.pi / 2, -10.0, 0.25, 100.0])
        expected = [normalize_angle(a) for a in angles]
        assert_allclose(normalize_angle_array(angles), expected)

    def test_minus_pi_maps_to_pi(self):
        self.assertEqual(normalize_angle_array(np.array([-np.pi]))[0], np.pi)


class TestAngleDiff(unittest.TestCase):
    """Bearing innovation."""

    def test_across_seam(self):
        measured = np.deg2rad(179.0)
        predicted = np.deg2rad(-179.0)
        self.assertAlmostEqual(angle_diff(measured, predicted), np.deg2rad(-2.0))
        self.assertAlmostEqual(angle_diff(predicted, measured), np.deg2rad(2.0))

    def test_array_inputs(self):
        result = angle_diff(np.array([0.1, np.pi - 0.05]), np.array([0.0, -np.pi + 0.05]))
        assert_allclose(result, [0.1, -0.1], atol=1e-12)


class TestAlmostEqual(unittest.TestCase):

    def test_tolerance(self):
        self.assertTrue(almost_equal(0.0, 1e-13))
        self.assertFalse(almost_equal(0.0, 1e-3))
        self.assertTrue(almost_equal(1.0, 1.0005, epsilon=1e-3))


if __name__ == "__main__":
    unittest.main()
