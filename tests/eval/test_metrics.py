"""
Unit tests for evaluation metrics and plots.
"""

import tempfile
import unittest

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
from numpy.testing import assert_allclose

from ekfslam.eval.metrics import (
    compute_map_errors,
    compute_nees,
    compute_pose_errors,
    compute_position_errors,
    compute_position_rmse,
    compute_rmse,
    nees_bounds,
)
from ekfslam.eval.plots import plot_pose_errors, plot_slam_result, save_figure


class TestErrors(unittest.TestCase):

    def test_position_errors(self):
        truth = np.array([[0.0, 0.0], [1.0, 1.0]])
        est = np.array([[0.1, 0.0], [1.0, 0.8]])
        assert_allclose(compute_position_errors(truth, est), [[0.1, 0.0], [0.0, -0.2]])

    def test_shape_mismatch(self):
        with self.assertRaises(ValueError):
            compute_position_errors(np.zeros((3, 2)), np.zeros((2, 2)))

    def test_pose_errors_wrap_heading(self):
        truth = np.array([[0.0, 0.0, np.pi - 0.1]])
        est = np.array([[0.0, 0.0, -np.pi + 0.1]])
        assert_allclose(compute_pose_errors(truth, est), [[0.0, 0.0, 0.2]], atol=1e-12)


class TestRMSE(unittest.TestCase):

    def test_scalar(self):
        self.assertAlmostEqual(compute_rmse(np.array([3.0, -4.0])), np.sqrt(12.5))

    def test_per_axis(self):
        errors = np.array([[1.0, 0.0], [1.0, 2.0]])
        assert_allclose(compute_rmse(errors, axis=0), [1.0, np.sqrt(2.0)])

    def test_position_rmse(self):
        truth = np.zeros((2, 3))
        est = np.array([[3.0, 4.0, 0.5], [0.0, 0.0, 0.0]])
        self.assertAlmostEqual(compute_position_rmse(truth, est), np.sqrt(12.5))


class TestNEES(unittest.TestCase):

    def test_identity_covariance(self):
        truth = np.zeros((2, 3))
        est = np.array([[1.0, 2.0, 2.0], [0.0, 0.0, 1.0]])
        cov = np.stack([np.eye(3), 4.0 * np.eye(3)])
        assert_allclose(compute_nees(truth, est, cov), [9.0, 0.25])

    def test_singular_covariance(self):
        nees = compute_nees(np.zeros((1, 2)), np.ones((1, 2)), np.zeros((1, 2, 2)))
        self.assertTrue(np.isnan(nees[0]))

    def test_covariance_shape(self):
        with self.assertRaises(ValueError):
            compute_nees(np.zeros((2, 3)), np.zeros((2, 3)), np.zeros((2, 2, 2)))

    def test_bounds(self):
        lower, upper = nees_bounds(2)
        self.assertAlmostEqual(lower, 0.0506, places=3)
        self.assertAlmostEqual(upper, 7.3778, places=3)

    def test_bounds_tighten_with_runs(self):
        lower_1, upper_1 = nees_bounds(3, n_runs=1)
        lower_50, upper_50 = nees_bounds(3, n_runs=50)
        self.assertLess(lower_1, lower_50)
        self.assertGreater(upper_1, upper_50)
        self.assertLess(lower_50, 3.0)
        self.assertGreater(upper_50, 3.0)

    def test_bounds_confidence_validated(self):
        with self.assertRaises(ValueError):
            nees_bounds(2, confidence=1.5)


class TestMapErrors(unittest.TestCase):

    def test_by_identity(self):
        truth = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]])
        errors = compute_map_errors({2: np.array([2.0, 0.5]), 0: np.array([0.3, 0.4])}, truth)
        self.assertEqual(set(errors), {0, 2})
        self.assertAlmostEqual(errors[0], 0.5)
        self.assertAlmostEqual(errors[2], 0.5)

    def test_unknown_identity(self):
        with self.assertRaises(KeyError):
            compute_map_errors({5: np.zeros(2)}, np.zeros((2, 2)))


class TestPlots(unittest.TestCase):

    def test_plot_and_save(self):
        truth = np.column_stack([np.linspace(0, 1, 10), np.zeros(10)])
        fig = plot_slam_result(
            truth,
            {"Odometry": truth + 0.05, "EKF-SLAM": truth + 0.01},
            landmarks_true=np.array([[0.5, 0.5]]),
            landmark_estimates={3: np.array([0.52, 0.49])},
            landmark_covariances={3: np.diag([1e-3, 4e-3])},
        )
        ax = fig.axes[0]
        self.assertEqual(len(ax.patches), 1)
        self.assertEqual([t.get_text() for t in ax.texts], ["3"])
        with tempfile.TemporaryDirectory() as tmp:
            paths = save_figure(fig, tmp, "map", formats=("png", "svg"))
            self.assertEqual(len(paths), 2)
            self.assertTrue(all(p.exists() for p in paths))
        plt.close(fig)

    def test_pose_error_plot(self):
        fig = plot_pose_errors({"EKF-SLAM": np.ones((5, 3))}, dt=0.1)
        self.assertEqual(len(fig.axes), 2)
        self.assertEqual(len(fig.axes[0].lines), 1)
        np.testing.assert_allclose(fig.axes[0].lines[0].get_ydata(), np.sqrt(2.0))
        np.testing.assert_allclose(fig.axes[1].lines[0].get_xdata(), np.arange(5) * 0.1)
        plt.close(fig)


if __name__ == "__main__":
    unittest.main()
