"""Smoke tests for the EKF-SLAM example and dataset generator.

Verifies that the example runs in inline and dataset modes and that the
machine-readable [SLAM_SUMMARY] JSON line is well formed.
Uses Agg backend to avoid display requirements.
"""

import json
import os
import re
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Any, Dict, Optional


def parse_slam_summary(stdout: str) -> Optional[Dict[str, Any]]:
    """Parse the [SLAM_SUMMARY] JSON line from script output.

    Raises:
        ValueError: If the summary line is malformed.
    """
    match = re.search(r'\[SLAM_SUMMARY\]\s*(\{.*\})', stdout)
    if not match:
        return None

    try:
        return json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed SLAM_SUMMARY JSON: {e}")


class TestExampleEKFSlamRuns(unittest.TestCase):

    def setUp(self):
        self.python_exe = sys.executable
        self.workspace_root = Path(__file__).parent.parent.parent
        self.env = os.environ.copy()
        self.env.update({
            "MPLBACKEND": "Agg",
            "PYTHONPATH": str(self.workspace_root),
        })

    def _run(self, args):
        return subprocess.run(
            [self.python_exe] + args,
            cwd=self.workspace_root,
            capture_output=True,
            text=True,
            timeout=120,
            env=self.env,
        )

    def test_inline_mode(self):
        result = self._run(["-m", "examples.example_ekf_slam", "--no-plot", "--duration", "10"])
        self.assertEqual(result.returncode, 0, f"Script failed with stderr:\n{result.stderr}")
        self.assertIn("EKF-SLAM COMPLETE", result.stdout)

        summary = parse_slam_summary(result.stdout)
        self.assertIsNotNone(summary, "Missing [SLAM_SUMMARY] JSON line in output")
        self.assertEqual(summary["mode"], "inline")
        self.assertEqual(summary["n_steps"], 1000)
        self.assertGreaterEqual(summary["n_landmarks"], 1)
        self.assertEqual(summary["n_sensor_batches"], 50)
        for key in ("odom", "slam"):
            self.assertGreaterEqual(summary["rmse"][key], 0.0)
            self.assertLess(summary["rmse"][key], 1.0)

    def test_dataset_mode_and_figures(self):
        with tempfile.TemporaryDirectory() as tmp:
            data_dir = Path(tmp) / "dataset"
            fig_dir = Path(tmp) / "figs"

            gen = self._run([
                "scripts/generate_ekf_slam_dataset.py",
                "--output", str(data_dir),
                "--duration", "5",
                "--n-obstacles", "4",
            ])
            self.assertEqual(gen.returncode, 0, f"Generator failed:\n{gen.stderr}")
            for name in ("config.json", "ground_truth_poses.txt", "wheel_angles.txt",
                         "observations.txt", "landmarks.txt"):
                self.assertTrue((data_dir / name).exists(), f"Missing {name}")

            result = self._run([
                "-m", "examples.example_ekf_slam",
                "--data", str(data_dir),
                "--out", str(fig_dir),
            ])
            self.assertEqual(result.returncode, 0, f"Script failed with stderr:\n{result.stderr}")

            summary = parse_slam_summary(result.stdout)
            self.assertIsNotNone(summary)
            self.assertEqual(summary["mode"], "dataset")
            self.assertEqual(summary["n_steps"], 500)
            self.assertIn("Saved figure", result.stdout)
            self.assertTrue((fig_dir / "ekf_slam_map.png").exists())


if __name__ == "__main__":
    unittest.main()
