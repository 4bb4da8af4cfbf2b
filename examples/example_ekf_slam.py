"""EKF-SLAM on a simulated differential-drive robot.

This example runs the full pipeline:
    1. Simulate a robot driving a circle among cylindrical obstacles
       (noisy wheel speeds, wheel slip, range-limited landmark sensor)
    2. Feed every wheel-angle sample to the odometry + EKF-SLAM driver
    3. Feed every sensor batch to the EKF-SLAM update
    4. Compare dead reckoning and EKF-SLAM against the ground truth
    5. Visualize trajectories and the landmark map

Can run with:
    - Inline simulation (default): python -m examples.example_ekf_slam
    - Pre-generated dataset: python -m examples.example_ekf_slam --data data/sim/ekf_slam_circle

The last line starting with [SLAM_SUMMARY] is a JSON object with the run's
metrics, intended for scripts and tests.
"""

import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import numpy as np
from tqdm import tqdm

from ekfslam.estimators import EKFSlam, OdometrySlam
from ekfslam.eval import (
    compute_map_errors,
    compute_pose_errors,
    compute_position_rmse,
    plot_pose_errors,
    plot_slam_result,
    save_figure,
)
from ekfslam.models import DiffDrive
from ekfslam.sim import SimulationLog, TurtleSim, circle_twist, simulate
from ekfslam.slam import (
    EKFSlamConfig,
    LandmarkMeasurement,
    Pose2,
    RobotGeometry,
    SimConfig,
    WheelState,
    load_config,
)

DEFAULT_OBSTACLES = (
    (0.0, 0.5),
    (0.8, 0.5),
    (-0.8, 0.5),
    (0.0, 1.3),
    (0.0, -0.3),
)


def default_configs(seed: int = 42) -> Dict:
    """Robot, filter and simulator configuration of the inline scenario."""
    return {
        "robot": RobotGeometry(),
        "ekf": EKFSlamConfig(
            process_noise=(1e-5, 1e-5, 1e-5),
            measurement_noise=(1e-3, 1e-3),
        ),
        "sim": SimConfig(
            obstacles=DEFAULT_OBSTACLES,
            input_noise=0.05,
            slip_fraction=0.1,
            sensor_noise=0.01,
            seed=seed,
        ),
    }


def load_slam_dataset(data_dir: str) -> Dict:
    """Load an EKF-SLAM dataset written by scripts/generate_ekf_slam_dataset.py.

    Args:
        data_dir: Path to dataset directory

    Returns:
        Dictionary with the configuration objects and a SimulationLog
    """
    path = Path(data_dir)

    configs = load_config(path / "config.json")
    true_poses = np.loadtxt(path / "ground_truth_poses.txt", ndmin=2)
    wheel_angles = np.loadtxt(path / "wheel_angles.txt", ndmin=2)
    landmarks = np.loadtxt(path / "landmarks.txt", ndmin=2)
    rows = np.loadtxt(path / "observations.txt").reshape(-1, 4)

    observations: Dict[int, List[LandmarkMeasurement]] = {}
    for step, marker_id, r, phi in rows:
        observations.setdefault(int(step), []).append(
            LandmarkMeasurement(r=r, phi=phi, marker_id=int(marker_id))
        )

    configs["log"] = SimulationLog(
        true_poses=true_poses,
        wheel_angles=wheel_angles,
        observations=observations,
        landmarks=landmarks,
    )
    return configs


def run_ekf_slam(log: SimulationLog, geometry: RobotGeometry, ekf_config: EKFSlamConfig) -> Dict:
    """Replay a simulation log through the odometry + EKF-SLAM driver.

    Returns:
        Dictionary with odometry/SLAM trajectories [x, y, θ], the final
        landmark estimates and the number of skipped observations
    """
    driver = OdometrySlam(
        DiffDrive.from_geometry(geometry),
        EKFSlam(ekf_config),
        initial_pose=Pose2.from_array(log.true_poses[0]),
    )
    driver.diff_drive.wheel_angles = WheelState(*log.wheel_angles[0])

    odom_poses = [driver.odom_pose.to_array()]
    slam_poses = [driver.slam_pose.to_array()]
    n_skipped = 0

    for k in tqdm(range(1, log.n_steps + 1), desc="EKF-SLAM", unit="step"):
        driver.on_wheel_angles(WheelState(*log.wheel_angles[k]))
        if k in log.observations:
            n_skipped += driver.on_observations(log.observations[k]).n_skipped
        odom_poses.append(driver.odom_pose.to_array())
        slam_poses.append(driver.slam_pose.to_array())

    return {
        "odom_poses": np.array(odom_poses),
        "slam_poses": np.array(slam_poses),
        "landmarks": driver.estimator.landmarks(),
        "landmark_covariances": {
            marker_id: driver.estimator.landmark_covariance(marker_id)
            for marker_id in driver.estimator.landmark_ids
        },
        "n_skipped": n_skipped,
        "map_to_odom": driver.map_to_odom(),
    }


def summarize(mode: str, log: SimulationLog, result: Dict) -> Dict:
    """Compute the metrics reported in the [SLAM_SUMMARY] line."""
    truth = log.true_poses
    odom_rmse = compute_position_rmse(truth, result["odom_poses"])
    slam_rmse = compute_position_rmse(truth, result["slam_poses"])
    map_errors = compute_map_errors(result["landmarks"], log.landmarks)
    map_rmse = (
        float(np.sqrt(np.mean(np.square(list(map_errors.values())))))
        if map_errors else float("nan")
    )

    return {
        "mode": mode,
        "n_steps": int(log.n_steps),
        "n_sensor_batches": len(log.observations),
        "n_landmarks": len(result["landmarks"]),
        "n_skipped": int(result["n_skipped"]),
        "rmse": {"odom": odom_rmse, "slam": slam_rmse},
        "final_error": {
            "odom": float(np.linalg.norm(result["odom_poses"][-1, :2] - truth[-1, :2])),
            "slam": float(np.linalg.norm(result["slam_poses"][-1, :2] - truth[-1, :2])),
        },
        "map_rmse": map_rmse,
    }


def visualize(log: SimulationLog, result: Dict, dt: float, out_dir: Path) -> None:
    """Save the trajectory/map figure and the error-over-time figure."""
    fig = plot_slam_result(
        log.true_poses,
        {
            "Odometry": result["odom_poses"],
            "EKF-SLAM": result["slam_poses"],
        },
        landmarks_true=log.landmarks,
        landmark_estimates=result["landmarks"],
        landmark_covariances=result["landmark_covariances"],
    )
    for path in save_figure(fig, out_dir, "ekf_slam_map", formats=("png",)):
        print(f"   Saved figure: {path}")
    plt.close(fig)

    fig = plot_pose_errors(
        {
            "Odometry": compute_pose_errors(log.true_poses, result["odom_poses"]),
            "EKF-SLAM": compute_pose_errors(log.true_poses, result["slam_poses"]),
        },
        dt=dt,
    )
    for path in save_figure(fig, out_dir, "ekf_slam_errors", formats=("png",)):
        print(f"   Saved figure: {path}")
    plt.close(fig)


def report(summary: Dict) -> None:
    print()
    print("Results:")
    print(f"   Landmarks mapped: {summary['n_landmarks']}")
    print(f"   Observations skipped: {summary['n_skipped']}")
    print(f"   Odometry RMSE: {summary['rmse']['odom']:.4f} m")
    print(f"   EKF-SLAM RMSE: {summary['rmse']['slam']:.4f} m")
    print(f"   Final error (odom / SLAM): "
          f"{summary['final_error']['odom']:.4f} / {summary['final_error']['slam']:.4f} m")
    print(f"   Map RMSE: {summary['map_rmse']:.4f} m")


def run(
    data_dir: Optional[str] = None,
    duration: float = 40.0,
    seed: int = 42,
    plot: bool = True,
    out_dir: str = "examples/figs",
) -> Dict:
    """Run the example end to end and return the summary dictionary."""
    print("=" * 70)
    print("EKF-SLAM EXAMPLE")

    if data_dir is not None:
        print(f"Using dataset: {data_dir}")
        print("=" * 70)
        data = load_slam_dataset(data_dir)
        log = data["log"]
        mode = "dataset"
    else:
        print("Using inline simulation")
        print("=" * 70)
        data = default_configs(seed)
        sim = TurtleSim(data["robot"], data["sim"])
        twist = circle_twist(velocity=0.1, radius=0.5)
        n_steps = int(round(duration * data["sim"].rate))
        # A fresh command every step redraws the input noise and slip.
        log = simulate(sim, lambda k: twist, n_steps)
        mode = "inline"

    print(f"\n   Steps: {log.n_steps}, sensor batches: {len(log.observations)}, "
          f"landmarks: {len(log.landmarks)}")

    result = run_ekf_slam(log, data["robot"], data["ekf"])
    summary = summarize(mode, log, result)
    report(summary)

    if plot:
        print("\nVisualizing results...")
        visualize(log, result, data["sim"].dt, Path(out_dir))

    print()
    print("=" * 70)
    print("EKF-SLAM COMPLETE")
    print("=" * 70)
    print(f"[SLAM_SUMMARY] {json.dumps(summary)}")
    return summary


def main():
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        description="EKF-SLAM on a simulated differential-drive robot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with inline simulation (default)
  python -m examples.example_ekf_slam

  # Run with a pre-generated dataset
  python -m examples.example_ekf_slam --data data/sim/ekf_slam_circle

  # Headless run
  python -m examples.example_ekf_slam --no-plot
        """,
    )
    parser.add_argument("--data", type=str, default=None, help="Dataset directory")
    parser.add_argument(
        "--duration", type=float, default=40.0, help="Inline simulation length in seconds (default: 40)"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--no-plot", action="store_true", help="Skip figures")
    parser.add_argument(
        "--out", type=str, default="examples/figs", help="Figure directory (default: examples/figs)"
    )

    args = parser.parse_args()

    if args.data and not Path(args.data).exists():
        print(f"Error: Dataset not found at '{args.data}'")
        return

    run(
        data_dir=args.data,
        duration=args.duration,
        seed=args.seed,
        plot=not args.no_plot,
        out_dir=args.out,
    )


if __name__ == "__main__":
    main()
