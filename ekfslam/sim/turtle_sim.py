"""
Ground-truth simulator of a differential-drive robot among cylindrical obstacles.

The simulator generates the inputs the estimator consumes and the truth it is
scored against:
    - Integer motor commands are converted to wheel speeds (rad/s)
    - Gaussian input noise is added to nonzero commands
    - Wheel slip, drawn uniformly from [-slip_fraction, slip_fraction] per
      command, scales the reported wheel rotation
    - The true pose follows the noise-free wheel speeds through forward
      kinematics and is pushed out of any obstacle it collides with
    - A range-limited fake sensor reports noisy robot-frame obstacle
      positions as range-bearing observations, using the obstacle index as
      the landmark identity

Wheel angles reported by wheel_angles/encoder_ticks include noise and slip,
so dead reckoning from them drifts away from true_pose.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

import numpy as np

from ekfslam.models.diff_drive import DiffDrive
from ekfslam.slam.config import RobotGeometry, SimConfig
from ekfslam.slam.se2 import se2_inverse
from ekfslam.slam.types import LandmarkMeasurement, Pose2, Twist2, WheelState
from ekfslam.sim.rng import get_random


def circle_twist(velocity: float, radius: float) -> Twist2:
    """
    Twist that drives the robot around a circle.

    Args:
        velocity: Forward speed (m/s); negative drives the circle backwards.
        radius: Circle radius (m); positive turns left, negative turns right.

    Raises:
        ValueError: If radius is zero.
    """
    if radius == 0.0:
        raise ValueError("radius must be nonzero")
    return Twist2(xdot=velocity, ydot=0.0, thetadot=velocity / radius)


def encoder_ticks_to_angles(ticks: WheelState, ticks_per_rad: float) -> WheelState:
    """Convert encoder ticks to wheel angles (rad)."""
    return WheelState(ticks.left / ticks_per_rad, ticks.right / ticks_per_rad)


class TurtleSim:
    """
    Simulated robot, obstacles and fake landmark sensor.

    Attributes:
        geometry: Robot geometric constants.
        config: Simulator parameters.
        rng: Random generator used for noise and slip.
        step_count: Number of simulation steps taken since the last reset.

    Example:
        >>> sim = TurtleSim(config=SimConfig(obstacles=((0.5, 0.0),)))
        >>> sim.command_twist(Twist2(xdot=0.1))
        >>> for _ in range(100):
        ...     _ = sim.step()
        >>> [z.marker_id for z in sim.sense()]
        [0]
    """

    def __init__(
        self,
        geometry: Optional[RobotGeometry] = None,
        config: Optional[SimConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.geometry = geometry if geometry is not None else RobotGeometry()
        self.config = config if config is not None else SimConfig()
        if rng is not None:
            self.rng = rng
        elif self.config.seed is not None:
            self.rng = np.random.default_rng(self.config.seed)
        else:
            self.rng = get_random()

        self._diff_drive = DiffDrive.from_geometry(self.geometry)
        self._obstacles = np.array(self.config.obstacles, dtype=float).reshape(-1, 2)
        self.reset()

    def reset(self) -> None:
        """Return to the initial pose with zeroed wheels and commands."""
        self._true_pose = Pose2(*self.config.initial_pose)
        self._true_wheel_angles = WheelState()
        self._slipped_wheel_angles = WheelState()
        self._true_speeds = WheelState()
        self._noisy_speeds = WheelState()
        self._slip = (0.0, 0.0)
        self._diff_drive.wheel_angles = WheelState()
        self.step_count = 0

    def teleport(self, pose: Union[Pose2, np.ndarray]) -> None:
        """Place the robot at a pose without touching the wheels."""
        self._true_pose = pose if isinstance(pose, Pose2) else Pose2.from_array(pose)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def command_wheels(self, left_cmd: int, right_cmd: int) -> None:
        """
        Apply integer motor commands.

        Commands are clipped to ±motor_cmd_max. Input noise is drawn only for
        nonzero commands; slip is drawn per command when enabled.
        """
        cfg = self.config
        left_cmd = int(np.clip(left_cmd, -cfg.motor_cmd_max, cfg.motor_cmd_max))
        right_cmd = int(np.clip(right_cmd, -cfg.motor_cmd_max, cfg.motor_cmd_max))

        self._true_speeds = WheelState(
            left_cmd * cfg.motor_cmd_per_rad_sec, right_cmd * cfg.motor_cmd_per_rad_sec
        )

        left_noisy = self._true_speeds.left
        right_noisy = self._true_speeds.right
        if cfg.input_noise > 0.0:
            if left_cmd != 0:
                left_noisy += self.rng.normal(0.0, cfg.input_noise)
            if right_cmd != 0:
                right_noisy += self.rng.normal(0.0, cfg.input_noise)
        self._noisy_speeds = WheelState(left_noisy, right_noisy)

        if cfg.slip_fraction > 0.0:
            self._slip = (
                self.rng.uniform(-cfg.slip_fraction, cfg.slip_fraction),
                self.rng.uniform(-cfg.slip_fraction, cfg.slip_fraction),
            )

    def command_twist(self, twist: Twist2) -> None:
        """
        Command a body twist (per second) through inverse kinematics.

        The wheel speeds are rounded to the nearest motor command.
        """
        speeds = self._diff_drive.inverse_kinematics(twist)
        per_cmd = self.config.motor_cmd_per_rad_sec
        self.command_wheels(int(round(speeds.left / per_cmd)), int(round(speeds.right / per_cmd)))

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def step(self) -> WheelState:
        """
        Advance the simulation by one time step.

        Returns:
            Reported (noisy, slipping) wheel angles after the step.
        """
        dt = self.config.dt

        self._true_wheel_angles = self._true_wheel_angles + self._true_speeds * dt
        self._slipped_wheel_angles = WheelState(
            self._slipped_wheel_angles.left + self._noisy_speeds.left * (1.0 + self._slip[0]) * dt,
            self._slipped_wheel_angles.right + self._noisy_speeds.right * (1.0 + self._slip[1]) * dt,
        )

        self._true_pose = self._diff_drive.forward_kinematics(self._true_pose, self._true_wheel_angles)
        self._resolve_collisions()

        self.step_count += 1
        return self.wheel_angles

    def _resolve_collisions(self) -> None:
        # Robot and obstacle are circles; on contact the robot is placed on the
        # tangent circle along the centre-to-centre line.
        contact = self.config.obstacle_radius + self.config.collision_radius
        for ox, oy in self._obstacles:
            dx = self._true_pose.x - ox
            dy = self._true_pose.y - oy
            if np.hypot(dx, dy) <= contact:
                angle = np.arctan2(dy, dx)
                self._true_pose = Pose2(
                    x=ox + np.cos(angle) * contact,
                    y=oy + np.sin(angle) * contact,
                    theta=self._true_pose.theta,
                )

    def is_sensor_step(self) -> bool:
        """True on steps where the fake sensor publishes."""
        return self.step_count % self.config.steps_per_sensor == 0

    def sense(self) -> List[LandmarkMeasurement]:
        """
        Observe the obstacles within max_range.

        Returns:
            One range-bearing observation per visible obstacle, identity equal
            to the obstacle index.
        """
        if len(self._obstacles) == 0:
            return []

        inv = se2_inverse(self._true_pose)
        c, s = np.cos(inv[2]), np.sin(inv[2])
        rel = self._obstacles @ np.array([[c, s], [-s, c]]) + inv[:2]

        observations = []
        for marker_id, (x, y) in enumerate(rel):
            if np.hypot(x, y) > self.config.max_range:
                continue
            if self.config.sensor_noise > 0.0:
                x += self.rng.normal(0.0, self.config.sensor_noise)
                y += self.rng.normal(0.0, self.config.sensor_noise)
            observations.append(LandmarkMeasurement.from_cartesian(x, y, marker_id))
        return observations

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def true_pose(self) -> Pose2:
        return Pose2(self._true_pose.x, self._true_pose.y, self._true_pose.theta)

    @property
    def wheel_angles(self) -> WheelState:
        """Reported wheel angles (with noise and slip)."""
        return self._slipped_wheel_angles

    @property
    def true_wheel_angles(self) -> WheelState:
        return self._true_wheel_angles

    @property
    def encoder_ticks(self) -> WheelState:
        """Reported wheel angles as integer encoder ticks."""
        k = self.config.encoder_ticks_per_rad
        return WheelState(
            int(self._slipped_wheel_angles.left * k),
            int(self._slipped_wheel_angles.right * k),
        )

    @property
    def landmarks(self) -> np.ndarray:
        """True obstacle (landmark) positions, shape (N, 2)."""
        return self._obstacles.copy()


@dataclass
class SimulationLog:
    """
    Record of a simulated run.

    Attributes:
        true_poses: Ground-truth poses [x, y, θ] per step, shape (T+1, 3).
        wheel_angles: Reported wheel angles [left, right] per step, shape (T+1, 2).
        observations: Sensor batches keyed by the step they were taken at.
        landmarks: True landmark positions, shape (N, 2).
    """

    true_poses: np.ndarray
    wheel_angles: np.ndarray
    observations: Dict[int, List[LandmarkMeasurement]] = field(default_factory=dict)
    landmarks: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))

    @property
    def n_steps(self) -> int:
        return len(self.true_poses) - 1


def simulate(
    sim: TurtleSim,
    command: Union[Twist2, Callable[[int], Twist2]],
    n_steps: int,
) -> SimulationLog:
    """
    Drive a simulator and record truth, wheel angles and sensor batches.

    Args:
        sim: Simulator (used from its current state).
        command: Constant twist, or a function step -> twist evaluated before
                 every step.
        n_steps: Number of simulation steps.

    Returns:
        SimulationLog of the run.
    """
    poses = [sim.true_pose.to_array()]
    angles = [sim.wheel_angles.to_array()]
    observations: Dict[int, List[LandmarkMeasurement]] = {}

    if isinstance(command, Twist2):
        sim.command_twist(command)

    for k in range(n_steps):
        if not isinstance(command, Twist2):
            sim.command_twist(command(k))
        angles.append(sim.step().to_array())
        poses.append(sim.true_pose.to_array())
        if sim.is_sensor_step():
            observations[k + 1] = sim.sense()

    return SimulationLog(
        true_poses=np.array(poses),
        wheel_angles=np.array(angles),
        observations=observations,
        landmarks=sim.landmarks,
    )
