"""Configuration dataclasses for the robot, the filter and the simulator.

All configuration is supplied once at initialization. Each dataclass
validates itself in __post_init__ and raises ValueError for values that
would make the filter or the kinematic model ill-posed; such errors are
fatal to initialization and are never raised per call.

Configuration files are JSON with optional "robot", "ekf" and "sim"
sections, for example::

    {
        "robot": {"wheel_radius": 0.033, "wheel_separation": 0.16},
        "ekf": {"process_noise": [1e-4, 1e-4, 1e-4],
                "measurement_noise": [1e-3, 1e-3]},
        "sim": {"input_noise": 0.01, "slip_fraction": 0.05}
    }
"""

import json
import warnings
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np


def _positive_vector(name: str, values: Any, length: int) -> Tuple[float, ...]:
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape != (length,):
        raise ValueError(f"{name} must have {length} entries, got {arr.shape[0]}")
    if not np.all(np.isfinite(arr)) or np.any(arr <= 0.0):
        raise ValueError(f"{name} entries must be finite and positive, got {arr.tolist()}")
    return tuple(float(v) for v in arr)


@dataclass(frozen=True)
class RobotGeometry:
    """
    Geometric constants of a differential-drive robot.

    Defaults are the TurtleBot3 Burger values.

    Attributes:
        wheel_radius: Wheel radius (m).
        wheel_separation: Distance between the two wheel contact points (m).
                          Half of it is the wheel-to-center distance.
    """

    wheel_radius: float = 0.033
    wheel_separation: float = 0.16

    def __post_init__(self) -> None:
        for name in ("wheel_radius", "wheel_separation"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0.0:
                raise ValueError(f"{name} must be finite and positive, got {value}")


@dataclass(frozen=True)
class EKFSlamConfig:
    """
    Noise magnitudes and tolerances of the EKF-SLAM estimator.

    Attributes:
        process_noise: Diagonal of the process noise covariance Q, ordered
                       (theta, x, y) like the pose block of the state vector.
                       Added to the pose block once per prediction.
        measurement_noise: Diagonal of the measurement noise covariance R,
                           ordered (range, bearing).
        landmark_init_scale: Factor (>= 1) applied to the measurement part of
                             a newly initialized landmark's variance before
                             its first correction. Larger values approach an
                             uninformative prior on the new landmark.
        straight_epsilon: Tolerance under which an angular rate is treated as
                          zero by the motion model.
    """

    process_noise: Tuple[float, float, float] = (1e-4, 1e-4, 1e-4)
    measurement_noise: Tuple[float, float] = (1e-3, 1e-3)
    landmark_init_scale: float = 100.0
    straight_epsilon: float = 1e-12

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "process_noise", _positive_vector("process_noise", self.process_noise, 3)
        )
        object.__setattr__(
            self,
            "measurement_noise",
            _positive_vector("measurement_noise", self.measurement_noise, 2),
        )
        if not np.isfinite(self.landmark_init_scale) or self.landmark_init_scale < 1.0:
            raise ValueError(
                f"landmark_init_scale must be >= 1, got {self.landmark_init_scale}"
            )
        if not np.isfinite(self.straight_epsilon) or self.straight_epsilon <= 0.0:
            raise ValueError(
                f"straight_epsilon must be positive, got {self.straight_epsilon}"
            )
        if self.straight_epsilon > 1e-3:
            warnings.warn(
                f"straight_epsilon={self.straight_epsilon} treats visible turns as "
                "straight motion. Typical values are below 1e-6.",
                UserWarning,
            )

    def Q(self) -> np.ndarray:
        """Process noise covariance (3×3), (theta, x, y) order."""
        return np.diag(self.process_noise)

    def R(self) -> np.ndarray:
        """Measurement noise covariance (2×2), (range, bearing) order."""
        return np.diag(self.measurement_noise)


@dataclass(frozen=True)
class SimConfig:
    """
    Parameters of the ground-truth simulator.

    Attributes:
        rate: Simulation steps per second.
        initial_pose: Starting pose (x, y, theta).
        obstacles: Obstacle centres as a tuple of (x, y) pairs. Each obstacle
                   is also a landmark whose identity is its index.
        obstacle_radius: Common obstacle radius (m).
        collision_radius: Radius of the robot's collision circle (m).
        motor_cmd_per_rad_sec: Wheel speed produced by one motor command unit
                               (rad/s per tick).
        motor_cmd_max: Largest accepted motor command magnitude.
        encoder_ticks_per_rad: Encoder resolution.
        input_noise: Standard deviation of the gaussian noise added to nonzero
                     wheel speed commands (rad/s).
        slip_fraction: Wheel slip is drawn uniformly from
                       [-slip_fraction, slip_fraction].
        sensor_noise: Standard deviation of the fake sensor's position noise (m).
        max_range: Fake sensor range (m).
        sensor_rate: Fake sensor frequency (Hz).
        seed: Seed for the simulator's random generator (None: nondeterministic).
    """

    rate: int = 100
    initial_pose: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    obstacles: Tuple[Tuple[float, float], ...] = field(default_factory=tuple)
    obstacle_radius: float = 0.038
    collision_radius: float = 0.11
    motor_cmd_per_rad_sec: float = 0.024
    motor_cmd_max: int = 265
    encoder_ticks_per_rad: float = 4096.0 / (2.0 * np.pi)
    input_noise: float = 0.0
    slip_fraction: float = 0.0
    sensor_noise: float = 0.0
    max_range: float = 1.0
    sensor_rate: float = 5.0
    seed: Any = None

    def __post_init__(self) -> None:
        if int(self.rate) <= 0:
            raise ValueError(f"rate must be positive, got {self.rate}")
        obstacles = tuple(tuple(float(v) for v in ob) for ob in self.obstacles)
        if any(len(ob) != 2 for ob in obstacles):
            raise ValueError("obstacles must be (x, y) pairs")
        object.__setattr__(self, "obstacles", obstacles)
        object.__setattr__(
            self, "initial_pose", tuple(float(v) for v in self.initial_pose)
        )
        if len(self.initial_pose) != 3:
            raise ValueError("initial_pose must be (x, y, theta)")
        for name in ("motor_cmd_per_rad_sec", "encoder_ticks_per_rad", "max_range", "sensor_rate"):
            if getattr(self, name) <= 0.0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.motor_cmd_max <= 0:
            raise ValueError(f"motor_cmd_max must be positive, got {self.motor_cmd_max}")
        for name in ("obstacle_radius", "collision_radius", "input_noise", "sensor_noise"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0.0 <= self.slip_fraction < 1.0:
            raise ValueError(f"slip_fraction must be in [0, 1), got {self.slip_fraction}")

    @property
    def dt(self) -> float:
        """Simulation time step (s)."""
        return 1.0 / self.rate

    @property
    def steps_per_sensor(self) -> int:
        """Number of simulation steps between fake sensor readings."""
        return max(1, int(round(self.rate / self.sensor_rate)))


_SECTIONS = {
    "robot": RobotGeometry,
    "ekf": EKFSlamConfig,
    "sim": SimConfig,
}


def _build(section: str, values: Dict[str, Any]):
    cls = _SECTIONS[section]
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{section}' section: {sorted(unknown)}")
    return cls(**values)


def config_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build configuration objects from a nested dictionary.

    Args:
        data: Mapping with optional "robot", "ekf" and "sim" sections.

    Returns:
        Dictionary with keys "robot", "ekf", "sim" holding RobotGeometry,
        EKFSlamConfig and SimConfig instances (defaults for missing sections).

    Raises:
        ValueError: On unknown sections, unknown keys or invalid values.
    """
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")
    return {name: _build(name, dict(data.get(name, {}))) for name in _SECTIONS}


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a JSON configuration file.

    Args:
        path: Path to the JSON file.

    Returns:
        Same structure as config_from_dict().
    """
    with open(path) as f:
        return config_from_dict(json.load(f))


def config_to_dict(**configs) -> Dict[str, Dict[str, Any]]:
    """
    Convert configuration objects back to JSON-serializable dictionaries.

    Example:
        >>> config_to_dict(robot=RobotGeometry())["robot"]["wheel_radius"]
        0.033
    """
    out = {}
    for name, cfg in configs.items():
        if name not in _SECTIONS:
            raise ValueError(f"Unknown configuration section: {name}")
        values = asdict(cfg)
        out[name] = {
            k: (list(map(list, v)) if k == "obstacles" else list(v) if isinstance(v, tuple) else v)
            for k, v in values.items()
        }
    return out
