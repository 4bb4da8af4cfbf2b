"""Type definitions and data structures for landmark SLAM.

Key types:
    - Pose2: planar pose (x, y, theta)
    - Twist2: body-frame velocity (xdot, ydot, thetadot)
    - WheelState: a (left, right) pair of wheel angles or wheel speeds
    - LandmarkMeasurement: range-bearing observation with an identity token

Angles are radians and normalized to (-π, π].
"""

from dataclasses import dataclass

import numpy as np

from ekfslam.utils.angles import DEFAULT_EPSILON, almost_equal, normalize_angle


@dataclass
class Pose2:
    """
    SE(2) pose of the robot.

    Attributes:
        x: Position along the world x-axis (meters).
        y: Position along the world y-axis (meters).
        theta: Heading (radians), counter-clockwise from the x-axis.
               Normalized to (-π, π] on construction.

    Examples:
        >>> p = Pose2(x=1.0, y=2.0, theta=3 * np.pi / 2)
        >>> p.theta  # wrapped
        -1.5707963267948966
    """

    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0

    def __post_init__(self) -> None:
        """Validate and normalize pose values after initialization."""
        for name in ("x", "y", "theta"):
            value = getattr(self, name)
            if not np.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        self.x = float(self.x)
        self.y = float(self.y)
        self.theta = normalize_angle(self.theta)

    def to_array(self) -> np.ndarray:
        """Return the pose as array [x, y, theta]."""
        return np.array([self.x, self.y, self.theta], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Pose2":
        """
        Create Pose2 from array [x, y, theta].

        Raises:
            ValueError: If arr does not have shape (3,).
        """
        arr = np.asarray(arr, dtype=float)
        if arr.shape != (3,):
            raise ValueError(f"Array must have shape (3,), got {arr.shape}")
        return cls(x=float(arr[0]), y=float(arr[1]), theta=float(arr[2]))


@dataclass(frozen=True)
class Twist2:
    """
    Planar twist expressed in the robot body frame.

    A twist is the displacement rate over one control interval. The
    kinematic model produces one twist per pair of wheel-angle samples and
    the estimator consumes it exactly once in predict().

    Attributes:
        xdot: Forward velocity (m per interval).
        ydot: Lateral velocity (m per interval). Always zero for a
              differential drive.
        thetadot: Angular velocity (rad per interval).
    """

    xdot: float = 0.0
    ydot: float = 0.0
    thetadot: float = 0.0

    def to_array(self) -> np.ndarray:
        """Return the twist as array [xdot, ydot, thetadot]."""
        return np.array([self.xdot, self.ydot, self.thetadot], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Twist2":
        """Create Twist2 from array [xdot, ydot, thetadot]."""
        arr = np.asarray(arr, dtype=float)
        if arr.shape != (3,):
            raise ValueError(f"Array must have shape (3,), got {arr.shape}")
        return cls(xdot=float(arr[0]), ydot=float(arr[1]), thetadot=float(arr[2]))

    def is_straight(self, epsilon: float = DEFAULT_EPSILON) -> bool:
        """True when the angular rate is zero within epsilon."""
        return almost_equal(self.thetadot, 0.0, epsilon)


@dataclass(frozen=True)
class WheelState:
    """
    A value per wheel: angles (rad) or speeds (rad/s), depending on context.

    Example:
        >>> WheelState(1.0, 2.0) - WheelState(0.5, 0.5)
        WheelState(left=0.5, right=1.5)
    """

    left: float = 0.0
    right: float = 0.0

    def __add__(self, other: "WheelState") -> "WheelState":
        return WheelState(self.left + other.left, self.right + other.right)

    def __sub__(self, other: "WheelState") -> "WheelState":
        return WheelState(self.left - other.left, self.right - other.right)

    def __mul__(self, scale: float) -> "WheelState":
        return WheelState(self.left * scale, self.right * scale)

    __rmul__ = __mul__

    def to_array(self) -> np.ndarray:
        """Return [left, right]."""
        return np.array([self.left, self.right], dtype=np.float64)


@dataclass(frozen=True)
class LandmarkMeasurement:
    """
    Relative range-bearing observation of a point landmark.

    The identity token is consistent across observations of the same
    physical landmark but has no geometric meaning to the estimator.

    Attributes:
        r: Range from the robot to the landmark (meters, >= 0).
        phi: Bearing in the robot frame (radians), normalized to (-π, π].
        marker_id: Non-negative integer identity of the landmark.

    Example:
        >>> z = LandmarkMeasurement.from_cartesian(0.0, 2.0, marker_id=4)
        >>> z.r, z.phi
        (2.0, 1.5707963267948966)
    """

    r: float
    phi: float
    marker_id: int

    def __post_init__(self) -> None:
        """Validate the observation and normalize its bearing."""
        if not np.isfinite(self.r) or self.r < 0.0:
            raise ValueError(f"Range must be finite and non-negative, got {self.r}")
        if not np.isfinite(self.phi):
            raise ValueError(f"Bearing must be finite, got {self.phi}")
        if isinstance(self.marker_id, bool) or not isinstance(self.marker_id, (int, np.integer)):
            raise ValueError(f"marker_id must be an integer, got {self.marker_id!r}")
        if self.marker_id < 0:
            raise ValueError(f"marker_id must be non-negative, got {self.marker_id}")
        # frozen dataclass: assign through object.__setattr__
        object.__setattr__(self, "r", float(self.r))
        object.__setattr__(self, "phi", normalize_angle(self.phi))
        object.__setattr__(self, "marker_id", int(self.marker_id))

    @classmethod
    def from_cartesian(cls, x: float, y: float, marker_id: int) -> "LandmarkMeasurement":
        """
        Build a measurement from a landmark position in the robot frame.

        Args:
            x: Landmark x in the robot frame (meters, forward).
            y: Landmark y in the robot frame (meters, left).
            marker_id: Identity of the landmark.
        """
        return cls(r=float(np.hypot(x, y)), phi=float(np.arctan2(y, x)), marker_id=marker_id)

    def to_array(self) -> np.ndarray:
        """Return [r, phi]."""
        return np.array([self.r, self.phi], dtype=np.float64)
