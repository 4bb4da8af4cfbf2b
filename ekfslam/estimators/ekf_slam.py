"""
Extended Kalman Filter SLAM with an unbounded, growing state vector.

The filter jointly estimates the robot pose and the positions of point
landmarks that are discovered while driving. Landmarks carry an external
identity token; association is by identity only.

State vector (dimension 3 + 2N):
    Ξ = [θ, x, y, m₁ₓ, m₁ᵧ, m₂ₓ, m₂ᵧ, ..., m_Nₓ, m_Nᵧ]

Covariance structure:
    Σ = [ Σ_rr  Σ_rm ]
        [ Σ_mr  Σ_mm ]

Prediction (twist u, Jacobian A of the pose motion model):
    q⁻ = f(q, u)
    Σ⁻ = G Σ Gᵀ + Q̄,   G = blockdiag(A, I),   Q̄ = blockdiag(Q, 0)
which touches only Σ_rr (A Σ_rr Aᵀ + Q) and the cross blocks (A Σ_rm).

Landmark initialization (first sighting of an identity, inverse model g):
    m = g(q, z),   G_q = ∂g/∂q,   G_z = ∂g/∂z
    Σ_mm = G_q Σ_rr G_qᵀ + s · G_z R G_zᵀ,   Σ_m· = G_q Σ_r·
with s = landmark_init_scale >= 1.

Correction (every observation, new or known landmark j):
    ν = z - h(q, m_j)           (bearing component normalized)
    S = H Σ Hᵀ + R
    K = Σ Hᵀ S⁻¹
    Ξ ← Ξ + K ν                 (heading renormalized)
    Σ ← (I - K H) Σ             (Joseph form)

Observations of one batch are processed strictly in order; each is applied
atomically and a degenerate step (singular S, non-finite result) discards
that observation without touching the estimate.

References:
    Thrun, S., Burgard, W., & Fox, D. (2005). Probabilistic Robotics.
    Chapter 10: SLAM with Extended Kalman Filters.
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from ekfslam.estimators.base import StateEstimator
from ekfslam.models.measurement_models import (
    landmark_from_measurement,
    range_bearing,
    range_bearing_jacobian,
)
from ekfslam.models.motion_models import predict_pose
from ekfslam.slam.config import EKFSlamConfig
from ekfslam.slam.types import LandmarkMeasurement, Pose2, Twist2
from ekfslam.utils.angles import angle_diff, normalize_angle

POSE_DIM = 3
LANDMARK_DIM = 2

# Innovation covariances worse conditioned than this are rejected.
_MAX_CONDITION = 1e12
# Predicted ranges below this leave the bearing undefined.
_MIN_RANGE = 1e-6


@dataclass
class UpdateReport:
    """
    Outcome of one update() call.

    Attributes:
        initialized: Identities added to the map during the call.
        corrected: Identities whose observation was applied.
        skipped: Identities whose observation was discarded as degenerate.
        innovations: Innovation ν of each applied observation.
        innovation_covariances: Innovation covariance S of each applied
                                observation.
    """

    initialized: List[int] = field(default_factory=list)
    corrected: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    innovations: List[np.ndarray] = field(default_factory=list)
    innovation_covariances: List[np.ndarray] = field(default_factory=list)

    @property
    def n_applied(self) -> int:
        return len(self.corrected)

    @property
    def n_skipped(self) -> int:
        return len(self.skipped)


class EKFSlam(StateEstimator):
    """
    EKF-SLAM estimator for a planar robot and point landmarks.

    The estimator owns the state vector Ξ, its covariance Σ and the identity
    map from landmark identity to the index of the landmark's x entry in Ξ.
    Entries are appended and never removed or reordered.

    Not thread-safe: predict() and update() mutate the same state and must
    be called in chronological order by a single caller.

    Attributes:
        config: Noise magnitudes and tolerances.

    Example:
        >>> ekf = EKFSlam()
        >>> ekf.predict(Twist2(xdot=1.0))
        >>> report = ekf.update([LandmarkMeasurement(1.0, np.pi / 2, 7)])
        >>> report.initialized
        [7]
        >>> np.round(ekf.landmarks()[7], 6)
        array([1., 1.])
    """

    def __init__(
        self,
        config: Optional[EKFSlamConfig] = None,
        initial_pose: Optional[Union[Pose2, np.ndarray]] = None,
    ):
        """
        Initialize the estimator with an empty map.

        Args:
            config: Filter configuration (default EKFSlamConfig()).
            initial_pose: Starting pose (default: origin). Its covariance is zero.

        Raises:
            ValueError: If the configuration is invalid.
        """
        super().__init__(POSE_DIM)
        self.config = config if config is not None else EKFSlamConfig()
        if not isinstance(self.config, EKFSlamConfig):
            raise ValueError(f"config must be an EKFSlamConfig, got {type(self.config)}")

        self._Q = self.config.Q()
        self._R = self.config.R()
        self._landmark_index: Dict[int, int] = {}
        self._landmark_order: List[int] = []
        self.reset(initial_pose)

    def reset(self, initial_pose: Optional[Union[Pose2, np.ndarray]] = None) -> None:
        """
        Discard the map and restart from a pose with zero uncertainty.

        Args:
            initial_pose: Pose2 or array [x, y, θ] (default: origin).
        """
        if initial_pose is None:
            pose = Pose2()
        elif isinstance(initial_pose, Pose2):
            pose = initial_pose
        else:
            pose = Pose2.from_array(initial_pose)

        self._state = np.array([pose.theta, pose.x, pose.y], dtype=float)
        self._covariance = np.zeros((POSE_DIM, POSE_DIM))
        self._landmark_index = {}
        self._landmark_order = []
        self.state_dim = POSE_DIM

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, twist: Twist2) -> None:
        """
        Advance the pose belief by one control interval.

        The twist is treated as a noise-free control; process noise Q is
        added to the pose block afterwards. Landmarks are static, so only
        the pose block and the pose/map cross-covariances are transformed.

        Args:
            twist: Body-frame twist for the interval.
        """
        new_pose, A = predict_pose(self._state[:POSE_DIM], twist, self.config.straight_epsilon)

        P = self._covariance
        # Σ_rm ← A Σ_rm, Σ_mr ← Σ_rmᵀ
        if P.shape[0] > POSE_DIM:
            cross = A @ P[:POSE_DIM, POSE_DIM:]
            P[:POSE_DIM, POSE_DIM:] = cross
            P[POSE_DIM:, :POSE_DIM] = cross.T

        # Σ_rr ← A Σ_rr Aᵀ + Q
        P_rr = A @ P[:POSE_DIM, :POSE_DIM] @ A.T + self._Q
        P[:POSE_DIM, :POSE_DIM] = 0.5 * (P_rr + P_rr.T)

        self._state[:POSE_DIM] = new_pose

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, observations: Iterable[LandmarkMeasurement]) -> UpdateReport:
        """
        Incorporate a batch of simultaneous landmark observations.

        Each observation is associated by identity, initialized if its
        identity is new, and applied as a standard single-landmark EKF
        correction before the next observation is considered.

        Args:
            observations: Range-bearing observations taken at the same instant.

        Returns:
            UpdateReport describing what happened to each observation.
        """
        report = UpdateReport()
        for z in observations:
            self._apply(z, report)
        return report

    def run(self, twist: Twist2, observations: Iterable[LandmarkMeasurement]) -> UpdateReport:
        """Predict with twist, then update with observations."""
        self.predict(twist)
        return self.update(observations)

    def _apply(self, z: LandmarkMeasurement, report: UpdateReport) -> None:
        is_new = z.marker_id not in self._landmark_index

        if is_new:
            state, cov = self._augmented(z)
            index = len(self._state)
        else:
            state, cov = self._state, self._covariance
            index = self._landmark_index[z.marker_id]

        try:
            new_state, new_cov, nu, S = self._correct(state, cov, index, z)
        except (LinAlgError, ValueError) as exc:
            warnings.warn(
                f"Skipping observation of landmark {z.marker_id}: {exc}",
                RuntimeWarning,
            )
            report.skipped.append(z.marker_id)
            return

        self._state = new_state
        self._covariance = new_cov
        self.state_dim = len(new_state)
        if is_new:
            self._landmark_index[z.marker_id] = index
            self._landmark_order.append(z.marker_id)
            report.initialized.append(z.marker_id)
        report.corrected.append(z.marker_id)
        report.innovations.append(nu)
        report.innovation_covariances.append(S)

    def _augmented(self, z: LandmarkMeasurement) -> Tuple[np.ndarray, np.ndarray]:
        """State and covariance grown by a landmark initialized from z."""
        n = len(self._state)
        P = self._covariance

        landmark, G_pose, G_meas = landmark_from_measurement(self._state[:POSE_DIM], z.r, z.phi)

        state = np.concatenate([self._state, landmark])
        cov = np.zeros((n + LANDMARK_DIM, n + LANDMARK_DIM))
        cov[:n, :n] = P

        cross = G_pose @ P[:POSE_DIM, :]
        cov[n:, :n] = cross
        cov[:n, n:] = cross.T

        P_mm = (
            G_pose @ P[:POSE_DIM, :POSE_DIM] @ G_pose.T
            + self.config.landmark_init_scale * (G_meas @ self._R @ G_meas.T)
        )
        cov[n:, n:] = 0.5 * (P_mm + P_mm.T)
        return state, cov

    def _correct(
        self, state: np.ndarray, cov: np.ndarray, index: int, z: LandmarkMeasurement
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """One EKF correction against the landmark whose x entry is at index."""
        n = len(state)
        pose = state[:POSE_DIM]
        landmark = state[index:index + LANDMARK_DIM]

        z_hat = range_bearing(pose, landmark)
        if z_hat[0] < _MIN_RANGE:
            raise LinAlgError("landmark estimate coincides with the robot")

        nu = np.array([z.r - z_hat[0], angle_diff(z.phi, z_hat[1])])

        H_pose, H_landmark = range_bearing_jacobian(pose, landmark)
        H = np.zeros((LANDMARK_DIM, n))
        H[:, :POSE_DIM] = H_pose
        H[:, index:index + LANDMARK_DIM] = H_landmark

        PHt = cov @ H.T
        S = H @ PHt + self._R
        S = 0.5 * (S + S.T)
        if np.linalg.cond(S) > _MAX_CONDITION:
            raise LinAlgError("innovation covariance is singular")

        # K = Σ Hᵀ S⁻¹, via a Cholesky solve of S Kᵀ = H Σ
        K = cho_solve(cho_factor(S), PHt.T).T

        new_state = state + K @ nu
        new_state[0] = normalize_angle(new_state[0])

        I_KH = np.eye(n) - K @ H
        new_cov = I_KH @ cov @ I_KH.T + K @ self._R @ K.T
        new_cov = 0.5 * (new_cov + new_cov.T)

        if not (np.all(np.isfinite(new_state)) and np.all(np.isfinite(new_cov))):
            raise LinAlgError("correction produced non-finite values")

        return new_state, new_cov, nu, S

    # ------------------------------------------------------------------
    # Accessors (read-only copies)
    # ------------------------------------------------------------------

    @property
    def pose(self) -> Pose2:
        """Current robot pose estimate."""
        theta, x, y = self._state[:POSE_DIM]
        return Pose2(x=x, y=y, theta=theta)

    @property
    def pose_vector(self) -> np.ndarray:
        """Pose block of the state vector, [θ, x, y]."""
        return self._state[:POSE_DIM].copy()

    @property
    def pose_covariance(self) -> np.ndarray:
        """3×3 pose covariance in [θ, x, y] order."""
        return self._covariance[:POSE_DIM, :POSE_DIM].copy()

    @property
    def state(self) -> np.ndarray:
        """Full state vector Ξ."""
        return self._state.copy()

    @property
    def covariance(self) -> np.ndarray:
        """Full covariance Σ."""
        return self._covariance.copy()

    @property
    def landmark_ids(self) -> List[int]:
        """Landmark identities in the order they were added."""
        return list(self._landmark_order)

    @property
    def num_landmarks(self) -> int:
        return len(self._landmark_order)

    def landmark_index(self, marker_id: int) -> int:
        """Index of the landmark's x entry in Ξ. Raises KeyError if unknown."""
        return self._landmark_index[marker_id]

    def map_estimate(self) -> np.ndarray:
        """Landmark positions, shape (N, 2), in insertion order."""
        return self._state[POSE_DIM:].reshape(-1, LANDMARK_DIM).copy()

    def landmarks(self) -> Dict[int, np.ndarray]:
        """Mapping identity -> estimated [x, y], in insertion order."""
        return {
            marker_id: self._state[i:i + LANDMARK_DIM].copy()
            for marker_id, i in ((m, self._landmark_index[m]) for m in self._landmark_order)
        }

    def landmark_covariance(self, marker_id: int) -> np.ndarray:
        """2×2 covariance of one landmark. Raises KeyError if unknown."""
        i = self._landmark_index[marker_id]
        return self._covariance[i:i + LANDMARK_DIM, i:i + LANDMARK_DIM].copy()
