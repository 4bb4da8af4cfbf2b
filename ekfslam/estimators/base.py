"""
Base class for recursive state estimators.

This module defines the common interface of estimators driven by a control
input (predict) and batches of observations (update).
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

import numpy as np


class StateEstimator(ABC):
    """Abstract base class for recursive state estimators."""

    def __init__(self, state_dim: int):
        """
        Initialize state estimator.

        Args:
            state_dim: Initial dimension of the state vector.
        """
        self.state_dim = state_dim
        self._state: Optional[np.ndarray] = None
        self._covariance: Optional[np.ndarray] = None

    @abstractmethod
    def predict(self, u: Any) -> None:
        """
        Perform prediction step (time update).

        Args:
            u: Control input.
        """

    @abstractmethod
    def update(self, z: Any) -> Any:
        """
        Perform measurement update (correction step).

        Args:
            z: Measurement or batch of measurements.
        """

    def get_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Get current state estimate and covariance.

        Returns:
            Tuple of (state_vector, covariance_matrix), both copies.
        """
        if self._state is None or self._covariance is None:
            raise RuntimeError("Estimator not initialized.")
        return self._state.copy(), self._covariance.copy()
