"""
Kalman Location Estimator (Constant-Velocity).

Implements a 4D constant-velocity Kalman filter that turns noisy GPS
readings into a temporally and spatially more likely position.

State: [E, N, vE, vN] in a local tangent plane anchored at the seed
sample. Measurement noise is taken from each sample's horizontal accuracy.

Contract used by LocationGate:
    estimator = KalmanLocationEstimator(seed_sample)
    smoothed = estimator.process(sample)     # -> GeoPoint
    estimator.reset(new_seed_sample)
"""

from typing import Optional, Tuple
from dataclasses import dataclass
import logging

import numpy as np

from track_core.errors import InvalidConfigError
from track_core.proto.location_sample import GeoPoint, LocationSample
from track_core.localization.geo import to_local_en, from_local_en
from track_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class EstimatorConfig:
    """
    Configuration for the location estimator.

    Attributes:
        q_pos: Process noise for position (m²/s)
        q_vel: Process noise for velocity (m²/s³)
        initial_vel_std_m_s: Initial velocity uncertainty (m/s)
        min_accuracy_m: Floor applied to sample accuracy when building R (m)
    """

    q_pos: float = 0.5 ** 2          # Position process noise
    q_vel: float = 1.5 ** 2          # Walking/cycling velocity changes
    initial_vel_std_m_s: float = 5.0
    min_accuracy_m: float = 1.0

    def __post_init__(self):
        """Validate configuration."""
        if self.q_pos <= 0 or self.q_vel <= 0:
            raise InvalidConfigError("Process noise must be positive")
        if self.initial_vel_std_m_s <= 0:
            raise InvalidConfigError("initial_vel_std_m_s must be positive")
        if self.min_accuracy_m <= 0:
            raise InvalidConfigError("min_accuracy_m must be positive")


class KalmanLocationEstimator:
    """
    Constant-velocity Kalman filter over geographic samples.

    Features:
    - Smooths jittery GPS readings
    - Provides a velocity estimate in m/s
    - Weights each reading by its reported horizontal accuracy
    - Can be reset from a new seed without recreating the instance
    """

    _H = np.array([
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
    ])

    def __init__(self, seed: LocationSample, config: Optional[EstimatorConfig] = None):
        """
        Initialize estimator from a first sample.

        Args:
            seed: Sample the filter starts from
            config: Filter configuration (uses defaults if None)
        """
        self.config = config or EstimatorConfig()
        self.metrics = get_metrics()

        self._origin: Optional[GeoPoint] = None
        self._state: Optional[np.ndarray] = None
        self._covariance: Optional[np.ndarray] = None
        self._last_update_time: Optional[float] = None

        self._initialize(seed)
        self.metrics.increment('estimator_initialized')

    def is_initialized(self) -> bool:
        """Check if filter holds a state."""
        return self._state is not None

    @property
    def origin(self) -> Optional[GeoPoint]:
        """Tangent-plane origin (the last seed)."""
        return self._origin

    @property
    def velocity_m_s(self) -> Tuple[float, float]:
        """Current (vE, vN) estimate in m/s."""
        return (float(self._state[2]), float(self._state[3]))

    def reset(self, new_seed: LocationSample):
        """
        Restart the filter from a new seed sample.

        Args:
            new_seed: Sample the filter restarts from
        """
        self._initialize(new_seed)
        self.metrics.increment('estimator_resets')
        logger.debug("Estimator reset at (%.6f, %.6f)", new_seed.lat, new_seed.lon)

    def process(self, sample: LocationSample) -> GeoPoint:
        """
        Run one predict/update cycle.

        Args:
            sample: Raw location reading

        Returns:
            Smoothed position

        Notes:
            - Out-of-order samples skip the predict step
            - Measurement noise R = max(accuracy, min_accuracy_m)²
        """
        dt = sample.timestamp - self._last_update_time
        self._predict(dt)

        east, north = to_local_en(self._origin, sample.point)
        z = np.array([east, north])

        r_std = max(sample.horizontal_accuracy, self.config.min_accuracy_m)
        R = np.eye(2) * r_std ** 2

        H = self._H
        y = z - H @ self._state  # Innovation
        S = H @ self._covariance @ H.T + R
        K = self._covariance @ H.T @ np.linalg.inv(S)

        self._state = self._state + K @ y
        self._covariance = (np.eye(4) - K @ H) @ self._covariance

        self._last_update_time = max(self._last_update_time, sample.timestamp)

        innovation_m = float(np.linalg.norm(y))
        self.metrics.record_histogram('estimator_innovation_m', innovation_m)

        return from_local_en(self._origin, float(self._state[0]), float(self._state[1]))

    def _initialize(self, seed: LocationSample):
        """Initialize state at the seed with zero velocity."""
        self._origin = seed.point
        self._state = np.zeros(4)

        pos_std = max(seed.horizontal_accuracy, self.config.min_accuracy_m)
        self._covariance = np.diag([
            pos_std ** 2,
            pos_std ** 2,
            self.config.initial_vel_std_m_s ** 2,
            self.config.initial_vel_std_m_s ** 2,
        ])

        self._last_update_time = seed.timestamp

    def _predict(self, dt: float):
        """Predict state forward by dt seconds."""
        if dt <= 0:
            return

        F = np.array([
            [1, 0, dt, 0],
            [0, 1, 0, dt],
            [0, 0, 1, 0],
            [0, 0, 0, 1]
        ])

        Q = np.diag([
            self.config.q_pos * dt,
            self.config.q_pos * dt,
            self.config.q_vel * dt,
            self.config.q_vel * dt,
        ])

        self._state = F @ self._state
        self._covariance = F @ self._covariance @ F.T + Q
