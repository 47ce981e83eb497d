"""
Localization Module: Distance helpers and location smoothing.

Key classes:
- KalmanLocationEstimator: Constant-velocity Kalman filter over GPS samples
- EstimatorConfig: Estimator tuning
"""

from .geo import (
    distance_m,
    to_local_en,
    from_local_en,
)
from .kalman_estimator import (
    KalmanLocationEstimator,
    EstimatorConfig,
)

__all__ = [
    'distance_m',
    'to_local_en',
    'from_local_en',
    'KalmanLocationEstimator',
    'EstimatorConfig',
]
