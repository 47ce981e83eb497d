"""
Unit tests for geodesic helpers and the Kalman location estimator.

Tests cover:
- Great-circle distance against known values
- Local tangent-plane projection accuracy
- Estimator initialization, smoothing and reset
- Estimator driven through the real LocationGate
"""

import math

import numpy as np
import pytest

from track_core.errors import InvalidConfigError
from track_core.localization import (
    EstimatorConfig,
    KalmanLocationEstimator,
    distance_m,
    from_local_en,
    to_local_en,
)
from track_core.proto import GeoPoint
from track_core.tracking import GateConfig, GateOutcome, LocationGate
from tests.conftest import make_sample, offset_north


# =============================================================================
# Geodesic helpers
# =============================================================================


class TestDistance:
    """Tests for distance_m."""

    def test_zero_distance(self, origin):
        assert distance_m(origin, origin) == 0.0

    def test_meridian_distance(self, origin):
        """Test due-north offset is recovered exactly."""
        assert distance_m(origin, offset_north(origin, 50.0)) == pytest.approx(50.0, abs=1e-6)

    def test_symmetric(self, origin):
        other = GeoPoint(22.3000, 114.1800)
        assert distance_m(origin, other) == pytest.approx(distance_m(other, origin))

    def test_one_degree_longitude_at_equator(self):
        """Test ~111.2 km per degree on the equator."""
        d = distance_m(GeoPoint(0.0, 0.0), GeoPoint(0.0, 1.0))
        assert d == pytest.approx(111195.0, rel=1e-3)

    def test_antipodal_points(self):
        d = distance_m(GeoPoint(0.0, 0.0), GeoPoint(0.0, 180.0))
        assert d == pytest.approx(math.pi * 6371008.8, rel=1e-9)


class TestLocalProjection:
    """Tests for to_local_en / from_local_en."""

    def test_origin_maps_to_zero(self, origin):
        east, north = to_local_en(origin, origin)
        assert east == 0.0
        assert north == 0.0

    def test_small_offsets_match_distance(self, origin):
        """Test projection agrees with haversine over ~100 m (ellipsoid vs sphere)."""
        point = GeoPoint(origin.lat + 0.0005, origin.lon + 0.0007)
        east, north = to_local_en(origin, point)

        assert east > 0 and north > 0
        assert math.hypot(east, north) == pytest.approx(distance_m(origin, point), rel=1e-2)

    def test_antimeridian_crossing(self):
        """Test points either side of 180 degrees project a few meters apart."""
        west_of_line = GeoPoint(0.0, 179.9999)
        east_of_line = GeoPoint(0.0, -179.9999)

        east, north = to_local_en(west_of_line, east_of_line)

        assert east == pytest.approx(22.26, abs=0.05)
        assert north == 0.0
        assert from_local_en(west_of_line, east, north).lon == pytest.approx(-179.9999, abs=1e-9)

    def test_estimator_across_antimeridian(self):
        """Test smoothing stays local when the track crosses 180 degrees."""
        start = GeoPoint(0.0, 179.99995)
        estimator = KalmanLocationEstimator(make_sample(start, 0.0, accuracy=3.0))

        smoothed = estimator.process(make_sample(GeoPoint(0.0, -179.99995), 1.0, accuracy=3.0))

        assert distance_m(smoothed, start) < 15.0

    def test_inverse(self, origin):
        point = from_local_en(origin, 35.0, -12.0)
        east, north = to_local_en(origin, point)

        assert east == pytest.approx(35.0, abs=1e-6)
        assert north == pytest.approx(-12.0, abs=1e-6)


# =============================================================================
# Estimator
# =============================================================================


class TestEstimatorConfig:
    """Tests for EstimatorConfig validation."""

    def test_defaults_valid(self):
        config = EstimatorConfig()
        assert config.min_accuracy_m > 0

    @pytest.mark.parametrize("field", ["q_pos", "q_vel", "initial_vel_std_m_s", "min_accuracy_m"])
    def test_non_positive_rejected(self, field):
        with pytest.raises(InvalidConfigError):
            EstimatorConfig(**{field: 0.0})


class TestKalmanLocationEstimator:
    """Tests for KalmanLocationEstimator."""

    def test_initialized_from_seed(self, origin):
        seed = make_sample(origin, 100.0, accuracy=5.0)
        estimator = KalmanLocationEstimator(seed)

        assert estimator.is_initialized()
        assert estimator.origin == origin
        assert estimator.velocity_m_s == (0.0, 0.0)

    def test_stationary_readings_stay_put(self, origin):
        """Test repeated identical readings converge on that point."""
        estimator = KalmanLocationEstimator(make_sample(origin, 0.0, accuracy=5.0))

        for t in range(1, 10):
            smoothed = estimator.process(make_sample(origin, float(t), accuracy=5.0))

        assert distance_m(smoothed, origin) < 0.01

    def test_outlier_is_damped(self, origin):
        """Test a single noisy jump is pulled back toward the track."""
        estimator = KalmanLocationEstimator(make_sample(origin, 0.0, accuracy=5.0))
        for t in range(1, 6):
            estimator.process(make_sample(origin, float(t), accuracy=5.0))

        jump = offset_north(origin, 40.0)
        smoothed = estimator.process(make_sample(jump, 6.0, accuracy=20.0))

        assert distance_m(smoothed, origin) < 40.0 / 2

    def test_tracks_constant_motion(self, origin):
        """Test estimate follows a steady walk and learns its velocity."""
        estimator = KalmanLocationEstimator(make_sample(origin, 0.0, accuracy=3.0))
        speed = 1.5

        for t in range(1, 31):
            truth = offset_north(origin, speed * t)
            smoothed = estimator.process(make_sample(truth, float(t), accuracy=3.0))

        assert distance_m(smoothed, truth) < 2.0
        v_east, v_north = estimator.velocity_m_s
        assert v_north == pytest.approx(speed, abs=0.3)
        assert abs(v_east) < 0.3

    def test_out_of_order_sample_skips_prediction(self, origin):
        """Test older timestamp is still fused without error."""
        estimator = KalmanLocationEstimator(make_sample(origin, 10.0, accuracy=5.0))

        smoothed = estimator.process(make_sample(offset_north(origin, 1.0), 5.0, accuracy=5.0))

        assert np.isfinite(smoothed.lat) and np.isfinite(smoothed.lon)

    def test_reset_moves_origin(self, origin):
        estimator = KalmanLocationEstimator(make_sample(origin, 0.0, accuracy=5.0))
        estimator.process(make_sample(offset_north(origin, 3.0), 1.0, accuracy=5.0))

        new_seed = offset_north(origin, 500.0)
        estimator.reset(make_sample(new_seed, 50.0, accuracy=5.0))

        assert estimator.origin == new_seed
        assert estimator.velocity_m_s == (0.0, 0.0)
        assert estimator.metrics.get_counter('estimator_resets') == 1


class TestEstimatorInGate:
    """Real estimator behind the gate."""

    def test_filtered_walk(self, ledger, clock, origin):
        """Test a 1 Hz walk produces filtered points and plausible distance."""
        gate = LocationGate(ledger, GateConfig(estimator_enabled=True), clock=clock)
        gate.start_tracking()

        outcomes = []
        for t in range(0, 21):
            truth = offset_north(origin, 1.4 * t)
            outcomes.append(gate.on_sample(make_sample(truth, clock.now + t, accuracy=5.0)))

        assert outcomes[0] == GateOutcome.ACCEPT_RAW
        assert all(o == GateOutcome.ACCEPT_FILTERED for o in outcomes[1:])

        segment = ledger.all_segments()[0]
        assert segment.num_points == 21
        assert 0.0 < segment.length < 1.4 * 20 * 1.5
