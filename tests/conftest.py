"""
Pytest configuration and shared fixtures for Track Core tests.

This module provides reusable fixtures for testing the path ledger, the
location gate state machine, the estimator and the tracking service.
"""

import sys
import math
from pathlib import Path
from typing import List

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from track_core.metrics import reset_metrics
from track_core.localization.geo import EARTH_RADIUS_M
from track_core.proto import GeoPoint, LocationSample
from track_core.tracking import GateConfig, LocationGate, PathLedger


# =============================================================================
# Helpers
# =============================================================================


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeEstimator:
    """
    Estimator test double.

    process() returns the sample position shifted north by offset_m, so
    filtered points are distinguishable from raw ones.
    """

    def __init__(self, seed: LocationSample, offset_m: float = 0.0):
        self.seeds = [seed]
        self.processed: List[LocationSample] = []
        self.offset_m = offset_m

    def reset(self, new_seed: LocationSample):
        self.seeds.append(new_seed)

    def process(self, sample: LocationSample) -> GeoPoint:
        self.processed.append(sample)
        return offset_north(sample.point, self.offset_m)


def offset_north(point: GeoPoint, meters: float) -> GeoPoint:
    """
    Point `meters` due north of `point`.

    Along a meridian the great-circle distance is exactly R * dlat.
    """
    return GeoPoint(lat=point.lat + math.degrees(meters / EARTH_RADIUS_M), lon=point.lon)


def make_sample(point: GeoPoint, timestamp: float, accuracy: float = 10.0) -> LocationSample:
    return LocationSample(point=point, timestamp=timestamp, horizontal_accuracy=accuracy)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Isolate the global metrics collector per test."""
    reset_metrics()
    yield


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at t=1000s."""
    return FakeClock(1000.0)


@pytest.fixture
def origin() -> GeoPoint:
    """Reference point (Hong Kong harbour front)."""
    return GeoPoint(lat=22.2900, lon=114.1700)


@pytest.fixture
def ledger(clock: FakeClock) -> PathLedger:
    return PathLedger(clock=clock)


@pytest.fixture
def raw_gate(ledger: PathLedger, clock: FakeClock) -> LocationGate:
    """Gate with the estimator disabled."""
    return LocationGate(ledger, GateConfig(estimator_enabled=False), clock=clock)


@pytest.fixture
def filter_gate(ledger: PathLedger, clock: FakeClock) -> LocationGate:
    """Gate with the estimator enabled, backed by FakeEstimator."""
    return LocationGate(
        ledger,
        GateConfig(estimator_enabled=True),
        estimator_factory=FakeEstimator,
        clock=clock,
    )
