"""
Track Core Package.

GPS path tracking: signal gating, Kalman smoothing and path/trip accounting
for a single moving agent.

Package structure:
- proto: Value types (GeoPoint, LocationSample, TripSummary)
- tracking: PathLedger, LocationGate state machine, TrackingService facade
- localization: Distance helpers and the Kalman location estimator
- io: Sample feed channel and CSV sample loading
- metrics: Diagnostics, counters, histograms
"""

__version__ = "0.1.0"

from .errors import (
    TrackingError,
    InvalidSampleError,
    NoOpenSegmentError,
    InvalidConfigError,
)
from .proto import GeoPoint, LocationSample, DistanceUnit, TripSummary
from .tracking import (
    GateConfig,
    GateOutcome,
    GateState,
    LocationGate,
    PathLedger,
    PathSegment,
    TrackingService,
    TrackingSession,
)

__all__ = [
    'TrackingError',
    'InvalidSampleError',
    'NoOpenSegmentError',
    'InvalidConfigError',
    'GeoPoint',
    'LocationSample',
    'DistanceUnit',
    'TripSummary',
    'GateConfig',
    'GateOutcome',
    'GateState',
    'LocationGate',
    'PathLedger',
    'PathSegment',
    'TrackingService',
    'TrackingSession',
]
