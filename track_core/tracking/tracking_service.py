"""
Tracking Service.

Thread-safe facade owning one PathLedger and one LocationGate. A single
re-entrant lock guards both, so a segment's point list and its length
accumulator are never observed half-updated, and end_tracking() is safe to
call from any thread at any time.

Usage:
    service = TrackingService(GateConfig(estimator_enabled=True))
    service.add_warning_listener(on_low_accuracy)

    service.start_tracking()
    service.on_sample(sample)          # from the location source
    service.end_tracking()

    summary = service.summary()
    print(f"{summary.distance_m:.0f} m in {summary.format_elapsed()}")
"""

from typing import Callable, Optional, Tuple
import logging
import threading
import time

from track_core.proto.location_sample import LocationSample
from track_core.proto.trip_summary import DistanceUnit, TripSummary
from track_core.tracking.gate_config import GateConfig
from track_core.tracking.path_ledger import PathLedger, PathSegment, TrackingSession
from track_core.tracking.location_gate import GateOutcome, GateState, LocationGate

logger = logging.getLogger(__name__)


class TrackingService:
    """
    Serialized access to gate and ledger.

    Features:
    - One lock for every read and write
    - Trip summaries for display
    - Runtime configuration updates (effective from the next sample)
    """

    def __init__(
        self,
        config: Optional[GateConfig] = None,
        estimator_factory: Optional[Callable[[LocationSample], object]] = None,
        clock: Callable[[], float] = time.time,
        session: Optional[TrackingSession] = None,
    ):
        """
        Initialize tracking service.

        Args:
            config: Gate configuration (uses defaults if None)
            estimator_factory: Estimator builder passed to the gate
            clock: Time source shared by gate and ledger
            session: Existing session for the ledger (new if None)
        """
        self._lock = threading.RLock()
        self._clock = clock
        self.ledger = PathLedger(session=session, clock=clock)
        self.gate = LocationGate(
            self.ledger,
            config=config,
            estimator_factory=estimator_factory,
            clock=clock,
        )

    @property
    def config(self) -> GateConfig:
        return self.gate.config

    @property
    def state(self) -> GateState:
        with self._lock:
            return self.gate.state

    @property
    def is_tracking(self) -> bool:
        with self._lock:
            return self.gate.is_tracking

    def add_warning_listener(self, callback: Callable[[], None]):
        with self._lock:
            self.gate.add_warning_listener(callback)

    def remove_warning_listener(self, callback: Callable[[], None]):
        with self._lock:
            self.gate.remove_warning_listener(callback)

    def update_config(self, **changes):
        """
        Change gate parameters.

        Raises:
            InvalidConfigError: If the resulting configuration is invalid
        """
        with self._lock:
            self.gate.config.update(**changes)
            logger.info("Gate config updated: %s", changes)

    def start_tracking(self, continue_from_last: bool = False) -> int:
        with self._lock:
            return self.gate.start_tracking(continue_from_last)

    def end_tracking(self):
        with self._lock:
            self.gate.end_tracking()

    def on_sample(self, sample: LocationSample) -> GateOutcome:
        with self._lock:
            return self.gate.on_sample(sample)

    def reset_all(self):
        """Clear all segments and times. Tracking state is left as-is."""
        with self._lock:
            self.ledger.reset()

    def tracking_time(self, now: Optional[float] = None) -> float:
        with self._lock:
            return self.ledger.total_elapsed_time(now)

    def tracking_distance(self, unit: DistanceUnit = DistanceUnit.METERS) -> float:
        with self._lock:
            return self.ledger.total_distance(unit)

    def segments(self) -> Tuple[PathSegment, ...]:
        with self._lock:
            return self.ledger.all_segments()

    def summary(self, now: Optional[float] = None) -> TripSummary:
        """
        Aggregate trip figures.

        Args:
            now: Reference time for an open segment (clock() if None)

        Returns:
            TripSummary snapshot
        """
        with self._lock:
            return TripSummary(
                distance_m=self.ledger.total_distance(DistanceUnit.METERS),
                distance_mi=self.ledger.total_distance(DistanceUnit.MILES),
                elapsed_s=self.ledger.total_elapsed_time(now),
                num_segments=self.ledger.segment_count,
                num_points=self.ledger.total_points(),
                is_tracking=self.gate.is_tracking,
            )
