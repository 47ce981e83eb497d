"""
Location Gate.

Per-sample accept/discard/warn state machine in front of the PathLedger.

Raw consumer-grade readings taken right after acquisition are often
spatially inconsistent. When the estimator is enabled the gate:
1. Waits for a fix better than max_accuracy before (re)seeding the estimator
2. Throttles estimator updates to one per min_time_window
3. Raises a low-accuracy warning once nothing has been accepted for
   longer than max_time_window

Without the estimator every sample is accepted as-is. In both modes a
displacement below min_distance adds the point but no distance.
"""

from typing import Callable, List, Optional
from enum import Enum
import logging
import math
import time

from track_core.errors import InvalidSampleError
from track_core.proto.location_sample import GeoPoint, LocationSample
from track_core.localization.geo import distance_m
from track_core.localization.kalman_estimator import KalmanLocationEstimator
from track_core.tracking.gate_config import GateConfig
from track_core.tracking.path_ledger import PathLedger
from track_core.metrics import get_metrics

logger = logging.getLogger(__name__)

# Name of the warning event, used in logs
LOW_ACCURACY_WARNING = "LowAccuracyWarning"


class GateState(Enum):
    """Tracking mode of the gate."""

    IDLE = "idle"
    TRACKING_NO_FILTER = "tracking_no_filter"
    TRACKING_FILTER_UNINITIALIZED = "tracking_filter_uninitialized"
    TRACKING_FILTER_ACTIVE = "tracking_filter_active"
    TRACKING_FILTER_PENDING_RESET = "tracking_filter_pending_reset"


class GateOutcome(Enum):
    """Decision taken for one sample."""

    ACCEPT_RAW = "accept_raw"
    ACCEPT_FILTERED = "accept_filtered"
    DISCARD = "discard"
    DISCARD_WITH_WARNING = "discard_with_warning"

    @property
    def accepted(self) -> bool:
        return self in (GateOutcome.ACCEPT_RAW, GateOutcome.ACCEPT_FILTERED)


class LocationGate:
    """
    Gate raw location samples into the path ledger.

    Usage:
        ledger = PathLedger()
        gate = LocationGate(ledger, GateConfig(estimator_enabled=True))
        gate.add_warning_listener(lambda: print("GPS signal degraded"))

        gate.start_tracking()
        for sample in samples:
            outcome = gate.on_sample(sample)
        gate.end_tracking()

    Not thread-safe: callers delivering samples from several threads must
    serialize access (see TrackingService).
    """

    def __init__(
        self,
        ledger: PathLedger,
        config: Optional[GateConfig] = None,
        estimator_factory: Optional[Callable[[LocationSample], object]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize gate.

        Args:
            ledger: Ledger receiving accepted points
            config: Gate configuration (uses defaults if None)
            estimator_factory: Builds an estimator from a seed sample; the
                estimator must provide process(sample) and reset(sample)
            clock: Time source (must match the sample timestamp clock)
        """
        self.ledger = ledger
        self.config = config or GateConfig()
        self.metrics = get_metrics()

        self._estimator_factory = estimator_factory or KalmanLocationEstimator
        self._clock = clock

        self._state = GateState.IDLE
        self._estimator = None
        self._last_accepted_time: float = clock()

        # Last raw sample seen in any state (seed for continued tracks)
        self._last_known: Optional[LocationSample] = None

        # Reference sample for distance accounting while tracking
        self._last_tracking: Optional[LocationSample] = None

        # First point of the segment is a placeholder until a fix is accepted
        self._seed_provisional = False

        self._warning_listeners: List[Callable[[], None]] = []

        self._handlers = {
            GateState.IDLE: self._on_idle,
            GateState.TRACKING_NO_FILTER: self._on_no_filter,
            GateState.TRACKING_FILTER_UNINITIALIZED: self._on_filter_uninitialized,
            GateState.TRACKING_FILTER_PENDING_RESET: self._on_filter_pending_reset,
            GateState.TRACKING_FILTER_ACTIVE: self._on_filter_active,
        }

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state != GateState.IDLE

    @property
    def last_known_location(self) -> Optional[LocationSample]:
        return self._last_known

    @property
    def last_accepted_time(self) -> float:
        return self._last_accepted_time

    @property
    def estimator(self):
        """Current estimator instance, None until initialized."""
        return self._estimator

    # ------------------------------------------------------------------
    # Warning listeners
    # ------------------------------------------------------------------

    def add_warning_listener(self, callback: Callable[[], None]):
        """Register a no-argument callback for low-accuracy warnings."""
        self._warning_listeners.append(callback)

    def remove_warning_listener(self, callback: Callable[[], None]):
        if callback in self._warning_listeners:
            self._warning_listeners.remove(callback)

    # ------------------------------------------------------------------
    # Session transitions
    # ------------------------------------------------------------------

    def start_tracking(self, continue_from_last: bool = False) -> int:
        """
        Start a new tracked segment.

        Args:
            continue_from_last: Seed the segment with the last known raw
                location so the track continues without a gap

        Returns:
            Index of the new segment

        Notes:
            - The initial mode follows config.estimator_enabled; later
              changes are picked up by on_sample
            - An existing estimator is reset on the next accurate fix rather
              than recreated
        """
        if self.is_tracking:
            logger.warning("start_tracking while tracking, closing current segment")
            self.end_tracking()

        self._state = self._mode_entry_state()
        self._last_accepted_time = self._clock()
        self._seed_provisional = True

        seed = self._last_known if continue_from_last else None
        index = self.ledger.begin_segment(seed.point if seed is not None else None)
        self._last_tracking = seed

        logger.info("Tracking started: state=%s, segment=%d", self._state.value, index)
        return index

    def end_tracking(self):
        """Stop tracking. Calling it again while idle does nothing."""
        if not self.is_tracking:
            return

        self._state = GateState.IDLE
        self._last_tracking = None
        self.ledger.end_segment()
        logger.info("Tracking ended")

    def reset_estimator(self):
        """Drop the estimator; the next sample re-initializes it."""
        self._estimator = None
        if self._state in (GateState.TRACKING_FILTER_ACTIVE, GateState.TRACKING_FILTER_PENDING_RESET):
            self._state = GateState.TRACKING_FILTER_UNINITIALIZED

    # ------------------------------------------------------------------
    # Sample processing
    # ------------------------------------------------------------------

    def on_sample(self, sample: LocationSample) -> GateOutcome:
        """
        Process one raw location sample.

        Args:
            sample: Raw reading

        Returns:
            GateOutcome for this sample

        Raises:
            InvalidSampleError: Negative or non-finite accuracy; gate state
                is left unchanged
        """
        self._validate(sample)

        self.metrics.increment('samples_in')
        self.metrics.record_histogram('sample_accuracy_m', sample.horizontal_accuracy)

        self._last_known = sample

        self._sync_mode(sample)
        outcome = self._handlers[self._state](sample)
        logger.debug(
            "Sample t=%.3f acc=%.1fm -> %s (state=%s)",
            sample.timestamp, sample.horizontal_accuracy, outcome.value, self._state.value,
        )
        return outcome

    def _mode_entry_state(self) -> GateState:
        """Tracking state matching config.estimator_enabled."""
        if not self.config.estimator_enabled:
            return GateState.TRACKING_NO_FILTER
        if self._estimator is not None:
            return GateState.TRACKING_FILTER_PENDING_RESET
        return GateState.TRACKING_FILTER_UNINITIALIZED

    def _sync_mode(self, sample: LocationSample):
        """
        Follow a change of config.estimator_enabled made while tracking.

        Switching the estimator on starts a fresh time window at this
        sample, since raw accepts never move it.
        """
        if not self.is_tracking:
            return

        filtering = self._state != GateState.TRACKING_NO_FILTER
        if filtering == self.config.estimator_enabled:
            return

        self._state = self._mode_entry_state()
        if self.config.estimator_enabled:
            self._last_accepted_time = sample.timestamp

        logger.info("Estimator %s while tracking: state=%s",
                    "enabled" if self.config.estimator_enabled else "disabled", self._state.value)

    def _validate(self, sample: LocationSample):
        """
        Re-check accuracy for samples not built as LocationSample.

        LocationSample validates itself on construction, but platform
        adapters may hand in any object with point/timestamp/
        horizontal_accuracy attributes; those are only checked here.
        """
        accuracy = sample.horizontal_accuracy
        if not math.isfinite(accuracy) or accuracy < 0:
            self.metrics.increment_drop('invalid_sample')
            raise InvalidSampleError(f"Invalid horizontal accuracy: {accuracy}")

    def _window(self, sample: LocationSample) -> float:
        """Seconds since last accepted sample (negative if out of order)."""
        return sample.timestamp - self._last_accepted_time

    def _is_accurate(self, sample: LocationSample) -> bool:
        return sample.horizontal_accuracy < self.config.max_accuracy

    def _on_idle(self, sample: LocationSample) -> GateOutcome:
        self._last_tracking = None
        self.metrics.increment_drop('idle')
        return GateOutcome.DISCARD

    def _on_no_filter(self, sample: LocationSample) -> GateOutcome:
        self.ledger.append_point(sample.point)
        self._commit(sample, sample.point)
        self._seed_provisional = False
        self.metrics.increment('samples_accepted_raw')
        return GateOutcome.ACCEPT_RAW

    def _on_filter_uninitialized(self, sample: LocationSample) -> GateOutcome:
        self._estimator = self._estimator_factory(sample)
        self._last_accepted_time = sample.timestamp

        if self._is_accurate(sample):
            self._bootstrap(sample)
            return GateOutcome.ACCEPT_RAW

        # Estimator exists but is not trustworthy yet
        self._state = GateState.TRACKING_FILTER_PENDING_RESET
        self.metrics.increment_drop('low_accuracy')
        return GateOutcome.DISCARD

    def _on_filter_pending_reset(self, sample: LocationSample) -> GateOutcome:
        if self._is_accurate(sample):
            self._estimator.reset(sample)
            self._last_accepted_time = sample.timestamp
            self._bootstrap(sample)
            return GateOutcome.ACCEPT_RAW

        self.metrics.increment_drop('awaiting_fix')
        if self._window(sample) > self.config.max_time_window:
            self._emit_low_accuracy_warning(sample)
            return GateOutcome.DISCARD_WITH_WARNING
        return GateOutcome.DISCARD

    def _on_filter_active(self, sample: LocationSample) -> GateOutcome:
        window = self._window(sample)
        accurate = self._is_accurate(sample)

        if accurate and window > self.config.min_time_window:
            smoothed = self._estimator.process(sample)
            self._last_accepted_time = sample.timestamp

            self.ledger.append_point(smoothed)
            self._commit(sample, smoothed)
            self._seed_provisional = False
            self.metrics.increment('samples_accepted_filtered')
            return GateOutcome.ACCEPT_FILTERED

        self.metrics.increment_drop('too_soon' if accurate else 'low_accuracy')
        if window > self.config.max_time_window:
            self._emit_low_accuracy_warning(sample)
            return GateOutcome.DISCARD_WITH_WARNING
        return GateOutcome.DISCARD

    def _bootstrap(self, sample: LocationSample):
        """
        Take the first accurate fix after (re)seeding the estimator.

        At segment start the fix replaces the provisional first point and
        adds no distance. Later in a segment (estimator switched on or
        reset mid-track) it is appended like any other accepted point.
        """
        if self._seed_provisional:
            self.ledger.replace_first_point(sample.point)
            self._last_tracking = sample
            self._seed_provisional = False
        else:
            self.ledger.append_point(sample.point)
            self._commit(sample, sample.point)
        self._state = GateState.TRACKING_FILTER_ACTIVE
        self.metrics.increment('samples_accepted_raw')

    def _commit(self, sample: LocationSample, position: GeoPoint):
        """
        Distance accounting for an accepted point.

        The point has already been appended; only displacements of at
        least min_distance from the previous tracking sample are recorded.
        """
        if self._last_tracking is not None:
            step = distance_m(self._last_tracking.point, position)
            if step >= self.config.min_distance:
                self.ledger.record_distance(step)
                self.metrics.record_histogram('step_distance_m', step)
            else:
                logger.debug("Step %.3fm below min_distance, no distance added", step)

        self._last_tracking = sample

    def _emit_low_accuracy_warning(self, sample: LocationSample):
        self.metrics.increment('low_accuracy_warnings')
        logger.warning(
            "%s: no accurate fix for %.1fs (accuracy %.1fm)",
            LOW_ACCURACY_WARNING, self._window(sample), sample.horizontal_accuracy,
        )
        for callback in list(self._warning_listeners):
            callback()

    def get_statistics(self) -> dict:
        """Get gating statistics for diagnostics."""
        return {
            'state': self._state.value,
            'samples_in': self.metrics.get_counter('samples_in'),
            'accepted_raw': self.metrics.get_counter('samples_accepted_raw'),
            'accepted_filtered': self.metrics.get_counter('samples_accepted_filtered'),
            'warnings': self.metrics.get_counter('low_accuracy_warnings'),
        }
