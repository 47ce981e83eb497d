"""
Tracking metrics.

Thread-safe tallies of what happened to each location sample: how many
came in, how many were accepted raw or through the estimator, and why the
rest were dropped. Session events (segments, warnings, estimator resets)
are counted alongside, and a few bounded histograms are kept for the
replay summary:
    sample_accuracy_m        reported horizontal accuracy of every sample
    step_distance_m          displacements added to a segment
    estimator_innovation_m   distance between reading and prediction
"""

import logging
import threading
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

import numpy as np

logger = logging.getLogger(__name__)

# Most recent values kept per histogram
HISTOGRAM_WINDOW = 2000

SAMPLE_COUNTERS = (
    'samples_in',
    'samples_accepted_raw',
    'samples_accepted_filtered',
    'samples_dropped',
)

SESSION_COUNTERS = (
    'segments_started',
    'segments_ended',
    'low_accuracy_warnings',
    'estimator_initialized',
    'estimator_resets',
)


@dataclass
class HistogramStats:
    """Summary of one histogram window."""

    count: int
    mean: float
    p95: float
    max: float


@dataclass
class MetricsSnapshot:
    """Point-in-time copy of all counters with histogram summaries."""

    counters: Dict[str, int]
    drop_reasons: Dict[str, int]
    histograms: Dict[str, HistogramStats] = field(default_factory=dict)

    @property
    def samples_accepted(self) -> int:
        return (self.counters.get('samples_accepted_raw', 0)
                + self.counters.get('samples_accepted_filtered', 0))


class MetricsCollector:
    """
    Thread-safe sample and session accounting.

    Usage:
        collector = MetricsCollector()
        collector.increment('samples_in')
        collector.increment_drop('too_soon')
        collector.record_histogram('sample_accuracy_m', 12.0)

        print(collector.format_summary())
    """

    # Reason codes for discarded samples
    DROP_REASONS = {
        'invalid_sample': 'negative or non-finite accuracy',
        'idle': 'received while not tracking',
        'low_accuracy': 'accuracy at or above max_accuracy',
        'too_soon': 'inside min_time_window of last accept',
        'awaiting_fix': 'estimator waiting for an accurate fix',
        'queue_full': 'sample feed overflow',
    }

    def __init__(self, histogram_window: int = HISTOGRAM_WINDOW):
        self._lock = threading.Lock()
        self._histogram_window = histogram_window
        self._counters: Counter = Counter()
        self._drops: Counter = Counter()
        self._histograms: Dict[str, Deque[float]] = {}

    def increment(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] += value

    def increment_drop(self, reason: str, value: int = 1):
        """
        Count discarded samples under a reason code.

        Unknown codes are logged and still counted, so nothing is lost
        from the total.
        """
        if reason not in self.DROP_REASONS:
            logger.warning("Unknown drop reason '%s'", reason)

        with self._lock:
            self._drops[reason] += value
            self._counters['samples_dropped'] += value

    def get_counter(self, counter_name: str) -> int:
        with self._lock:
            return self._counters[counter_name]

    def get_drop_count(self, reason: str) -> int:
        with self._lock:
            return self._drops[reason]

    def record_histogram(self, histogram_name: str, value: float):
        """Add a value; the oldest value falls out once the window is full."""
        with self._lock:
            values = self._histograms.get(histogram_name)
            if values is None:
                values = deque(maxlen=self._histogram_window)
                self._histograms[histogram_name] = values
            values.append(float(value))

    def get_histogram_stats(self, histogram_name: str) -> Optional[HistogramStats]:
        """Summary of a histogram, None if nothing was recorded."""
        with self._lock:
            values = np.fromiter(self._histograms.get(histogram_name, ()), dtype=float)

        if values.size == 0:
            return None

        return HistogramStats(
            count=int(values.size),
            mean=float(values.mean()),
            p95=float(np.percentile(values, 95)),
            max=float(values.max()),
        )

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            counters = dict(self._counters)
            drops = dict(self._drops)
            names = list(self._histograms)

        histograms = {}
        for name in names:
            stats = self.get_histogram_stats(name)
            if stats is not None:
                histograms[name] = stats

        return MetricsSnapshot(counters=counters, drop_reasons=drops, histograms=histograms)

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._drops.clear()
            self._histograms.clear()

    def format_summary(self) -> str:
        """Render the replay report."""
        snapshot = self.snapshot()
        counters = snapshot.counters
        lines: List[str] = ["", "=" * 60, "  METRICS SUMMARY", "=" * 60]

        lines.append("SAMPLES:")
        for name in SAMPLE_COUNTERS:
            lines.append(f"  {name:28s} {counters.get(name, 0):8d}")

        dropped = counters.get('samples_dropped', 0)
        if dropped:
            lines.append("DROP REASONS:")
            for reason, count in sorted(snapshot.drop_reasons.items(), key=lambda kv: -kv[1]):
                if count:
                    note = self.DROP_REASONS.get(reason, 'unknown')
                    lines.append(f"  {reason:28s} {count:8d}  {100.0 * count / dropped:5.1f}%  ({note})")

        lines.append("SESSION:")
        other = sorted(set(counters) - set(SAMPLE_COUNTERS) - set(SESSION_COUNTERS))
        for name in list(SESSION_COUNTERS) + other:
            lines.append(f"  {name:28s} {counters.get(name, 0):8d}")

        if snapshot.histograms:
            lines.append("HISTOGRAMS:")
            for name, stats in sorted(snapshot.histograms.items()):
                lines.append(
                    f"  {name:28s} n={stats.count} mean={stats.mean:.2f} "
                    f"p95={stats.p95:.2f} max={stats.max:.2f}"
                )

        lines.append("=" * 60)
        return "\n".join(lines)

    def print_summary(self):
        print(self.format_summary())
