"""
Error types raised by the tracking core.

Gating rejections (low accuracy, sample too soon) are normal outcomes and are
never raised; these errors cover caller contract violations only.
"""


class TrackingError(Exception):
    """Base class for all track_core errors."""


class InvalidSampleError(TrackingError, ValueError):
    """Location sample is malformed (negative accuracy, non-finite values)."""


class NoOpenSegmentError(TrackingError):
    """A ledger operation needs a segment but none has been started."""


class InvalidConfigError(TrackingError, ValueError):
    """Gate or estimator configuration is inconsistent."""
