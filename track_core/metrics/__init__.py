"""
Metrics Module: Diagnostics, counters, histograms.

Every discarded sample is counted under a reason code so that gating
behaviour can be inspected after a session.

Usage:
    from track_core.metrics import get_metrics

    metrics = get_metrics()
    metrics.increment('samples_in')
    metrics.increment_drop('low_accuracy')
    metrics.record_histogram('sample_accuracy_m', 7.5)
"""

from .counters import HistogramStats, MetricsCollector, MetricsSnapshot

# Global singleton for easy access
_global_metrics = None


def get_metrics() -> MetricsCollector:
    """
    Get the global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    return _global_metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    global _global_metrics
    _global_metrics = MetricsCollector()


__all__ = ['HistogramStats', 'MetricsCollector', 'MetricsSnapshot', 'get_metrics', 'reset_metrics']
