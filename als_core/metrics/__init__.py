"""
Metrics Module: Diagnostics, counters, histograms.

- Counters: fixes_received, fixes_dispatched, reconfigurations, etc.
- Histograms: sampling interval, fix accuracy
- Drop reason codes for every discarded fix

Usage:
    from als_core.metrics import get_metrics

    metrics = get_metrics()
    metrics.increment('fixes_received')
    metrics.increment_drop('stale_callback')
    metrics.record_histogram('fix_accuracy_m', 12.5)

Components take an explicit collector where isolation matters (tests, one
collector per tracking client) and fall back to the process default.
"""

from .counters import MetricsCollector, CounterSnapshot

# Process default collector
_global_metrics = None


def get_metrics() -> MetricsCollector:
    """
    Get the process default metrics collector.

    Returns:
        MetricsCollector instance
    """
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    return _global_metrics


def reset_metrics():
    """Reset the default collector (for testing)."""
    global _global_metrics
    _global_metrics = MetricsCollector()


__all__ = ['MetricsCollector', 'CounterSnapshot', 'get_metrics', 'reset_metrics']
