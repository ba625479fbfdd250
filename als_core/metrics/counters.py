"""
Metrics counters and histograms for the location core.

Counters:
- Fix flow: received, dispatched, dropped (by reason)
- Controller lifecycle: starts, stops, reconfigurations and their failures
- Acquisition outcomes and subscriber failures

Histograms (bounded): sampling interval in force, reported fix accuracy.

Every dropped fix is counted under a reason code; nothing is dropped silently.
"""

import logging
import threading
import time
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from collections import defaultdict
import numpy as np

logger = logging.getLogger(__name__)

STANDARD_COUNTERS = (
    'fixes_received',
    'fixes_dispatched',
    'fixes_dropped',
    'errors_dispatched',
    'advisories_dispatched',
    'subscriber_failures',
    'tracking_starts',
    'tracking_start_failures',
    'tracking_stops',
    'reconfigurations',
    'reconfiguration_failures',
    'poor_quality_fixes',
    'insignificant_movement_fixes',
    'acquisitions',
    'acquisition_fallbacks',
    'acquisition_failures',
)

# Reason code -> description
DROP_REASONS = {
    'stale_callback': 'Fix delivered for a superseded, failed or cancelled request',
    'inactive_session': 'Fix fed to the controller while tracking is stopped',
}


@dataclass
class CounterSnapshot:
    """Copy of the collector state at one instant."""

    timestamp: float
    counters: Dict[str, int]
    drop_reasons: Dict[str, int]
    histograms: Dict[str, List[float]] = field(default_factory=dict)

    def total_dropped(self) -> int:
        return sum(self.drop_reasons.values())

    def drop_rate(self, total_fixes: int) -> float:
        """Dropped fixes as a percentage of total_fixes."""
        if total_fixes == 0:
            return 0.0
        return (self.total_dropped() / total_fixes) * 100.0


class MetricsCollector:
    """
    Thread-safe counters, drop reasons and histograms.

    Usage:
        metrics = MetricsCollector()
        metrics.increment('reconfigurations')
        metrics.increment_drop('stale_callback')
        metrics.record_histogram('sampling_interval_ms', 45000)

        print(metrics.snapshot().total_dropped())
    """

    DROP_REASONS = DROP_REASONS

    def __init__(self):
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._counters: Dict[str, int] = defaultdict(int)
        self._drop_reasons: Dict[str, int] = defaultdict(int)
        self._histograms: Dict[str, List[float]] = defaultdict(list)
        self._seed()

    def _seed(self):
        """Zero the standard keys so summaries always list them."""
        with self._lock:
            for name in STANDARD_COUNTERS:
                self._counters.setdefault(name, 0)
            for reason in DROP_REASONS:
                self._drop_reasons.setdefault(reason, 0)

    def increment(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] += value

    def increment_drop(self, reason: str, value: int = 1):
        """
        Count dropped fixes under a reason code.

        Args:
            reason: Key of DROP_REASONS (unknown codes are logged, then counted)
            value: Number of fixes dropped
        """
        if reason not in DROP_REASONS:
            logger.warning(f"Unknown drop reason '{reason}'")

        with self._lock:
            self._drop_reasons[reason] += value
            self._counters['fixes_dropped'] += value

    def get_counter(self, counter_name: str) -> int:
        with self._lock:
            return self._counters.get(counter_name, 0)

    def get_drop_count(self, reason: str) -> int:
        with self._lock:
            return self._drop_reasons.get(reason, 0)

    def record_histogram(self, histogram_name: str, value: float, max_samples: int = 10000):
        """
        Append a sample, keeping the newest half once max_samples is exceeded.

        Args:
            histogram_name: Histogram key
            value: Sample value
            max_samples: Bound on retained samples
        """
        with self._lock:
            samples = self._histograms[histogram_name]
            samples.append(value)
            if len(samples) > max_samples:
                del samples[:len(samples) - max_samples // 2]

    def get_histogram_stats(self, histogram_name: str) -> Optional[Dict[str, float]]:
        """
        Summary statistics of a histogram.

        Returns:
            Dict with count, min, max, mean, median, p95, p99
            None if the histogram has no samples
        """
        with self._lock:
            samples = np.asarray(self._histograms.get(histogram_name, []), dtype=float)

        if samples.size == 0:
            return None

        median, p95, p99 = np.percentile(samples, [50, 95, 99])
        return {
            'count': int(samples.size),
            'min': float(samples.min()),
            'max': float(samples.max()),
            'mean': float(samples.mean()),
            'median': float(median),
            'p95': float(p95),
            'p99': float(p99),
        }

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                timestamp=time.time(),
                counters=dict(self._counters),
                drop_reasons=dict(self._drop_reasons),
                histograms={name: list(s) for name, s in self._histograms.items()},
            )

    def reset(self):
        """Clear everything (tests, or a new tracking client)."""
        with self._lock:
            self._counters.clear()
            self._drop_reasons.clear()
            self._histograms.clear()
            self._started_at = time.time()
        self._seed()

    def print_summary(self):
        """Print counters, drop reasons and histogram stats to stdout."""
        snapshot = self.snapshot()
        received = snapshot.counters.get('fixes_received', 0)

        print("\n" + "=" * 70)
        print(f"  METRICS SUMMARY ({time.time() - self._started_at:.1f}s)")
        print("=" * 70)

        print("\nCOUNTERS:")
        for name, value in sorted(snapshot.counters.items()):
            print(f"  {name:30s}: {value:8d}")

        if snapshot.total_dropped() > 0:
            print(f"\nDROPPED ({snapshot.drop_rate(received):.1f}% of received):")
            for reason, count in sorted(snapshot.drop_reasons.items()):
                if count > 0:
                    print(f"  {reason:30s}: {count:8d}")

        if snapshot.histograms:
            print("\nHISTOGRAMS:")
            for name in sorted(snapshot.histograms):
                stats = self.get_histogram_stats(name)
                if stats:
                    print(f"  {name}: count={stats['count']}, mean={stats['mean']:.1f}, "
                          f"p95={stats['p95']:.1f}, max={stats['max']:.1f}")

        print("=" * 70 + "\n")
