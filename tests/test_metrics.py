"""
Unit tests for metrics module.

Tests cover:
- Counter increment (single-threaded and multi-threaded)
- Drop reason tracking
- Histogram recording and statistics
- Snapshot and reset functionality
- Thread safety
"""

import logging
import threading
import time

import pytest

from als_core.metrics import MetricsCollector, get_metrics, reset_metrics
from als_core.metrics.counters import CounterSnapshot


class TestMetricsCollectorBasic:
    """Tests for basic metrics collector functionality."""

    def test_initialization(self):
        """Standard counters start at 0."""
        collector = MetricsCollector()

        assert collector.get_counter('fixes_received') == 0
        assert collector.get_counter('reconfigurations') == 0
        assert collector.get_counter('unknown_counter') == 0
        assert 'acquisition_fallbacks' in collector.snapshot().counters

    def test_increment_counter(self):
        collector = MetricsCollector()

        collector.increment('fixes_received')
        assert collector.get_counter('fixes_received') == 1

        collector.increment('fixes_received', 5)
        assert collector.get_counter('fixes_received') == 6

    def test_increment_drop_with_valid_reason(self):
        collector = MetricsCollector()

        collector.increment_drop('stale_callback')

        assert collector.get_counter('fixes_dropped') == 1
        assert collector.get_drop_count('stale_callback') == 1

    def test_increment_drop_unknown_reason(self, caplog):
        """Unknown drop reasons are logged and still counted."""
        collector = MetricsCollector()

        with caplog.at_level(logging.WARNING):
            collector.increment_drop('cosmic_rays')

        assert 'cosmic_rays' in caplog.text
        assert collector.get_counter('fixes_dropped') == 1
        assert collector.get_drop_count('cosmic_rays') == 1

    def test_multiple_drop_reasons(self):
        collector = MetricsCollector()

        collector.increment_drop('stale_callback', 3)
        collector.increment_drop('inactive_session', 5)

        snapshot = collector.snapshot()

        assert snapshot.drop_reasons['stale_callback'] == 3
        assert snapshot.drop_reasons['inactive_session'] == 5
        assert snapshot.total_dropped() == 8


class TestHistograms:
    """Tests for histogram functionality."""

    def test_record_histogram(self):
        collector = MetricsCollector()

        collector.record_histogram('fix_accuracy_m', 8.0)
        collector.record_histogram('fix_accuracy_m', 12.0)
        collector.record_histogram('fix_accuracy_m', 40.0)

        stats = collector.get_histogram_stats('fix_accuracy_m')

        assert stats is not None
        assert stats['count'] == 3
        assert stats['mean'] == pytest.approx(20.0)
        assert stats['min'] == 8.0
        assert stats['max'] == 40.0

    def test_histogram_empty(self):
        collector = MetricsCollector()

        assert collector.get_histogram_stats('nonexistent') is None

    def test_histogram_percentiles(self):
        collector = MetricsCollector()

        for i in range(100):
            collector.record_histogram('test', float(i))

        stats = collector.get_histogram_stats('test')

        assert stats['count'] == 100
        assert 49 < stats['median'] < 51
        assert 94 < stats['p95'] < 96
        assert 98 < stats['p99'] < 100

    def test_histogram_max_samples_bounded(self):
        """Histograms are bounded to prevent memory growth."""
        collector = MetricsCollector()

        for i in range(15000):
            collector.record_histogram('test', float(i), max_samples=1000)

        snapshot = collector.snapshot()

        assert len(snapshot.histograms['test']) <= 1000


class TestSnapshot:
    """Tests for snapshot functionality."""

    def test_snapshot_creates_copy(self):
        collector = MetricsCollector()

        collector.increment('fixes_dispatched', 10)
        snapshot1 = collector.snapshot()

        collector.increment('fixes_dispatched', 5)
        snapshot2 = collector.snapshot()

        assert snapshot1.counters['fixes_dispatched'] == 10
        assert snapshot2.counters['fixes_dispatched'] == 15

    def test_snapshot_timestamp(self):
        collector = MetricsCollector()

        before = time.time()
        snapshot = collector.snapshot()
        after = time.time()

        assert before <= snapshot.timestamp <= after

    def test_snapshot_drop_rate(self):
        collector = MetricsCollector()

        collector.increment('fixes_received', 100)
        collector.increment_drop('stale_callback', 5)
        collector.increment_drop('inactive_session', 3)

        rate = collector.snapshot().drop_rate(100)
        assert rate == pytest.approx(8.0)

    def test_drop_rate_with_no_fixes(self):
        snapshot = CounterSnapshot(timestamp=0.0, counters={}, drop_reasons={}, histograms={})

        assert snapshot.drop_rate(0) == 0.0


class TestReset:
    """Tests for reset functionality."""

    def test_reset_clears_counters(self):
        collector = MetricsCollector()

        collector.increment('fixes_received', 100)
        collector.increment_drop('stale_callback', 5)
        collector.record_histogram('sampling_interval_ms', 30000)

        collector.reset()

        assert collector.get_counter('fixes_received') == 0
        assert collector.get_counter('fixes_dropped') == 0

        snapshot = collector.snapshot()
        assert snapshot.total_dropped() == 0
        assert not snapshot.histograms

    def test_reset_reinitializes_standard_counters(self):
        collector = MetricsCollector()

        collector.increment('reconfigurations', 4)
        collector.reset()

        snapshot = collector.snapshot()
        assert snapshot.counters['reconfigurations'] == 0
        assert snapshot.drop_reasons['stale_callback'] == 0


class TestThreadSafety:
    """Tests for thread-safe operations."""

    def test_concurrent_increment(self):
        collector = MetricsCollector()
        num_threads = 10
        increments_per_thread = 1000

        def worker():
            for _ in range(increments_per_thread):
                collector.increment('fixes_received')

        threads = [threading.Thread(target=worker) for _ in range(num_threads)]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        expected = num_threads * increments_per_thread
        actual = collector.get_counter('fixes_received')

        assert actual == expected, f"Expected {expected}, got {actual}"

    def test_concurrent_drop_reasons(self):
        collector = MetricsCollector()
        num_threads = 5
        increments_per_thread = 200

        def worker(reason: str):
            for _ in range(increments_per_thread):
                collector.increment_drop(reason)

        threads = [
            threading.Thread(target=worker, args=(reason,))
            for reason in ['stale_callback', 'inactive_session']
            for _ in range(num_threads)
        ]

        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = collector.snapshot()

        expected = num_threads * increments_per_thread
        assert snapshot.drop_reasons['stale_callback'] == expected
        assert snapshot.drop_reasons['inactive_session'] == expected
        assert snapshot.counters['fixes_dropped'] == expected * 2


class TestGlobalSingleton:
    """Tests for the process default collector."""

    def test_get_metrics_returns_same_instance(self):
        assert get_metrics() is get_metrics()

    def test_reset_metrics_creates_new_instance(self):
        metrics1 = get_metrics()
        metrics1.increment('test_counter', 100)

        reset_metrics()

        metrics2 = get_metrics()
        assert metrics2 is not metrics1
        assert metrics2.get_counter('test_counter') == 0


class TestDropReasonCodes:
    """Tests for standard drop reason codes."""

    def test_standard_drop_reasons(self):
        assert set(MetricsCollector.DROP_REASONS) == {'stale_callback', 'inactive_session'}

    def test_drop_reasons_initialized_to_zero(self):
        collector = MetricsCollector()
        snapshot = collector.snapshot()

        for reason in collector.DROP_REASONS:
            assert snapshot.drop_reasons[reason] == 0


class TestPrintSummary:
    """Tests for print_summary functionality."""

    def test_print_summary_no_crash(self, capsys):
        collector = MetricsCollector()

        collector.increment('fixes_received', 100)
        collector.increment_drop('stale_callback', 5)
        collector.record_histogram('sampling_interval_ms', 30000)

        collector.print_summary()

        captured = capsys.readouterr()
        assert 'METRICS SUMMARY' in captured.out
        assert 'fixes_received' in captured.out
        assert 'stale_callback' in captured.out
        assert '5.0% of received' in captured.out
