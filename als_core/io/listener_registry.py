"""
Listener Registry: fan-out of fixes, errors and advisories to subscribers.

Subscribers are keyed by id; registering an existing id replaces the
previous subscriber. Dispatch takes a snapshot of the subscriber set under
the registry's own lock and delivers outside it, so subscribers may
register/unregister from inside a callback. A subscriber that raises is
logged and skipped; delivery to the rest continues.

Dispatch is fire-and-forget: slow subscribers slow the caller, and
buffering is the subscriber's concern.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from als_core.proto.fix import Fix, LocationSource
from als_core.metrics import MetricsCollector, get_metrics

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """
    Thread-safe subscriber map with failure-isolated delivery.

    Usage:
        registry = ListenerRegistry()
        registry.register("map-view", subscriber)

        registry.dispatch_fix(fix, LocationSource.GPS)
        registry.dispatch_error(AcquisitionFailed(cause))

        registry.unregister("map-view")
    """

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        """
        Initialize registry.

        Args:
            metrics: Metrics collector (uses process default if None)
        """
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Any] = {}
        self.metrics = metrics or get_metrics()

    def register(self, subscriber_id: str, subscriber: Any):
        """
        Add or replace a subscriber.

        Args:
            subscriber_id: Unique subscriber key
            subscriber: Object implementing on_fix_delivered() and on_error()
        """
        with self._lock:
            replaced = subscriber_id in self._subscribers
            self._subscribers[subscriber_id] = subscriber

        logger.debug(f"Subscriber '{subscriber_id}' {'replaced' if replaced else 'registered'}")

    def unregister(self, subscriber_id: str) -> bool:
        """
        Remove a subscriber.

        Args:
            subscriber_id: Subscriber key

        Returns:
            True if a subscriber was removed
        """
        with self._lock:
            removed = self._subscribers.pop(subscriber_id, None) is not None

        if removed:
            logger.debug(f"Subscriber '{subscriber_id}' unregistered")
        return removed

    def ids(self) -> List[str]:
        """Ids of currently registered subscribers."""
        with self._lock:
            return list(self._subscribers.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def __contains__(self, subscriber_id: str) -> bool:
        with self._lock:
            return subscriber_id in self._subscribers

    def dispatch_fix(self, fix: Fix, source: LocationSource) -> int:
        """
        Deliver a fix to every subscriber.

        Args:
            fix: Position sample
            source: Inferred (or CACHED) source

        Returns:
            Number of subscribers that accepted the delivery
        """
        delivered = self._deliver('on_fix_delivered', fix, source)
        self.metrics.increment('fixes_dispatched')
        self.metrics.record_histogram('fix_accuracy_m', fix.accuracy_m)
        return delivered

    def dispatch_error(self, cause: Exception) -> int:
        """
        Deliver an error to every subscriber.

        Args:
            cause: Error describing the failure

        Returns:
            Number of subscribers that accepted the delivery
        """
        self.metrics.increment('errors_dispatched')
        return self._deliver('on_error', cause)

    def dispatch_advisory(self, advisory: Exception) -> int:
        """
        Deliver a non-fatal advisory to subscribers that handle advisories.

        Args:
            advisory: Advisory event (e.g. SourceUnavailable)

        Returns:
            Number of subscribers that accepted the delivery
        """
        self.metrics.increment('advisories_dispatched')
        return self._deliver('on_advisory', advisory, optional=True)

    def _snapshot(self) -> List[Tuple[str, Any]]:
        with self._lock:
            return list(self._subscribers.items())

    def _deliver(self, method: str, *args, optional: bool = False) -> int:
        """Call method on each subscriber, isolating failures."""
        delivered = 0
        for subscriber_id, subscriber in self._snapshot():
            handler = getattr(subscriber, method, None)
            if handler is None:
                if not optional:
                    logger.warning(f"Subscriber '{subscriber_id}' has no {method}(), skipping")
                continue

            try:
                handler(*args)
                delivered += 1
            except Exception:
                self.metrics.increment('subscriber_failures')
                logger.exception(f"Subscriber '{subscriber_id}' failed in {method}()")

        return delivered
