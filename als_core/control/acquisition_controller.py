"""
Acquisition Controller: one-shot "best current fix" with cached fallback.

Fallback chain per call:
1. Request a single fix at the requested priority
2. No fix produced -> last known fix, tagged CACHED
3. No cached fix -> NoLocationAvailable

Any exception from the position source becomes AcquisitionFailed. Nothing
is retried; the caller owns retry policy.
"""

import logging
from typing import Optional

from als_core.proto.fix import Fix, LocationSource, TaggedFix
from als_core.proto.sampling_config import Priority
from als_core.sampling.source_classifier import classify_fix
from als_core.io.interfaces import PositionSource
from als_core.io.listener_registry import ListenerRegistry
from als_core.metrics import MetricsCollector, get_metrics
from .errors import AcquisitionFailed, NoLocationAvailable, LocationError

logger = logging.getLogger(__name__)


class AcquisitionController:
    """
    Stateless one-shot location acquisition.

    Usage:
        acquisition = AcquisitionController(source)

        try:
            tagged = acquisition.get_current_fix()
        except NoLocationAvailable:
            ...
        except AcquisitionFailed as exc:
            log(exc.cause)

        if tagged.is_cached:
            print("Using last known location")

    When constructed with a registry, every outcome is also dispatched to
    subscribers before it is returned or raised.
    """

    def __init__(
        self,
        position_source: PositionSource,
        registry: Optional[ListenerRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize acquisition controller.

        Args:
            position_source: Platform position source
            registry: Optional subscriber fan-out for results
            metrics: Metrics collector (uses process default if None)
        """
        self._source = position_source
        self._registry = registry
        self.metrics = metrics or get_metrics()

    def get_current_fix(self, priority: Priority = Priority.HIGH_ACCURACY) -> TaggedFix:
        """
        Acquire the best currently available fix.

        Args:
            priority: Accuracy/power trade-off for the one-shot request

        Returns:
            TaggedFix with the classified live source, or CACHED

        Raises:
            NoLocationAvailable: No live fix and no cached fix
            AcquisitionFailed: The position source raised
        """
        self.metrics.increment('acquisitions')

        try:
            tagged = self._acquire(priority)
        except LocationError as exc:
            self.metrics.increment('acquisition_failures')
            logger.warning(f"Location acquisition failed: {exc}")
            if self._registry is not None:
                self._registry.dispatch_error(exc)
            raise

        logger.debug(f"Acquired fix from {tagged.source.value}: "
                     f"{tagged.fix.latitude:.6f}, {tagged.fix.longitude:.6f}, "
                     f"accuracy={tagged.fix.accuracy_m:.1f}m")

        if self._registry is not None:
            self._registry.dispatch_fix(tagged.fix, tagged.source)
        return tagged

    def _acquire(self, priority: Priority) -> TaggedFix:
        fix = self._call(self._source.request_one_shot, priority)
        if fix is not None:
            return TaggedFix(fix=fix, source=classify_fix(fix))

        logger.debug("No live fix available, falling back to last known location")
        cached = self._call(self._source.last_known)
        if cached is None:
            raise NoLocationAvailable()

        self.metrics.increment('acquisition_fallbacks')
        return TaggedFix(fix=cached, source=LocationSource.CACHED)

    @staticmethod
    def _call(method, *args) -> Optional[Fix]:
        try:
            return method(*args)
        except Exception as exc:
            raise AcquisitionFailed(exc) from exc
