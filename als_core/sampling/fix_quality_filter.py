"""
Fix quality filter with warm-up handling.

Right after a request is issued, positioning hardware reports coarse fixes
while it converges. The filter accepts those leniently during a warm-up
period, tightening the accuracy threshold as runtime grows, then switches to
a strict accuracy bound plus a significant-movement check.

Consecutive poor fixes build a streak; once the streak is long enough the
caller is told to change strategy (relax accuracy during warm-up, escalate
to highest accuracy afterwards).
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import numpy as np

from als_core.proto.fix import Fix

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0


class RejectReason(Enum):
    """Why the last fix was rejected."""

    ACCURACY = "accuracy"      # Counts toward the poor-quality streak
    MOVEMENT = "movement"      # Accurate, but too close to the last significant fix


class QualityAction(Enum):
    """Strategy change recommended after a poor-quality streak."""

    NONE = "none"
    RELAX_ACCURACY = "relax_accuracy"          # Warm-up: take any usable fix
    ESCALATE_ACCURACY = "escalate_accuracy"    # Steady state: request best accuracy


@dataclass
class FixQualityConfig:
    """
    Configuration for the fix quality filter.

    Attributes:
        max_accuracy_m: Accuracy bound after warm-up (m)
        significant_distance_m: Movement required to accept a new fix (m)
        poor_streak_threshold: Consecutive poor fixes before acting
        warmup_fix_count: Acceptable fixes that end warm-up
        warmup_initial_accuracy_m: Lenient accuracy bound at warm-up start (m)
        warmup_tighten_after_s: Runtime after which the lenient bound tightens (s)
        warmup_max_s: Runtime after which warm-up ends regardless (s)
        warmup_tighten_factor: Multiplier applied to the lenient bound per fix
        stuck_min_runtime_s: Runtime before stuck detection applies (s)
        stuck_no_quality_s: Time without a quality fix that counts as stuck (s)
    """

    max_accuracy_m: float = 100.0
    significant_distance_m: float = 50.0
    poor_streak_threshold: int = 3
    warmup_fix_count: int = 5
    warmup_initial_accuracy_m: float = 1000.0
    warmup_tighten_after_s: float = 5.0
    warmup_max_s: float = 20.0
    warmup_tighten_factor: float = 0.8
    stuck_min_runtime_s: float = 30.0
    stuck_no_quality_s: float = 60.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points.

    Args:
        lat1, lon1: First point (degrees)
        lat2, lon2: Second point (degrees)

    Returns:
        Distance in meters
    """
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = np.radians(lon2 - lon1)

    a = np.sin(d_phi / 2.0) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    return float(2.0 * EARTH_RADIUS_M * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a)))


class FixQualityFilter:
    """
    Accept/reject fixes by accuracy and movement, with warm-up leniency.

    Usage:
        quality = FixQualityFilter()

        if quality.assess(fix):
            use(fix)

        action = quality.take_poor_quality_action()
        if action == QualityAction.ESCALATE_ACCURACY:
            ...
    """

    def __init__(
        self,
        config: Optional[FixQualityConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize quality filter.

        Args:
            config: Filter configuration (uses defaults if None)
            clock: Monotonic time source in seconds
        """
        self.config = config or FixQualityConfig()
        self._clock = clock
        self.reset()

    def reset(self):
        """Restart warm-up and clear all history."""
        self.in_warmup = True
        self.warmup_accepted = 0
        self.poor_streak = 0
        self.warmup_threshold_m = self.config.warmup_initial_accuracy_m
        self.last_rejection: Optional[RejectReason] = None
        self._start_time = self._clock()
        self._last_quality_time: Optional[float] = None
        self._last_significant: Optional[Fix] = None
        logger.debug("Fix quality filter reset, warm-up active")

    @property
    def runtime_s(self) -> float:
        """Seconds since construction or the last reset()."""
        return self._clock() - self._start_time

    def assess(self, fix: Fix) -> bool:
        """
        Decide whether a fix is good enough to use.

        Args:
            fix: Incoming fix

        Returns:
            True if the fix is accepted; otherwise last_rejection says why
        """
        accuracy = fix.accuracy_m
        self.last_rejection = None

        if self.in_warmup:
            self._advance_warmup()

        if self.in_warmup:
            if 0 < accuracy < self.warmup_threshold_m:
                self.warmup_accepted += 1
                logger.debug(f"Warm-up: accepted fix {self.warmup_accepted}/"
                             f"{self.config.warmup_fix_count}, accuracy={accuracy:.1f}m")
                if self.warmup_accepted >= self.config.warmup_fix_count:
                    self.in_warmup = False
                    logger.info(f"Warm-up complete after {self.runtime_s:.1f}s")
                return True

            self.poor_streak += 1
            self.last_rejection = RejectReason.ACCURACY
            logger.debug(f"Warm-up: rejected fix, accuracy={accuracy:.1f}m")
            return False

        if not 0 < accuracy < self.config.max_accuracy_m:
            self.poor_streak += 1
            self.last_rejection = RejectReason.ACCURACY
            logger.debug(f"Poor quality fix: accuracy={accuracy:.1f}m")
            return False

        self.poor_streak = 0
        self._last_quality_time = self._clock()

        if self._last_significant is not None:
            moved = haversine_m(
                self._last_significant.latitude, self._last_significant.longitude,
                fix.latitude, fix.longitude,
            )
            if moved < self.config.significant_distance_m:
                self.last_rejection = RejectReason.MOVEMENT
                logger.debug(f"Movement not significant: {moved:.1f}m")
                return False

        self._last_significant = fix
        return True

    def _advance_warmup(self):
        """Tighten the lenient bound with runtime and end warm-up on timeout."""
        runtime = self.runtime_s

        if runtime > self.config.warmup_tighten_after_s:
            self.warmup_threshold_m = max(
                self.config.max_accuracy_m * 2,
                self.warmup_threshold_m * self.config.warmup_tighten_factor,
            )

        if runtime > self.config.warmup_max_s:
            self.in_warmup = False
            logger.info(f"Warm-up forced to end after {runtime:.1f}s")

    def poor_streak_exceeded(self) -> bool:
        """True once consecutive poor fixes reach the threshold."""
        return self.poor_streak >= self.config.poor_streak_threshold

    def take_poor_quality_action(self) -> QualityAction:
        """
        Recommend a strategy change after a poor-quality streak.

        Returns:
            QualityAction (NONE if the streak is below threshold)

        Side Effects:
            - Resets the poor-quality streak when an action is returned
        """
        if not self.poor_streak_exceeded():
            return QualityAction.NONE

        self.poor_streak = 0
        if self.in_warmup:
            logger.info("Poor quality during warm-up, relaxing accuracy")
            return QualityAction.RELAX_ACCURACY

        logger.info("Poor quality after warm-up, escalating accuracy")
        return QualityAction.ESCALATE_ACCURACY

    def is_stuck(self) -> bool:
        """
        Check whether positioning appears stuck.

        Returns:
            True if running long enough and no quality fix arrived recently
        """
        if self._last_quality_time is None:
            return False

        now = self._clock()
        return (
            now - self._start_time > self.config.stuck_min_runtime_s
            and now - self._last_quality_time > self.config.stuck_no_quality_s
        )


def create_default_quality_filter() -> FixQualityFilter:
    """
    Create fix quality filter with default thresholds.

    Returns:
        Configured FixQualityFilter instance
    """
    return FixQualityFilter(FixQualityConfig())
