"""
Tracking Controller: continuous sampling with live reconfiguration.

States:
    Stopped --start()--> Active --stop()--> Stopped

While Active, every fix updates the motion state, refreshes the battery
state and re-evaluates the sampling policy. When the new config differs
materially from the one in force, the continuous request is re-issued
(new request first, then the old one is cancelled, so a failed re-issue
leaves the previous request running). Every fix is classified and
forwarded to the listener registry whether or not reconfiguration happened.

Each issued request gets a generation number bound into its callbacks.
Callbacks carrying a superseded generation, or arriving after stop(), are
dropped, so nothing is dispatched once stop() has returned.
Fixes a source delivers from inside request_continuous() (before the
request has returned a handle) are held and processed once the request is
in force.

With a quality filter attached, an ESCALATE_ACCURACY recommendation
forces HIGH_ACCURACY priority until an accurate fix arrives again.

All transitions run under one re-entrant lock per controller; subscribers
may call stop() from inside a delivery.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from als_core.proto.fix import Fix
from als_core.proto.sampling_config import SamplingConfig, Priority
from als_core.sampling.device_state import BatteryState, MotionState
from als_core.sampling.sampling_policy import SamplingPolicy
from als_core.sampling.source_classifier import classify_fix
from als_core.sampling.fix_quality_filter import FixQualityFilter, QualityAction, RejectReason
from als_core.io.interfaces import PositionSource, PowerInfo
from als_core.io.listener_registry import ListenerRegistry
from als_core.metrics import MetricsCollector, get_metrics
from .errors import (
    AcquisitionFailed,
    ReconfigurationFailed,
    SourceUnavailable,
    PoorFixQuality,
)
from .status import TrackingStatus, determine_mode

logger = logging.getLogger(__name__)


@dataclass
class TrackingConfig:
    """
    Configuration for the tracking controller.

    Attributes:
        adaptive: Re-evaluate the sampling policy on every fix
        high_accuracy: Preset used when adaptive is False
        refresh_battery_on_fix: Re-read power info before each re-evaluation
    """

    adaptive: bool = True
    high_accuracy: bool = False
    refresh_battery_on_fix: bool = True


@dataclass(frozen=True)
class TrackingSession:
    """
    One outstanding continuous request.

    Attributes:
        config: Sampling config the request was issued with
        handle: Position source handle of the request
        generation: Generation bound into the request's callbacks
        distance_to_destination_km: Destination distance (< 0 if unknown)
        low_power_override: Caller-forced low-power mode
        accuracy_escalated: HIGH_ACCURACY forced after a poor-quality streak
        active: Always True for a live session
    """

    config: SamplingConfig
    handle: Any
    generation: int
    distance_to_destination_km: float = -1.0
    low_power_override: bool = False
    accuracy_escalated: bool = False
    active: bool = True


class TrackingController:
    """
    Continuous location tracking for one client.

    Usage:
        controller = TrackingController(source, power_info, registry)
        controller.start(initial_distance_km=3.2)

        # position source calls back with fixes; or feed manually:
        controller.on_fix(fix)

        controller.set_distance_to_destination(0.4)   # tightens sampling
        controller.stop()
    """

    def __init__(
        self,
        position_source: PositionSource,
        power_info: PowerInfo,
        registry: ListenerRegistry,
        policy: Optional[SamplingPolicy] = None,
        config: Optional[TrackingConfig] = None,
        quality_filter: Optional[FixQualityFilter] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize tracking controller.

        Args:
            position_source: Platform position source
            power_info: Platform battery/power-save info
            registry: Subscriber fan-out
            policy: Sampling policy (uses defaults if None)
            config: Controller configuration (uses defaults if None)
            quality_filter: Optional filter producing poor-quality advisories
            metrics: Metrics collector (uses process default if None)
        """
        self._source = position_source
        self._power_info = power_info
        self._registry = registry
        self.policy = policy or SamplingPolicy()
        self.config = config or TrackingConfig()
        self.quality_filter = quality_filter
        self.metrics = metrics or get_metrics()

        self._lock = threading.RLock()
        self._session: Optional[TrackingSession] = None
        self._generation = 0
        self._issuing_generation: Optional[int] = None
        self._early_fixes: List[Tuple[int, Fix]] = []

        self.battery = BatteryState()
        self.motion = MotionState()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._session is not None

    @property
    def session(self) -> Optional[TrackingSession]:
        with self._lock:
            return self._session

    @property
    def current_config(self) -> Optional[SamplingConfig]:
        with self._lock:
            return self._session.config if self._session else None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(
        self,
        initial_distance_km: float = -1.0,
        low_power_override: bool = False,
    ) -> TrackingSession:
        """
        Begin continuous tracking.

        Args:
            initial_distance_km: Distance to destination (km), < 0 if unknown
            low_power_override: Force low-power sampling

        Returns:
            The active session (the existing one if already Active)

        Raises:
            AcquisitionFailed: Power info or position source rejected the
                request; the controller stays Stopped
        """
        with self._lock:
            if self._session is not None:
                logger.debug("start() while already tracking, ignoring")
                return self._session

            generation = self._generation + 1
            try:
                self.battery.refresh(self._power_info)
                config = self._evaluate(initial_distance_km, low_power_override)
                handle = self._issue(config, generation)
            except Exception as exc:
                self.metrics.increment('tracking_start_failures')
                self._generation = generation
                self._replay_early_fixes()
                logger.error(f"Failed to start location tracking: {exc}")
                raise AcquisitionFailed(exc) from exc

            self._generation = generation
            self._session = TrackingSession(
                config=config,
                handle=handle,
                generation=generation,
                distance_to_destination_km=initial_distance_km,
                low_power_override=low_power_override,
            )

            if self.quality_filter is not None:
                self.quality_filter.reset()

            self.metrics.increment('tracking_starts')
            self.metrics.record_histogram('sampling_interval_ms', config.interval_ms)
            logger.info(f"Started location tracking: interval={config.interval_ms}ms, "
                        f"priority={config.priority.name}, "
                        f"displacement={config.min_displacement_m:.1f}m")
            self._replay_early_fixes()
            return self._session

    def stop(self) -> bool:
        """
        Stop continuous tracking.

        Returns:
            True if a session was stopped, False if already Stopped
        """
        with self._lock:
            session = self._session
            if session is None:
                return False

            self._session = None
            self._generation += 1
            self._cancel(session.handle)

            self.metrics.increment('tracking_stops')
            logger.info("Stopped location tracking")
            return True

    def on_fix(self, fix: Fix) -> bool:
        """
        Process a fix for the current session.

        Args:
            fix: Fix from the position source

        Returns:
            True if the fix was processed, False if dropped (not Active)
        """
        with self._lock:
            if self._session is None:
                self.metrics.increment_drop('inactive_session')
                logger.debug("Fix received while stopped, dropping")
                return False
            processed = self._process_fix(fix)
            self._replay_early_fixes()
            return processed

    def on_source_unavailable(self) -> bool:
        """
        Report loss of location availability to subscribers.

        Returns:
            True if an advisory was dispatched
        """
        with self._lock:
            if self._session is None:
                return False

            logger.warning("Location source reported unavailable")
            self._registry.dispatch_advisory(SourceUnavailable())
            return True

    def set_distance_to_destination(self, distance_km: float) -> bool:
        """
        Update destination distance and re-evaluate sampling.

        Args:
            distance_km: Distance to destination (km), < 0 if unknown

        Returns:
            True if the request was reconfigured
        """
        with self._lock:
            if self._session is None:
                logger.debug("Destination distance set while stopped, ignoring")
                return False

            self._session = dataclasses.replace(
                self._session, distance_to_destination_km=distance_km
            )
            return self._reevaluate_and_replay()

    def set_low_power_override(self, enabled: bool) -> bool:
        """
        Toggle caller-forced low-power mode and re-evaluate sampling.

        Returns:
            True if the request was reconfigured
        """
        with self._lock:
            if self._session is None:
                return False

            self._session = dataclasses.replace(self._session, low_power_override=enabled)
            return self._reevaluate_and_replay()

    def on_power_state_changed(self) -> bool:
        """
        Re-read battery state (e.g. on a platform battery broadcast) and re-evaluate.

        Returns:
            True if the request was reconfigured
        """
        with self._lock:
            if self._session is None:
                return False

            self._refresh_battery()
            return self._reevaluate_and_replay()

    def status(self) -> TrackingStatus:
        """Snapshot of the controller for display or diagnostics."""
        with self._lock:
            session = self._session
            distance = session.distance_to_destination_km if session else -1.0
            override = session.low_power_override if session else False
            policy_cfg = self.policy.config

            mode = determine_mode(
                active=session is not None,
                battery=self.battery,
                motion=self.motion,
                low_power_override=override,
                distance_to_destination_km=distance,
                critical_level=policy_cfg.critical_battery_level,
                low_level=policy_cfg.low_battery_level,
                near_destination_km=policy_cfg.near_destination_km,
            )

            return TrackingStatus(
                active=session is not None,
                mode=mode,
                battery_level=self.battery.level,
                power_save_active=self.battery.power_save_active,
                low_power_override=override,
                stationary=self.motion.stationary,
                speed_kmh=self.motion.speed_kmh,
                distance_to_destination_km=distance,
                config=session.config if session else None,
            )

    # ------------------------------------------------------------------
    # Internals (called with the lock held)
    # ------------------------------------------------------------------

    def _evaluate(
        self,
        distance_km: float,
        low_power_override: bool,
        accuracy_escalated: bool = False,
    ) -> SamplingConfig:
        if not self.config.adaptive:
            return SamplingConfig.preset(self.config.high_accuracy)

        config = self.policy.evaluate(self.battery, self.motion, low_power_override, distance_km)
        if accuracy_escalated and config.priority != Priority.HIGH_ACCURACY:
            config = dataclasses.replace(config, priority=Priority.HIGH_ACCURACY)
        return config

    def _issue(self, config: SamplingConfig, generation: int) -> Any:
        """Issue a continuous request whose callbacks are bound to generation."""
        self._issuing_generation = generation
        try:
            return self._source.request_continuous(
                config,
                lambda fix: self._handle_fix(generation, fix),
                lambda: self._handle_unavailable(generation),
            )
        finally:
            self._issuing_generation = None

    def _cancel(self, handle: Any):
        try:
            self._source.cancel(handle)
        except Exception as exc:
            logger.warning(f"Failed to cancel location request {handle!r}: {exc}")

    def _is_current(self, generation: int) -> bool:
        return self._session is not None and self._session.generation == generation

    def _handle_fix(self, generation: int, fix: Fix):
        with self._lock:
            if generation == self._issuing_generation:
                # Delivered before request_continuous() returned
                self._early_fixes.append((generation, fix))
                return

            if not self._is_current(generation):
                self.metrics.increment_drop('stale_callback')
                logger.debug(f"Dropping fix from stale request generation {generation}")
                return

            self._process_fix(fix)
            self._replay_early_fixes()

    def _replay_early_fixes(self):
        """Process fixes held while their request was being issued, in arrival order."""
        while self._early_fixes:
            generation, fix = self._early_fixes.pop(0)
            if not self._is_current(generation):
                self.metrics.increment_drop('stale_callback')
                logger.debug(f"Dropping early fix from failed or superseded "
                             f"request generation {generation}")
                continue
            self._process_fix(fix)

    def _handle_unavailable(self, generation: int):
        with self._lock:
            if not self._is_current(generation):
                return
            self.on_source_unavailable()

    def _refresh_battery(self):
        try:
            self.battery.refresh(self._power_info)
        except Exception as exc:
            logger.warning(f"Battery refresh failed, keeping previous state: {exc}")

    def _process_fix(self, fix: Fix) -> bool:
        self.metrics.increment('fixes_received')
        self.motion.update(fix)

        logger.debug(f"Location update: {fix.latitude:.6f}, {fix.longitude:.6f}, "
                     f"speed={self.motion.speed_kmh:.1f} km/h, "
                     f"{'stationary' if self.motion.stationary else 'moving'}")

        if self.config.adaptive:
            if self.config.refresh_battery_on_fix:
                self._refresh_battery()
            self._reevaluate()
            if self._session is None:
                # stop() was called by a subscriber during an error dispatch
                return False

        advisory = self._assess_quality(fix)

        self._registry.dispatch_fix(fix, classify_fix(fix))

        if advisory is not None and self._session is not None:
            self._registry.dispatch_advisory(advisory)
        return True

    def _assess_quality(self, fix: Fix) -> Optional[PoorFixQuality]:
        if self.quality_filter is None or self._session is None:
            return None

        self.quality_filter.assess(fix)
        rejection = self.quality_filter.last_rejection

        if rejection != RejectReason.ACCURACY:
            if rejection == RejectReason.MOVEMENT:
                self.metrics.increment('insignificant_movement_fixes')
            if self._session.accuracy_escalated:
                logger.info("Accurate fix received, releasing forced high accuracy")
                self._set_accuracy_escalated(False)
            return None

        self.metrics.increment('poor_quality_fixes')
        streak = self.quality_filter.poor_streak
        action = self.quality_filter.take_poor_quality_action()
        if action == QualityAction.NONE:
            return None

        if action == QualityAction.ESCALATE_ACCURACY and not self._session.accuracy_escalated:
            logger.info(f"{streak} poor-quality fixes, forcing high accuracy")
            self._set_accuracy_escalated(True)
        return PoorFixQuality(streak, action.value)

    def _set_accuracy_escalated(self, escalated: bool):
        self._session = dataclasses.replace(self._session, accuracy_escalated=escalated)
        self._reevaluate()

    def _reevaluate_and_replay(self) -> bool:
        reconfigured = self._reevaluate()
        self._replay_early_fixes()
        return reconfigured

    def _reevaluate(self) -> bool:
        """Re-issue the request if the policy output changed materially."""
        session = self._session
        if session is None or not self.config.adaptive:
            return False

        new_config = self._evaluate(
            session.distance_to_destination_km,
            session.low_power_override,
            session.accuracy_escalated,
        )
        if not self.policy.is_material_change(session.config, new_config):
            return False

        generation = self._generation + 1
        try:
            handle = self._issue(new_config, generation)
        except Exception as exc:
            self.metrics.increment('reconfiguration_failures')
            self._generation = generation
            logger.warning(f"Reconfiguration failed, keeping interval="
                           f"{session.config.interval_ms}ms: {exc}")
            self._registry.dispatch_error(ReconfigurationFailed(exc))
            return False

        self._generation = generation
        self._session = dataclasses.replace(
            session, config=new_config, handle=handle, generation=generation
        )
        self._cancel(session.handle)

        self.metrics.increment('reconfigurations')
        self.metrics.record_histogram('sampling_interval_ms', new_config.interval_ms)
        logger.info(f"Reconfigured location request: interval {session.config.interval_ms}"
                    f" -> {new_config.interval_ms}ms, priority={new_config.priority.name}, "
                    f"displacement={new_config.min_displacement_m:.1f}m")
        return True
