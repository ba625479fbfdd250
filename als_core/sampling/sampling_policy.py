"""
Adaptive Sampling Policy.

Maps battery, power-save, motion and destination proximity onto a concrete
SamplingConfig. Stages are applied in order; each stage may only make
sampling less frequent and less precise, except the proximity stage, which
runs last and may tighten sampling regardless of battery pressure so the
final approach to a destination is tracked accurately.

Stages:
1. Baseline: default interval, BALANCED, 10 m displacement
2. Battery tier (critical / low / medium)
3. Power-save mode or caller low-power override
4. Stationary device
5. Destination proximity (near: tighten, far: relax)
6. Derived min interval and batching window
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple
import numpy as np

from als_core.proto.sampling_config import SamplingConfig, Priority
from .device_state import BatteryState, MotionState

logger = logging.getLogger(__name__)


@dataclass
class SamplingPolicyConfig:
    """
    Configuration for the sampling policy.

    Attributes:
        default_interval_ms: Baseline interval (ms)
        default_displacement_m: Baseline minimum displacement (m)
        critical_battery_level: Battery fraction at or below which sampling is minimal
        low_battery_level: Battery fraction at or below which LOW_POWER is used
        medium_battery_level: Battery fraction at or below which sampling is relaxed
        near_destination_km: Proximity under which sampling is tightened
        far_destination_km: Distance over which sampling is relaxed
        near_max_interval_ms: Longest interval allowed near the destination (ms)
        interval_tiers_ms: Ladder used to measure interval changes in tiers
        interval_tier_tolerance: Tier difference tolerated without reconfiguring
    """

    default_interval_ms: int = 30000
    default_displacement_m: float = 10.0
    critical_battery_level: float = 0.05
    low_battery_level: float = 0.15
    medium_battery_level: float = 0.30
    near_destination_km: float = 0.5
    far_destination_km: float = 10.0
    near_max_interval_ms: int = 15000
    interval_tiers_ms: Tuple[int, ...] = field(
        default=(15000, 30000, 45000, 60000, 120000)
    )
    interval_tier_tolerance: int = 1

    def __post_init__(self):
        if self.default_interval_ms < 1:
            raise ValueError(f"Default interval must be positive: {self.default_interval_ms}")

        if list(self.interval_tiers_ms) != sorted(self.interval_tiers_ms):
            raise ValueError("Interval tiers must be sorted ascending")


class SamplingPolicy:
    """
    Pure policy function producing SamplingConfig from device state.

    Usage:
        policy = SamplingPolicy()
        config = policy.evaluate(battery, motion, low_power_override=False,
                                 distance_to_destination_km=2.0)

        if policy.is_material_change(current, config):
            # re-issue the continuous request
            ...
    """

    def __init__(self, config: Optional[SamplingPolicyConfig] = None):
        """
        Initialize sampling policy.

        Args:
            config: Policy configuration (uses defaults if None)
        """
        self.config = config or SamplingPolicyConfig()
        self._tiers = np.asarray(self.config.interval_tiers_ms, dtype=np.int64)

    def evaluate(
        self,
        battery: BatteryState,
        motion: MotionState,
        low_power_override: bool = False,
        distance_to_destination_km: float = -1.0,
    ) -> SamplingConfig:
        """
        Compute the sampling configuration for the given state.

        Args:
            battery: Current battery state
            motion: Current motion state
            low_power_override: Caller-forced low-power mode
            distance_to_destination_km: Distance to destination (km), < 0 if unknown

        Returns:
            SamplingConfig satisfying min_interval <= interval <= max_batch_delay
        """
        cfg = self.config
        default = cfg.default_interval_ms

        # Baseline
        interval = default
        priority = Priority.BALANCED
        displacement = cfg.default_displacement_m

        # Battery tiers, most restrictive first
        level = battery.level
        if level <= cfg.critical_battery_level:
            interval = max(120000, default * 4)
            priority = Priority.LOW_POWER
            displacement = 50.0
        elif level <= cfg.low_battery_level:
            interval = max(60000, default * 2)
            priority = Priority.LOW_POWER
            displacement = 30.0
        elif level <= cfg.medium_battery_level:
            interval = max(45000, default)
            displacement = 20.0

        # Power-save mode or caller override
        if battery.power_save_active or low_power_override:
            interval = max(interval, 60000)
            priority = Priority.LOW_POWER
            displacement = max(displacement, 30.0)

        # Parked device
        if motion.stationary:
            interval = max(interval * 2, 60000)
            displacement = max(displacement * 2, 50.0)

        # Proximity to destination (may tighten past every earlier stage)
        distance = distance_to_destination_km
        if distance is not None and distance > 0:
            if distance < cfg.near_destination_km:
                interval = max(1, min(interval // 2, cfg.near_max_interval_ms))
                priority = Priority.HIGH_ACCURACY
                displacement = 5.0
            elif distance > cfg.far_destination_km:
                interval = max(interval, 60000)
                displacement = max(displacement, 50.0)

        result = SamplingConfig(
            interval_ms=int(interval),
            min_displacement_m=float(displacement),
            priority=priority,
            max_batch_delay_ms=int(interval) * 2,
            min_interval_ms=int(interval) // 2,
        )

        logger.debug(
            f"Sampling policy: battery={level:.2f}, power_save={battery.power_save_active}, "
            f"override={low_power_override}, stationary={motion.stationary}, "
            f"distance_km={distance_to_destination_km} -> interval={result.interval_ms}ms, "
            f"priority={result.priority.name}, displacement={result.min_displacement_m:.1f}m"
        )
        return result

    def interval_tier(self, interval_ms: int) -> int:
        """
        Position of an interval on the tier ladder.

        Args:
            interval_ms: Sampling interval (ms)

        Returns:
            Number of ladder rungs at or below interval_ms
        """
        return int(np.searchsorted(self._tiers, interval_ms, side='right'))

    def is_material_change(
        self,
        old: Optional[SamplingConfig],
        new: SamplingConfig,
    ) -> bool:
        """
        Decide whether a new config warrants re-issuing the request.

        Args:
            old: Config currently in force (None if nothing issued)
            new: Freshly evaluated config

        Returns:
            True if priority or displacement changed, or the interval moved
            by more than the tier tolerance
        """
        if old is None:
            return True

        if old.priority != new.priority:
            return True

        if old.min_displacement_m != new.min_displacement_m:
            return True

        tier_delta = abs(self.interval_tier(old.interval_ms) - self.interval_tier(new.interval_ms))
        return tier_delta > self.config.interval_tier_tolerance


def create_default_policy() -> SamplingPolicy:
    """
    Create sampling policy with the default 30 s baseline.

    Returns:
        Configured SamplingPolicy instance
    """
    return SamplingPolicy(SamplingPolicyConfig(default_interval_ms=30000))
