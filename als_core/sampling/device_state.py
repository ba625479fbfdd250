"""
Device state holders consumed by the sampling policy.

BatteryState is refreshed on demand from the platform's power info.
MotionState is derived from the most recent fix's speed.
"""

import logging
import math
from dataclasses import dataclass

from als_core.proto.fix import Fix

logger = logging.getLogger(__name__)


# Below this speed the device is considered parked
STATIONARY_SPEED_KMH = 1.0


@dataclass
class BatteryState:
    """
    Battery level and power-save flag.

    Attributes:
        level: Battery charge fraction in [0, 1]
        power_save_active: True if the OS power-save mode is on

    Notes:
        - Only refresh() mutates this state; it is never inferred from a Fix
    """

    level: float = 1.0
    power_save_active: bool = False

    def __post_init__(self):
        self.level = _clamp_level(self.level)

    def refresh(self, power_info) -> "BatteryState":
        """
        Re-read battery level and power-save mode in place.

        Args:
            power_info: Object with current_level() and is_power_save_active()

        Returns:
            self, for chaining
        """
        self.level = _clamp_level(power_info.current_level())
        self.power_save_active = bool(power_info.is_power_save_active())

        logger.debug(f"Battery status: level={self.level * 100:.1f}%, "
                     f"power_save={'ON' if self.power_save_active else 'OFF'}")
        return self


@dataclass
class MotionState:
    """
    Current speed and derived stationary flag.

    Attributes:
        speed_kmh: Ground speed of the latest fix (km/h, >= 0)
        stationary: True iff speed_kmh < STATIONARY_SPEED_KMH
    """

    speed_kmh: float = 0.0
    stationary: bool = False

    def update(self, fix: Fix) -> "MotionState":
        """Recompute speed and stationary flag from a new fix."""
        speed = fix.speed_kmh
        if not math.isfinite(speed):
            speed = 0.0

        self.speed_kmh = speed
        self.stationary = speed < STATIONARY_SPEED_KMH
        return self


def _clamp_level(level: float) -> float:
    """Clamp a reported battery level into [0, 1]; NaN reads as empty."""
    level = float(level)
    if math.isnan(level):
        return 0.0
    return min(1.0, max(0.0, level))
