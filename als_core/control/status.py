"""
Tracking status snapshot.

Summarizes why the controller is sampling the way it is, for display by a
host (foreground-service text, diagnostics screen) without the core knowing
anything about how it is rendered.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from als_core.proto.sampling_config import SamplingConfig
from als_core.sampling.device_state import BatteryState, MotionState


class TrackingMode(Enum):
    """Dominant reason behind the current sampling behavior."""

    STOPPED = "stopped"
    CRITICAL_BATTERY = "critical_battery"
    BATTERY_SAVING = "battery_saving"
    STATIONARY = "stationary"
    NEAR_DESTINATION = "near_destination"
    OPTIMIZED = "optimized"


def determine_mode(
    active: bool,
    battery: BatteryState,
    motion: MotionState,
    low_power_override: bool,
    distance_to_destination_km: float,
    critical_level: float = 0.05,
    low_level: float = 0.15,
    near_destination_km: float = 0.5,
) -> TrackingMode:
    """
    Pick the mode that best describes the current sampling.

    Checked in priority order: critical battery, battery saving, stationary,
    near destination, otherwise optimized.
    """
    if not active:
        return TrackingMode.STOPPED
    if battery.level <= critical_level:
        return TrackingMode.CRITICAL_BATTERY
    if battery.level <= low_level or battery.power_save_active or low_power_override:
        return TrackingMode.BATTERY_SAVING
    if motion.stationary:
        return TrackingMode.STATIONARY
    if 0 < distance_to_destination_km < near_destination_km:
        return TrackingMode.NEAR_DESTINATION
    return TrackingMode.OPTIMIZED


@dataclass(frozen=True)
class TrackingStatus:
    """
    Point-in-time view of a TrackingController.

    Attributes:
        active: True while a continuous request is outstanding
        mode: Dominant reason for the current sampling
        battery_level: Battery fraction at the last refresh
        power_save_active: OS power-save flag at the last refresh
        low_power_override: Caller-forced low-power mode
        stationary: Stationary flag from the latest fix
        speed_kmh: Speed of the latest fix (km/h)
        distance_to_destination_km: Destination distance (< 0 if unknown)
        config: Sampling config in force (None when stopped)
    """

    active: bool
    mode: TrackingMode
    battery_level: float
    power_save_active: bool
    low_power_override: bool
    stationary: bool
    speed_kmh: float
    distance_to_destination_km: float
    config: Optional[SamplingConfig] = None

    def describe(self) -> str:
        """Short human-readable summary of the mode."""
        if self.mode == TrackingMode.STOPPED:
            return "Location tracking stopped"
        if self.mode == TrackingMode.CRITICAL_BATTERY:
            return "Critical battery - minimal location tracking active"
        if self.mode == TrackingMode.BATTERY_SAVING:
            return "Battery saving location tracking active"
        if self.mode == TrackingMode.STATIONARY:
            return "Device stationary - reduced location tracking active"
        if self.mode == TrackingMode.NEAR_DESTINATION:
            return f"Near destination - {self.distance_to_destination_km * 1000:.0f} meters away"
        return "Optimized location tracking active"

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            'active': self.active,
            'mode': self.mode.name,
            'battery_level': self.battery_level,
            'power_save_active': self.power_save_active,
            'low_power_override': self.low_power_override,
            'stationary': self.stationary,
            'speed_kmh': self.speed_kmh,
            'distance_to_destination_km': self.distance_to_destination_km,
            'config': self.config.to_dict() if self.config else None,
        }
