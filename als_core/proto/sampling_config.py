"""
Sampling Configuration Schema.

A SamplingConfig is the concrete request issued to a position source: how
often to sample, how far the device must move between samples, which
accuracy/power trade-off to use, and how long the platform may batch.
"""

from dataclasses import dataclass
from enum import Enum


class Priority(Enum):
    """Accuracy/power trade-off requested from the position source."""

    HIGH_ACCURACY = "high_accuracy"
    BALANCED = "balanced"
    LOW_POWER = "low_power"


@dataclass(frozen=True)
class SamplingConfig:
    """
    Concrete continuous-request parameters.

    Attributes:
        interval_ms: Target interval between fixes (ms)
        min_displacement_m: Minimum movement before a new fix is reported (m)
        priority: Accuracy/power trade-off
        max_batch_delay_ms: Longest the platform may hold fixes before delivering (ms)
        min_interval_ms: Fastest the platform may deliver fixes (ms)

    Notes:
        - min_interval_ms <= interval_ms <= max_batch_delay_ms always holds
        - Compared structurally; see SamplingPolicy.is_material_change()
    """

    interval_ms: int
    min_displacement_m: float
    priority: Priority
    max_batch_delay_ms: int
    min_interval_ms: int

    def __post_init__(self):
        """Validate interval ordering."""
        if self.interval_ms <= 0:
            raise ValueError(f"Interval must be positive: {self.interval_ms}")

        if self.min_displacement_m < 0:
            raise ValueError(f"Displacement cannot be negative: {self.min_displacement_m}")

        if not self.min_interval_ms <= self.interval_ms <= self.max_batch_delay_ms:
            raise ValueError(
                f"Expected min_interval <= interval <= max_batch_delay, got "
                f"{self.min_interval_ms} / {self.interval_ms} / {self.max_batch_delay_ms}"
            )

    @classmethod
    def preset(cls, high_accuracy: bool) -> "SamplingConfig":
        """
        Fixed request used when adaptive sampling is disabled.

        Args:
            high_accuracy: True for navigation-grade sampling, False for balanced

        Returns:
            SamplingConfig preset
        """
        if high_accuracy:
            return cls(
                interval_ms=10000,
                min_displacement_m=5.0,
                priority=Priority.HIGH_ACCURACY,
                max_batch_delay_ms=15000,
                min_interval_ms=5000,
            )
        return cls(
            interval_ms=30000,
            min_displacement_m=25.0,
            priority=Priority.BALANCED,
            max_batch_delay_ms=60000,
            min_interval_ms=15000,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            'interval_ms': self.interval_ms,
            'min_displacement_m': self.min_displacement_m,
            'priority': self.priority.name,
            'max_batch_delay_ms': self.max_batch_delay_ms,
            'min_interval_ms': self.min_interval_ms,
        }
