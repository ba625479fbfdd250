"""
Location Fix Schema.

Defines the immutable position sample handed to the core by a position
source, the provider tags a platform may report, and the inferred physical
source attached to a fix before it reaches subscribers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ProviderTag(Enum):
    """Provider reported by the position source alongside a fix."""

    GPS = "gps"
    NETWORK = "network"
    FUSED = "fused"
    UNKNOWN = "unknown"     # Platform reported no provider

    @classmethod
    def parse(cls, raw: Union["ProviderTag", str, None]) -> Optional["ProviderTag"]:
        """
        Map a raw platform provider value to a tag.

        Args:
            raw: ProviderTag, platform provider string, or None

        Returns:
            Matching ProviderTag, UNKNOWN for None/empty, or None when the
            string names a provider this core does not recognize
        """
        if isinstance(raw, ProviderTag):
            return raw
        if raw is None:
            return cls.UNKNOWN

        value = str(raw).strip().lower()
        if not value:
            return cls.UNKNOWN

        for tag in cls:
            if tag.value == value:
                return tag
        return None


class LocationSource(Enum):
    """Inferred physical source of a fix, as delivered to subscribers."""

    GPS = "gps"
    WIFI = "wifi"
    CELL_TOWER = "cell_tower"
    NETWORK = "network"
    CACHED = "cached"       # Last known fix returned in place of a live one


@dataclass(frozen=True)
class Fix:
    """
    A single reported position sample.

    Attributes:
        latitude: Latitude in decimal degrees
        longitude: Longitude in decimal degrees
        speed_m_s: Ground speed in m/s (negative means "not reported")
        accuracy_m: Horizontal accuracy radius in meters
        provider: Provider tag reported with the fix
        timestamp: Fix time (Unix epoch seconds)
    """

    latitude: float
    longitude: float
    speed_m_s: float = 0.0
    accuracy_m: float = 0.0
    provider: ProviderTag = ProviderTag.UNKNOWN
    timestamp: float = 0.0

    def __post_init__(self):
        """Validate coordinates."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")

        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    @property
    def speed_kmh(self) -> float:
        """Ground speed in km/h (unreported speed counts as 0)."""
        return max(0.0, self.speed_m_s) * 3.6

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'speed_m_s': self.speed_m_s,
            'accuracy_m': self.accuracy_m,
            'provider': self.provider.value,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class TaggedFix:
    """
    A fix together with its inferred source.

    Attributes:
        fix: The underlying position sample
        source: Inferred source (CACHED when it came from the last-known fallback)
    """

    fix: Fix
    source: LocationSource

    @property
    def is_cached(self) -> bool:
        """True if this fix was served from the last-known cache."""
        return self.source == LocationSource.CACHED
