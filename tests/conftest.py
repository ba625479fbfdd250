"""
Pytest configuration and shared fixtures for the adaptive location sampling tests.

Provides fixes, device states, a scriptable position source, a recording
subscriber and pre-wired controllers.
"""

import sys
from pathlib import Path
from typing import List, Tuple

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from als_core.proto import Fix, ProviderTag, LocationSource
from als_core.sampling import BatteryState, MotionState, SamplingPolicy
from als_core.control import TrackingController, TrackingConfig, AcquisitionController
from als_core.io import (
    ListenerRegistry,
    LocationSubscriber,
    SimulatedPositionSource,
    StaticPowerInfo,
)
from als_core.metrics import MetricsCollector


# =============================================================================
# Helpers
# =============================================================================


def make_fix(
    speed_m_s: float = 10.0,
    accuracy_m: float = 10.0,
    provider: ProviderTag = ProviderTag.FUSED,
    latitude: float = 22.2900,
    longitude: float = 114.1700,
    timestamp: float = 1_700_000_000.0,
) -> Fix:
    """Build a Fix with moving, accurate defaults."""
    return Fix(
        latitude=latitude,
        longitude=longitude,
        speed_m_s=speed_m_s,
        accuracy_m=accuracy_m,
        provider=provider,
        timestamp=timestamp,
    )


class RecordingSubscriber(LocationSubscriber):
    """Subscriber that records every delivery."""

    def __init__(self):
        self.fixes: List[Tuple[Fix, LocationSource]] = []
        self.errors: List[Exception] = []
        self.advisories: List[Exception] = []

    def on_fix_delivered(self, fix: Fix, source: LocationSource) -> None:
        self.fixes.append((fix, source))

    def on_error(self, cause: Exception) -> None:
        self.errors.append(cause)

    def on_advisory(self, advisory: Exception) -> None:
        self.advisories.append(advisory)


class RaisingSubscriber(LocationSubscriber):
    """Subscriber whose every callback raises."""

    def on_fix_delivered(self, fix: Fix, source: LocationSource) -> None:
        raise RuntimeError("subscriber exploded")

    def on_error(self, cause: Exception) -> None:
        raise RuntimeError("subscriber exploded")

    def on_advisory(self, advisory: Exception) -> None:
        raise RuntimeError("subscriber exploded")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector isolated from the process default."""
    return MetricsCollector()


@pytest.fixture
def full_battery() -> BatteryState:
    return BatteryState(level=1.0, power_save_active=False)


@pytest.fixture
def moving() -> MotionState:
    return MotionState(speed_kmh=30.0, stationary=False)


@pytest.fixture
def policy() -> SamplingPolicy:
    return SamplingPolicy()


@pytest.fixture
def source() -> SimulatedPositionSource:
    return SimulatedPositionSource()


@pytest.fixture
def power() -> StaticPowerInfo:
    return StaticPowerInfo(level=1.0, power_save=False)


@pytest.fixture
def registry(metrics) -> ListenerRegistry:
    return ListenerRegistry(metrics)


@pytest.fixture
def subscriber(registry) -> RecordingSubscriber:
    """Recording subscriber already registered as 'recorder'."""
    recorder = RecordingSubscriber()
    registry.register("recorder", recorder)
    return recorder


@pytest.fixture
def controller(source, power, registry, metrics) -> TrackingController:
    """Adaptive tracking controller wired to the simulated source."""
    return TrackingController(
        source,
        power,
        registry,
        config=TrackingConfig(),
        metrics=metrics,
    )


@pytest.fixture
def acquisition(source, registry, metrics) -> AcquisitionController:
    return AcquisitionController(source, registry=registry, metrics=metrics)
