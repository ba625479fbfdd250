"""
In-process position source and power info.

SimulatedPositionSource records every request it receives and lets the
caller push fixes into the active continuous requests, which is how the
simulation runner drives a TrackingController without hardware. It can be
told to reject requests to exercise failure paths, and can deliver a fix to
an already-cancelled handle to reproduce a callback racing stop().
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import numpy as np

from als_core.proto.fix import Fix, ProviderTag
from als_core.proto.sampling_config import SamplingConfig, Priority
from .interfaces import PositionSource, PowerInfo, FixCallback, UnavailableCallback

logger = logging.getLogger(__name__)


@dataclass
class _Request:
    handle: int
    config: SamplingConfig
    on_fix: FixCallback
    on_unavailable: UnavailableCallback
    cancelled: bool = False


class SimulatedPositionSource(PositionSource):
    """
    Scriptable position source.

    Usage:
        source = SimulatedPositionSource()
        controller = TrackingController(source, power, registry)
        controller.start()

        for fix in straight_route((22.29, 114.17), (22.30, 114.18), count=20):
            source.emit(fix)

    Attributes:
        one_shot_fix: Returned by request_one_shot()
        last_known_fix: Returned by last_known()
        continuous_error: Raised by request_continuous() while set
        one_shot_error: Raised by request_one_shot() while set
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handles = itertools.count(1)
        self._requests: Dict[int, _Request] = {}

        self.one_shot_fix: Optional[Fix] = None
        self.last_known_fix: Optional[Fix] = None
        self.continuous_error: Optional[Exception] = None
        self.one_shot_error: Optional[Exception] = None
        self.last_known_error: Optional[Exception] = None

        self.issued: List[Tuple[int, SamplingConfig]] = []
        self.cancelled: List[int] = []
        self.one_shot_priorities: List[Priority] = []

    # ------------------------------------------------------------------
    # PositionSource
    # ------------------------------------------------------------------

    def request_continuous(
        self,
        config: SamplingConfig,
        on_fix: FixCallback,
        on_unavailable: UnavailableCallback,
    ) -> int:
        if self.continuous_error is not None:
            raise self.continuous_error

        with self._lock:
            handle = next(self._handles)
            self._requests[handle] = _Request(handle, config, on_fix, on_unavailable)
            self.issued.append((handle, config))

        logger.debug(f"Continuous request {handle} issued: {config.to_dict()}")
        return handle

    def cancel(self, handle: int) -> None:
        with self._lock:
            request = self._requests.get(handle)
            if request is None or request.cancelled:
                return
            request.cancelled = True
            self.cancelled.append(handle)

        logger.debug(f"Continuous request {handle} cancelled")

    def request_one_shot(self, priority: Priority) -> Optional[Fix]:
        self.one_shot_priorities.append(priority)
        if self.one_shot_error is not None:
            raise self.one_shot_error
        return self.one_shot_fix

    def last_known(self) -> Optional[Fix]:
        if self.last_known_error is not None:
            raise self.last_known_error
        return self.last_known_fix

    # ------------------------------------------------------------------
    # Simulation controls
    # ------------------------------------------------------------------

    @property
    def active_handles(self) -> List[int]:
        """Handles of continuous requests not yet cancelled."""
        with self._lock:
            return [h for h, r in self._requests.items() if not r.cancelled]

    @property
    def active_config(self) -> Optional[SamplingConfig]:
        """Config of the newest active request, if any."""
        with self._lock:
            active = [r for r in self._requests.values() if not r.cancelled]
        return active[-1].config if active else None

    def emit(self, fix: Fix) -> int:
        """
        Deliver a fix to every active continuous request.

        Args:
            fix: Fix to deliver

        Returns:
            Number of requests the fix was delivered to
        """
        logger.debug(f"Emitting fix {fix.to_dict()}")
        with self._lock:
            targets = [r for r in self._requests.values() if not r.cancelled]

        for request in targets:
            request.on_fix(fix)
        return len(targets)

    def deliver(self, handle: int, fix: Fix):
        """Deliver a fix to one request, even if it was already cancelled."""
        with self._lock:
            request = self._requests[handle]
        request.on_fix(fix)

    def emit_unavailable(self) -> int:
        """Report loss of location availability to every active request."""
        with self._lock:
            targets = [r for r in self._requests.values() if not r.cancelled]

        for request in targets:
            request.on_unavailable()
        return len(targets)

    def last_on_fix(self) -> FixCallback:
        """on_fix callback of the most recently issued request."""
        with self._lock:
            handle = max(self._requests)
            return self._requests[handle].on_fix


class StaticPowerInfo(PowerInfo):
    """Power info with settable values."""

    def __init__(self, level: float = 1.0, power_save: bool = False):
        self.level = level
        self.power_save = power_save

    def current_level(self) -> float:
        return self.level

    def is_power_save_active(self) -> bool:
        return self.power_save


def straight_route(
    start: Tuple[float, float],
    end: Tuple[float, float],
    count: int,
    speed_m_s: float = 8.0,
    accuracy_m: float = 8.0,
    provider: ProviderTag = ProviderTag.FUSED,
    t0: float = 0.0,
    dt_s: float = 30.0,
) -> List[Fix]:
    """
    Generate evenly spaced fixes along a straight line.

    Args:
        start: (lat, lon) of the first fix
        end: (lat, lon) of the last fix
        count: Number of fixes
        speed_m_s: Speed reported on every fix
        accuracy_m: Accuracy reported on every fix
        provider: Provider reported on every fix
        t0: Timestamp of the first fix
        dt_s: Spacing between timestamps (s)

    Returns:
        List of Fix in travel order
    """
    if count <= 0:
        return []

    lats = np.linspace(start[0], end[0], count)
    lons = np.linspace(start[1], end[1], count)
    times = t0 + np.arange(count) * dt_s

    return [
        Fix(
            latitude=float(lat),
            longitude=float(lon),
            speed_m_s=speed_m_s,
            accuracy_m=accuracy_m,
            provider=provider,
            timestamp=float(t),
        )
        for lat, lon, t in zip(lats, lons, times)
    ]
