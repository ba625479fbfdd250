"""
Collaborator interfaces.

The core talks to the platform only through these narrow seams:
- PositionSource: continuous and one-shot fix requests
- PowerInfo: battery level and power-save mode, queried synchronously
- LocationSubscriber: receives fixes, errors and advisories from the registry

Platform adapters subclass these; SimulatedPositionSource and
StaticPowerInfo are the in-process implementations used by the simulation
runner and the tests.
"""

from typing import Any, Callable, Optional

from als_core.proto.fix import Fix, LocationSource
from als_core.proto.sampling_config import SamplingConfig, Priority


FixCallback = Callable[[Fix], None]
UnavailableCallback = Callable[[], None]


class PositionSource:
    """
    Platform position provider.

    Implementations deliver fixes for a continuous request by calling the
    on_fix callback handed to request_continuous(), and report loss of
    location availability through on_unavailable. Any exception raised from
    a request method is treated as the platform rejecting the request
    (e.g. permission revoked).
    """

    def request_continuous(
        self,
        config: SamplingConfig,
        on_fix: FixCallback,
        on_unavailable: UnavailableCallback,
    ) -> Any:
        """
        Start continuous fix delivery.

        Args:
            config: Sampling parameters for the request
            on_fix: Called once per delivered fix
            on_unavailable: Called when location becomes unavailable

        Returns:
            Opaque handle identifying the request (passed to cancel())
        """
        raise NotImplementedError

    def cancel(self, handle: Any) -> None:
        """Stop the continuous request identified by handle."""
        raise NotImplementedError

    def request_one_shot(self, priority: Priority) -> Optional[Fix]:
        """Request a single fresh fix; None if none could be produced."""
        raise NotImplementedError

    def last_known(self) -> Optional[Fix]:
        """Most recently cached fix, or None."""
        raise NotImplementedError


class PowerInfo:
    """Platform battery and power-save information."""

    def current_level(self) -> float:
        """Battery charge fraction in [0, 1]."""
        raise NotImplementedError

    def is_power_save_active(self) -> bool:
        """True if the OS power-save mode is on."""
        raise NotImplementedError


class LocationSubscriber:
    """
    Receiver of fixes, errors and advisories.

    on_advisory defaults to a no-op; advisories are informational and the
    session they describe is still running.
    """

    def on_fix_delivered(self, fix: Fix, source: LocationSource) -> None:
        raise NotImplementedError

    def on_error(self, cause: Exception) -> None:
        raise NotImplementedError

    def on_advisory(self, advisory: Exception) -> None:
        pass


class CallbackSubscriber(LocationSubscriber):
    """
    Subscriber built from plain callables.

    Usage:
        registry.register("ui", CallbackSubscriber(
            on_fix=lambda fix, source: print(fix, source),
            on_error=lambda cause: print("error", cause),
        ))
    """

    def __init__(
        self,
        on_fix: Callable[[Fix, LocationSource], None],
        on_error: Optional[Callable[[Exception], None]] = None,
        on_advisory: Optional[Callable[[Exception], None]] = None,
    ):
        self._on_fix = on_fix
        self._on_error = on_error
        self._on_advisory = on_advisory

    def on_fix_delivered(self, fix: Fix, source: LocationSource) -> None:
        self._on_fix(fix, source)

    def on_error(self, cause: Exception) -> None:
        if self._on_error is not None:
            self._on_error(cause)

    def on_advisory(self, advisory: Exception) -> None:
        if self._on_advisory is not None:
            self._on_advisory(advisory)
