"""
I/O Module: Collaborator interfaces, subscriber fan-out, simulated source.

- PositionSource / PowerInfo: the only seams to the platform
- ListenerRegistry: failure-isolated fan-out to subscribers
- SimulatedPositionSource / StaticPowerInfo: in-process implementations
"""

from .interfaces import (
    PositionSource,
    PowerInfo,
    LocationSubscriber,
    CallbackSubscriber,
)
from .listener_registry import ListenerRegistry
from .simulated_source import (
    SimulatedPositionSource,
    StaticPowerInfo,
    straight_route,
)

__all__ = [
    'PositionSource',
    'PowerInfo',
    'LocationSubscriber',
    'CallbackSubscriber',
    'ListenerRegistry',
    'SimulatedPositionSource',
    'StaticPowerInfo',
    'straight_route',
]
