"""
Control Module: Request lifecycle state machines.

- TrackingController: continuous sampling, reconfigured as the policy changes
- AcquisitionController: one-shot fix with cached fallback
- Error taxonomy and tracking status
"""

from .errors import (
    LocationError,
    NoLocationAvailable,
    AcquisitionFailed,
    ReconfigurationFailed,
    SourceUnavailable,
    PoorFixQuality,
)
from .status import (
    TrackingMode,
    TrackingStatus,
    determine_mode,
)
from .tracking_controller import (
    TrackingController,
    TrackingConfig,
    TrackingSession,
)
from .acquisition_controller import AcquisitionController

__all__ = [
    # Errors
    'LocationError',
    'NoLocationAvailable',
    'AcquisitionFailed',
    'ReconfigurationFailed',
    'SourceUnavailable',
    'PoorFixQuality',
    # Status
    'TrackingMode',
    'TrackingStatus',
    'determine_mode',
    # Controllers
    'TrackingController',
    'TrackingConfig',
    'TrackingSession',
    'AcquisitionController',
]
