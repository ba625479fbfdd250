"""
Sampling Module: Device state, sampling policy, fix classification and quality.

Key classes:
- BatteryState / MotionState: Inputs to the policy, refreshed in place
- SamplingPolicy: Battery/motion/proximity -> SamplingConfig
- classify: Provider + accuracy -> inferred physical source
- FixQualityFilter: Warm-up aware accuracy and movement filter
"""

from .device_state import (
    BatteryState,
    MotionState,
    STATIONARY_SPEED_KMH,
)
from .sampling_policy import (
    SamplingPolicy,
    SamplingPolicyConfig,
    create_default_policy,
)
from .source_classifier import (
    classify,
    classify_fix,
)
from .fix_quality_filter import (
    FixQualityFilter,
    FixQualityConfig,
    QualityAction,
    RejectReason,
    haversine_m,
    create_default_quality_filter,
)

__all__ = [
    # Device state
    'BatteryState',
    'MotionState',
    'STATIONARY_SPEED_KMH',
    # Policy
    'SamplingPolicy',
    'SamplingPolicyConfig',
    'create_default_policy',
    # Classification
    'classify',
    'classify_fix',
    # Quality
    'FixQualityFilter',
    'FixQualityConfig',
    'QualityAction',
    'RejectReason',
    'haversine_m',
    'create_default_quality_filter',
]
