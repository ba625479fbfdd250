"""
Protocol Module: Immutable records exchanged between the core and its collaborators.

- Fix: position sample from the position source
- TaggedFix: fix plus inferred physical source
- SamplingConfig: continuous-request parameters
"""

from .fix import (
    Fix,
    ProviderTag,
    LocationSource,
    TaggedFix,
)
from .sampling_config import (
    SamplingConfig,
    Priority,
)

__all__ = [
    'Fix',
    'ProviderTag',
    'LocationSource',
    'TaggedFix',
    'SamplingConfig',
    'Priority',
]
