"""
Fix source classification.

Infers the physical radio technology behind a fix from its provider tag and
horizontal accuracy. This is an accuracy-banded heuristic, not ground truth:
no platform reports the radio used for a fused fix, so accuracy stands in.

Rules, in order:
- GPS provider -> GPS
- NETWORK provider -> WIFI under 100 m, else CELL_TOWER
- FUSED or no provider -> GPS under 50 m, WIFI under 500 m, else CELL_TOWER
- Any other provider -> NETWORK
"""

import math
from typing import Union

from als_core.proto.fix import Fix, ProviderTag, LocationSource

# Accuracy bands (meters)
NETWORK_WIFI_MAX_M = 100.0
FUSED_GPS_MAX_M = 50.0
FUSED_WIFI_MAX_M = 500.0


def classify(provider: Union[ProviderTag, str, None], accuracy_m: float) -> LocationSource:
    """
    Classify a fix by probable physical source.

    Args:
        provider: Provider tag or raw platform provider string (None if absent)
        accuracy_m: Horizontal accuracy in meters

    Returns:
        Inferred LocationSource (never CACHED)

    Notes:
        - Non-finite or negative accuracy counts as unknown, i.e. worst band
    """
    tag = ProviderTag.parse(provider)
    accuracy = _effective_accuracy(accuracy_m)

    if tag == ProviderTag.GPS:
        return LocationSource.GPS

    if tag == ProviderTag.NETWORK:
        return LocationSource.WIFI if accuracy < NETWORK_WIFI_MAX_M else LocationSource.CELL_TOWER

    if tag in (ProviderTag.FUSED, ProviderTag.UNKNOWN):
        if accuracy < FUSED_GPS_MAX_M:
            return LocationSource.GPS
        if accuracy < FUSED_WIFI_MAX_M:
            return LocationSource.WIFI
        return LocationSource.CELL_TOWER

    return LocationSource.NETWORK


def classify_fix(fix: Fix) -> LocationSource:
    """Classify a Fix using its own provider and accuracy."""
    return classify(fix.provider, fix.accuracy_m)


def _effective_accuracy(accuracy_m: float) -> float:
    try:
        accuracy = float(accuracy_m)
    except (TypeError, ValueError):
        return math.inf
    if not math.isfinite(accuracy) or accuracy < 0:
        return math.inf
    return accuracy
