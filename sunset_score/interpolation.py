"""
Weighted interpolation between the two forecast hours around sunset.

Forecasts are hourly but sunset is not on the hour, so every feature is a
straight-line blend of the hour containing sunset (v0) and the next hour (v1):

    value = v0 * (60 - m) / 60 + v1 * m / 60

where m is the minute of the hour at which the sun sets.
"""

import logging
from typing import Sequence

from sunset_score.errors import InsufficientData

logger = logging.getLogger(__name__)

# Cloud layer attenuation applied to the single cloud-cover observable
HIGH_CLOUD_FACTOR = 1.0
MID_CLOUD_FACTOR = 0.5
LOW_CLOUD_FACTOR = 0.3

LOW_CLOUD_SURGE_THRESHOLD = 0.2


def weighted_average(values: Sequence[float], minute_of_hour: int) -> float:
    """
    Time-weighted average of the first two values.

    Anything past index 1 is ignored. A single value is returned as is.

    Raises:
        InsufficientData: if `values` is empty
    """
    if not values:
        raise InsufficientData(found=0)

    if len(values) == 1:
        return values[0]

    w1 = (60 - minute_of_hour) / 60.0
    w2 = minute_of_hour / 60.0
    return values[0] * w1 + values[1] * w2


def detect_low_cloud_increase(start_low_cloud: float, end_low_cloud: float) -> bool:
    """True when low cloud grows by more than 20 points across the window."""
    return (end_low_cloud - start_low_cloud) > LOW_CLOUD_SURGE_THRESHOLD
