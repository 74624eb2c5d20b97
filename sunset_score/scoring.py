"""
Score Model and Phenomena Detector

Pure functions over WeatherData:

    cloud_factor      = (high * 0.5 + mid * 0.1) * (1 - low)
    humidity_factor   = 1.2 - humidity
    visibility_factor = min(visibility_km / 20, 1.2)
    score             = round(cloud_factor * humidity_factor * visibility_factor * 100)

The score is NOT clamped: humidity above 1.2 gives a negative score.

Phenomena are hard threshold gates, not smooth functions:
- Afterglow: bright high cloud over a clear, very transparent low atmosphere
- Tyndall: crepuscular rays under partial, humid cloud
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from sunset_score.models import SunsetScoreResult, WeatherData, round_half_away

logger = logging.getLogger(__name__)

HIGH_CLOUD_WEIGHT = 0.5
MID_CLOUD_WEIGHT = 0.1
HUMIDITY_CEILING = 1.2
VISIBILITY_REFERENCE_KM = 20.0
VISIBILITY_FACTOR_CAP = 1.2

# Afterglow gate
AFTERGLOW_MAX_LOW_CLOUD = 0.05
AFTERGLOW_MIN_VISIBILITY_KM = 30.0
AFTERGLOW_MIN_HIGH_CLOUD = 0.5

# Tyndall gate
TYNDALL_MIN_TOTAL_CLOUD = 0.3
TYNDALL_MAX_TOTAL_CLOUD = 0.7
TYNDALL_IDEAL_TOTAL_CLOUD = 0.55
TYNDALL_MIN_HUMIDITY = 0.7


class ScoreBand(Enum):
    """Narrative brackets. HIGH is [80, 100], MEDIUM is [50, 80)."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


NARRATIVES = {
    ScoreBand.HIGH: "likely dramatic fire-cloud sunset, prepare a camera",
    ScoreBand.MEDIUM: "moderate clouds, possible gentle pink hues",
    ScoreBand.LOW: "dull sky, wait for next opportunity.",
}


def calculate_score(weather: WeatherData) -> int:
    cloud_factor = (
        (weather.high_cloud * HIGH_CLOUD_WEIGHT + weather.mid_cloud * MID_CLOUD_WEIGHT)
        * (1 - weather.low_cloud)
    )
    humidity_factor = HUMIDITY_CEILING - weather.humidity
    visibility_factor = min(weather.visibility_km / VISIBILITY_REFERENCE_KM, VISIBILITY_FACTOR_CAP)

    raw_score = cloud_factor * humidity_factor * visibility_factor * 100
    return round_half_away(raw_score)


def score_band(score: int) -> ScoreBand:
    # Scores above 100 are out of every bracket and read as LOW
    if 80 <= score <= 100:
        return ScoreBand.HIGH
    elif 50 <= score < 80:
        return ScoreBand.MEDIUM
    else:
        return ScoreBand.LOW


def narrative_for(score: int) -> str:
    return NARRATIVES[score_band(score)]


def calculate_special_phenomena(
    weather: WeatherData,
    sunset_time: Optional[datetime] = None
) -> Tuple[float, float]:
    """
    Probabilities (0-100) of afterglow and the Tyndall effect.

    Args:
        weather: Feature vector around sunset
        sunset_time: Accepted for callers that have it; the gates do not use it

    Returns:
        (afterglow, tyndall)
    """
    high = weather.high_cloud
    low = weather.low_cloud
    humidity = weather.humidity
    total_cloud = weather.total_cloud

    afterglow = 0.0
    if (low < AFTERGLOW_MAX_LOW_CLOUD
            and weather.visibility_km > AFTERGLOW_MIN_VISIBILITY_KM
            and high > AFTERGLOW_MIN_HIGH_CLOUD):
        afterglow = high * 100

    tyndall = 0.0
    if TYNDALL_MIN_TOTAL_CLOUD < total_cloud < TYNDALL_MAX_TOTAL_CLOUD and humidity > TYNDALL_MIN_HUMIDITY:
        deviation = abs(total_cloud - TYNDALL_IDEAL_TOTAL_CLOUD)
        tyndall = (1 - deviation) * humidity * 100

    return afterglow, tyndall


def calculate_sunset_score(
    weather: WeatherData,
    sunset_time: Optional[datetime] = None
) -> SunsetScoreResult:
    """Score, phenomena and narrative in one result."""
    score = calculate_score(weather)
    afterglow, tyndall = calculate_special_phenomena(weather, sunset_time)

    logger.debug(
        f"[calculate_sunset_score] score={score} afterglow={afterglow:.1f} tyndall={tyndall:.1f}"
    )

    return SunsetScoreResult(
        score=score,
        afterglow_probability=afterglow,
        tyndall_probability=tyndall,
        narrative=narrative_for(score),
    )
