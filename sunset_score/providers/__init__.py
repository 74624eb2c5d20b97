"""
Forecast sources for the Sunset Score engine.

1. Open-Meteo - live hourly forecast (cloud cover, humidity, visibility)
2. Synthetic  - seedable random generator for offline runs and tests
"""

from typing import Optional
from zoneinfo import ZoneInfo

from sunset_score.providers.base import ForecastSource
from sunset_score.providers.open_meteo import (
    OpenMeteoSource,
    parse_hourly,
    weather_code_to_condition,
)
from sunset_score.providers.synthetic import SyntheticSource


def get_source(
    name: str,
    tz: ZoneInfo,
    days: int = 7,
    seed: Optional[int] = None
) -> ForecastSource:
    """Build a forecast source by name ('open_meteo' or 'synthetic')."""
    if name == OpenMeteoSource.name:
        return OpenMeteoSource(tz, days=days)
    if name == SyntheticSource.name:
        return SyntheticSource(tz, hours=days * 24, seed=seed)
    raise ValueError(f"Unknown forecast source '{name}'")


__all__ = [
    "ForecastSource",
    "OpenMeteoSource",
    "SyntheticSource",
    "get_source",
    "parse_hourly",
    "weather_code_to_condition",
]
