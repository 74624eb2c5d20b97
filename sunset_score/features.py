"""
Feature Aggregator: hourly ForecastSamples -> WeatherData around a sunset.

Only the relevance window is used: the forecast hour containing sunset and
the hour after it. Samples keep their input order, and the interpolator only
looks at the first two that qualify.
"""

import logging
from datetime import datetime, tzinfo
from typing import Optional, Sequence

import pandas as pd

from sunset_score.errors import InsufficientData
from sunset_score.interpolation import (
    HIGH_CLOUD_FACTOR,
    LOW_CLOUD_FACTOR,
    MID_CLOUD_FACTOR,
    weighted_average,
)
from sunset_score.models import ForecastSample, WeatherData

logger = logging.getLogger(__name__)

MIN_WINDOW_SAMPLES = 2


def _to_local(ts: datetime, tz: Optional[tzinfo]) -> datetime:
    """Express a sample timestamp in the sunset's time zone."""
    if tz is None or ts.tzinfo is None:
        return ts
    return ts.astimezone(tz)


def samples_to_frame(samples: Sequence[ForecastSample], tz: Optional[tzinfo] = None) -> pd.DataFrame:
    """Tabulate samples with local hour/day columns for window filtering."""
    local_times = [_to_local(s.timestamp, tz) for s in samples]

    return pd.DataFrame({
        "timestamp": local_times,
        "hour": [t.hour for t in local_times],
        "day": [t.date() for t in local_times],
        "cloud_cover": [s.cloud_cover for s in samples],
        "humidity": [s.humidity for s in samples],
        "visibility_km": [s.visibility_km for s in samples],
    })


def select_window(
    samples: Sequence[ForecastSample],
    sunset: datetime,
    same_day: bool = True
) -> pd.DataFrame:
    """
    Rows whose hour is the sunset hour or the next one.

    With same_day=True the row must also fall on the sunset's calendar date
    (the calendar needs this, since a multi-day forecast repeats every hour).
    A sunset in the 23:00 hour therefore only ever matches one row.
    """
    frame = samples_to_frame(samples, sunset.tzinfo)
    if frame.empty:
        return frame

    mask = frame["hour"].isin([sunset.hour, sunset.hour + 1])
    if same_day:
        mask &= frame["day"] == sunset.date()

    return frame.loc[mask]


def aggregate(
    samples: Sequence[ForecastSample],
    sunset: datetime,
    same_day: bool = True
) -> WeatherData:
    """
    Build the WeatherData feature vector for one sunset.

    Raises:
        InsufficientData: fewer than two samples in the relevance window
    """
    window = select_window(samples, sunset, same_day=same_day)

    if len(window) < MIN_WINDOW_SAMPLES:
        logger.info(
            f"[aggregate] Only {len(window)} sample(s) around {sunset.isoformat()} "
            f"(same_day={same_day})"
        )
        raise InsufficientData(target=sunset, found=len(window))

    minute = sunset.minute
    cloud = window["cloud_cover"]

    weather = WeatherData(
        high_cloud=weighted_average((cloud * HIGH_CLOUD_FACTOR).tolist(), minute),
        mid_cloud=weighted_average((cloud * MID_CLOUD_FACTOR).tolist(), minute),
        low_cloud=weighted_average((cloud * LOW_CLOUD_FACTOR).tolist(), minute),
        humidity=weighted_average(window["humidity"].tolist(), minute),
        visibility_km=weighted_average(window["visibility_km"].tolist(), minute),
    )

    logger.debug(
        f"[aggregate] {sunset.isoformat()}: high={weather.high_cloud:.2f} "
        f"mid={weather.mid_cloud:.2f} low={weather.low_cloud:.2f} "
        f"hum={weather.humidity:.2f} vis={weather.visibility_km:.1f}km"
    )
    return weather
