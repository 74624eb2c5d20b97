"""
Data model for the Sunset Score engine.

ForecastSample is what a forecast source hands us, one per forecast hour.
WeatherData is the feature vector derived from the samples around sunset.
SunsetScoreResult / SunsetOutlook / DailyForecast are what callers get back.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, NamedTuple, Optional

logger = logging.getLogger(__name__)

# Paris, France - used whenever no better coordinate is known
DEFAULT_LAT = 48.8566
DEFAULT_LON = 2.3522

GOLDEN_HOUR_OFFSET = timedelta(seconds=-3600)
BLUE_HOUR_OFFSET = timedelta(seconds=1200)


def round_half_away(value: float) -> int:
    """Round .5 away from zero (Python's round() goes to even)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class Coordinate(NamedTuple):
    latitude: float
    longitude: float

    def quantized(self, step: float = 0.1) -> "Coordinate":
        """Round both axes to the nearest `step` degrees (0.1 = ~11 km)."""
        factor = round(1 / step)
        return Coordinate(
            round_half_away(self.latitude * factor) / factor,
            round_half_away(self.longitude * factor) / factor,
        )

    def __str__(self) -> str:
        return f"({self.latitude:.4f}, {self.longitude:.4f})"


DEFAULT_COORDINATE = Coordinate(DEFAULT_LAT, DEFAULT_LON)


@dataclass(frozen=True)
class ForecastSample:
    """One hourly forecast record."""
    timestamp: datetime
    temperature: float
    cloud_cover: float    # 0.0-1.0
    humidity: float       # 0.0-1.0
    visibility_km: float  # >= 0
    condition: str = "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "temperature": self.temperature,
            "cloud_cover": self.cloud_cover,
            "humidity": self.humidity,
            "visibility_km": self.visibility_km,
            "condition": self.condition,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ForecastSample":
        return cls(
            timestamp=datetime.fromisoformat(raw["timestamp"]),
            temperature=float(raw["temperature"]),
            cloud_cover=float(raw["cloud_cover"]),
            humidity=float(raw["humidity"]),
            visibility_km=float(raw["visibility_km"]),
            condition=raw.get("condition", "Unknown"),
        )


@dataclass(frozen=True)
class WeatherData:
    """
    Feature vector around sunset.

    mid_cloud and low_cloud are attenuated copies of the cloud cover
    (x0.5 and x0.3), not separately observed layers.
    """
    high_cloud: float
    mid_cloud: float
    low_cloud: float
    humidity: float
    visibility_km: float

    @property
    def total_cloud(self) -> float:
        return self.high_cloud + self.mid_cloud + self.low_cloud


@dataclass(frozen=True)
class SunsetScoreResult:
    score: int  # not clamped, may leave 0-100 for pathological inputs
    afterglow_probability: float
    tyndall_probability: float
    narrative: str


@dataclass(frozen=True)
class SunsetOutlook:
    """Single-day answer: the score plus the times and features behind it."""
    sunset_time: datetime
    result: SunsetScoreResult
    weather: WeatherData

    @property
    def golden_hour(self) -> datetime:
        return self.sunset_time + GOLDEN_HOUR_OFFSET

    @property
    def blue_hour(self) -> datetime:
        return self.sunset_time + BLUE_HOUR_OFFSET

    @property
    def score(self) -> int:
        return self.result.score


@dataclass
class DailyForecast:
    """One calendar day. Only reminder_set changes after creation."""
    date: date
    sunset_time: datetime
    score: int
    afterglow_probability: float
    tyndall_probability: float
    reminder_set: bool = field(default=False)

    def with_reminder(self, reminder_set: bool) -> "DailyForecast":
        return replace(self, reminder_set=reminder_set)


@dataclass(frozen=True)
class FeedbackRecord:
    """A user correction, already carrying the quantized coordinate."""
    coordinate: Coordinate
    predicted_score: int
    user_label: str
    reason: Optional[str]
    submitted_at: datetime
