"""
Shared fixtures and fakes for the Sunset Score tests.
"""

import asyncio
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from sunset_score.errors import FetchError
from sunset_score.models import Coordinate, ForecastSample
from sunset_score.providers.base import ForecastSource

PARIS_TZ = ZoneInfo("Europe/Paris")
PARIS = Coordinate(48.8566, 2.3522)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class StaticSource(ForecastSource):
    """Returns a fixed sample list and counts calls. Can be told to fail."""

    name = "static"

    def __init__(self, samples: List[ForecastSample]):
        self.samples = samples
        self.calls = 0
        self.fail_with: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None

    async def fetch_hourly(self, coordinate: Coordinate) -> List[ForecastSample]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.samples)


def make_sample(
    when: datetime,
    cloud: float = 0.5,
    humidity: float = 0.5,
    visibility: float = 20.0
) -> ForecastSample:
    return ForecastSample(
        timestamp=when,
        temperature=18.0,
        cloud_cover=cloud,
        humidity=humidity,
        visibility_km=visibility,
        condition="PartlyCloudy",
    )


def day_samples(
    day: date,
    hours=(16, 17, 18, 19, 20),
    tz: ZoneInfo = PARIS_TZ,
    **kwargs
) -> List[ForecastSample]:
    return [make_sample(datetime.combine(day, time(h, 0), tzinfo=tz), **kwargs) for h in hours]


@pytest.fixture
def paris():
    return PARIS


@pytest.fixture
def tz():
    return PARIS_TZ


@pytest.fixture
def utc_clock():
    return FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def failing_error():
    return FetchError("connection refused")
