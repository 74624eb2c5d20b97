"""
Scoring Orchestrator for the Sunset Score engine

Pipeline (one scoring request):
1. Solar Time Estimator -> sunset instant for the day
2. Forecast Cache       -> hourly samples (the only awaited step)
3. Feature Aggregator   -> WeatherData around sunset
4. Score Model          -> score + narrative
5. Phenomena Detector   -> afterglow / Tyndall probabilities

Steps 3-5 run synchronously, in that order, after the forecast arrives.

Single-day mode (today) reports InsufficientData as a failure.
Calendar mode (calendar) skips days with insufficient data: the result list
simply omits them, so one bad day never breaks the whole view.

Collaborators are injected; there is no module-level state.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Iterator, List, Optional
from zoneinfo import ZoneInfo

from sunset_score.cache_manager import ForecastCache
from sunset_score.errors import InsufficientData, SunsetScoreError
from sunset_score.features import aggregate
from sunset_score.models import Coordinate, DailyForecast, SunsetOutlook
from sunset_score.scoring import calculate_sunset_score
from sunset_score.solar import FixedSunsetEstimator, SunsetEstimator

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_DAYS = 7


class LatestRequestTracker:
    """
    Hands out increasing request tokens. Only the newest token is current;
    anything older finished too late and its result must be dropped.
    """

    def __init__(self):
        self._latest = 0

    def begin(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest


@dataclass
class EngineState:
    """Latest results, for callers that poll rather than await."""
    outlook: Optional[SunsetOutlook] = None
    calendar: List[DailyForecast] = field(default_factory=list)
    error: Optional[str] = None
    updated_at: Optional[datetime] = None


class SunsetEngine:

    def __init__(
        self,
        cache: ForecastCache,
        estimator: Optional[SunsetEstimator] = None,
        tz: Optional[ZoneInfo] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.cache = cache
        self.estimator = estimator or FixedSunsetEstimator(tz)
        self.tz = tz or self.estimator.tz
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.state = EngineState()
        self._outlook_requests = LatestRequestTracker()
        self._calendar_requests = LatestRequestTracker()

    def _today(self, now: Optional[datetime]) -> date:
        now = now or self.clock()
        if now.tzinfo is not None:
            now = now.astimezone(self.tz)
        return now.date()

    async def today(self, coordinate: Coordinate, now: Optional[datetime] = None) -> SunsetOutlook:
        """
        Sunset outlook for today.

        Raises:
            InsufficientData: no sunset estimate, or < 2 samples around it
            FetchError: forecast unavailable
        """
        day = self._today(now)
        sunset = self.estimator.estimate(day, coordinate)
        if sunset is None:
            logger.warning(f"[SunsetEngine] No sunset on {day} at {coordinate}")
            raise InsufficientData(found=0)

        samples = await self.cache.get(coordinate)

        # Hour match only: a late request may score tomorrow's window hours
        weather = aggregate(samples, sunset, same_day=False)
        result = calculate_sunset_score(weather, sunset)

        logger.info(
            f"[SunsetEngine] {day} sunset {sunset.strftime('%H:%M')} at {coordinate}: "
            f"score={result.score} afterglow={result.afterglow_probability:.0f} "
            f"tyndall={result.tyndall_probability:.0f}"
        )
        return SunsetOutlook(sunset_time=sunset, result=result, weather=weather)

    def _days(self, start: date, days: int) -> Iterator[date]:
        for offset in range(days):
            yield start + timedelta(days=offset)

    async def calendar(
        self,
        coordinate: Coordinate,
        days: int = DEFAULT_CALENDAR_DAYS,
        start: Optional[date] = None
    ) -> List[DailyForecast]:
        """
        Sunset forecasts for `days` consecutive days from `start` (default today).

        Days without enough forecast data are left out.

        Raises:
            FetchError: forecast unavailable
        """
        start = start or self._today(None)
        samples = await self.cache.get(coordinate)

        forecasts: List[DailyForecast] = []
        for day in self._days(start, days):
            sunset = self.estimator.estimate(day, coordinate)
            if sunset is None:
                logger.info(f"[SunsetEngine] Skipping {day}: no sunset")
                continue

            try:
                weather = aggregate(samples, sunset, same_day=True)
            except InsufficientData as e:
                logger.info(f"[SunsetEngine] Skipping {day}: {e}")
                continue

            result = calculate_sunset_score(weather, sunset)
            forecasts.append(DailyForecast(
                date=day,
                sunset_time=sunset,
                score=result.score,
                afterglow_probability=result.afterglow_probability,
                tyndall_probability=result.tyndall_probability,
            ))

        logger.info(f"[SunsetEngine] Calendar: {len(forecasts)}/{days} days scored from {start}")
        return forecasts

    async def refresh_today(self, coordinate: Coordinate) -> Optional[SunsetOutlook]:
        """
        today(), recorded into self.state unless a newer refresh started
        while this one was waiting. Superseded calls return None.
        """
        token = self._outlook_requests.begin()
        try:
            outlook = await self.today(coordinate)
        except SunsetScoreError as e:
            if self._outlook_requests.is_current(token):
                self.state.error = str(e)
            raise

        if not self._outlook_requests.is_current(token):
            logger.info(f"[SunsetEngine] Dropping superseded outlook (request {token})")
            return None

        self.state.outlook = outlook
        self.state.error = None
        self.state.updated_at = self.clock()
        return outlook

    async def refresh_calendar(
        self,
        coordinate: Coordinate,
        days: int = DEFAULT_CALENDAR_DAYS
    ) -> Optional[List[DailyForecast]]:
        """calendar() with the same last-write-wins rule as refresh_today()."""
        token = self._calendar_requests.begin()
        try:
            forecasts = await self.calendar(coordinate, days)
        except SunsetScoreError as e:
            if self._calendar_requests.is_current(token):
                self.state.error = str(e)
            raise

        if not self._calendar_requests.is_current(token):
            logger.info(f"[SunsetEngine] Dropping superseded calendar (request {token})")
            return None

        self.state.calendar = forecasts
        self.state.error = None
        self.state.updated_at = self.clock()
        return forecasts
