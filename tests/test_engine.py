"""
Tests for the Scoring Orchestrator (single-day outlook and calendar)

Run with: python -m pytest tests/test_engine.py -v
"""

import asyncio
import logging
from datetime import date, datetime, timedelta

import pytest

from conftest import PARIS, PARIS_TZ, FakeClock, StaticSource, day_samples, make_sample
from sunset_score.cache_manager import ForecastCache
from sunset_score.engine import LatestRequestTracker, SunsetEngine
from sunset_score.errors import FetchError, InsufficientData
from sunset_score.features import aggregate
from sunset_score.scoring import calculate_sunset_score
from sunset_score.solar import FixedSunsetEstimator

logger = logging.getLogger(__name__)

TODAY = date(2026, 10, 19)


def week_samples(start: date = TODAY, days: int = 7):
    samples = []
    for offset in range(days):
        samples.extend(day_samples(start + timedelta(days=offset), cloud=0.8, humidity=0.4, visibility=40))
    return samples


def build_engine(samples, clock=None):
    clock = clock or FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=PARIS_TZ))
    source = StaticSource(samples)
    cache = ForecastCache(source, clock=clock)
    engine = SunsetEngine(cache, estimator=FixedSunsetEstimator(PARIS_TZ), tz=PARIS_TZ, clock=clock)
    return engine, source


class TestToday:

    @pytest.mark.asyncio
    async def test_outlook(self):
        engine, source = build_engine(week_samples())
        outlook = await engine.today(PARIS)

        logger.info(f"[TEST] Outlook: {outlook}")
        assert outlook.sunset_time == datetime(2026, 10, 19, 18, 0, tzinfo=PARIS_TZ)
        assert outlook.golden_hour == datetime(2026, 10, 19, 17, 0, tzinfo=PARIS_TZ)
        assert outlook.blue_hour == datetime(2026, 10, 19, 18, 20, tzinfo=PARIS_TZ)

        assert outlook.weather.high_cloud == pytest.approx(0.8)
        assert outlook.weather.mid_cloud == pytest.approx(0.4)
        assert outlook.weather.low_cloud == pytest.approx(0.24)

        expected = calculate_sunset_score(outlook.weather)
        assert outlook.result == expected
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_matches_manual_pipeline(self):
        samples = week_samples()
        engine, _ = build_engine(samples)
        outlook = await engine.today(PARIS)

        sunset = datetime(2026, 10, 19, 18, 0, tzinfo=PARIS_TZ)
        manual = calculate_sunset_score(aggregate(samples, sunset, same_day=False))
        assert outlook.score == manual.score

    @pytest.mark.asyncio
    async def test_explicit_now(self):
        engine, _ = build_engine(week_samples())
        outlook = await engine.today(PARIS, now=datetime(2026, 10, 21, 9, 0, tzinfo=PARIS_TZ))
        assert outlook.sunset_time.date() == date(2026, 10, 21)

    @pytest.mark.asyncio
    async def test_insufficient_data_is_reported(self):
        samples = [make_sample(datetime(2026, 10, 19, 18, 0, tzinfo=PARIS_TZ))]
        engine, _ = build_engine(samples)

        with pytest.raises(InsufficientData):
            await engine.today(PARIS)

    @pytest.mark.asyncio
    async def test_fetch_error_is_reported(self, failing_error):
        engine, source = build_engine(week_samples())
        source.fail_with = failing_error

        with pytest.raises(FetchError):
            await engine.today(PARIS)


class TestCalendar:

    @pytest.mark.asyncio
    async def test_seven_days(self):
        engine, source = build_engine(week_samples())
        forecasts = await engine.calendar(PARIS, days=7)

        assert [f.date for f in forecasts] == [TODAY + timedelta(days=i) for i in range(7)]
        assert all(f.sunset_time.hour == 18 for f in forecasts)
        assert all(f.reminder_set is False for f in forecasts)
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_day_with_one_sample_is_skipped(self):
        """Day 3 only has its 18:00 sample: 6 entries come back, no error."""
        day3 = TODAY + timedelta(days=2)
        samples = [
            s for s in week_samples()
            if not (s.timestamp.date() == day3 and s.timestamp.hour == 19)
        ]
        engine, _ = build_engine(samples)

        forecasts = await engine.calendar(PARIS, days=7)

        logger.info(f"[TEST] Calendar dates: {[f.date for f in forecasts]}")
        assert len(forecasts) == 6
        assert day3 not in [f.date for f in forecasts]

    @pytest.mark.asyncio
    async def test_days_beyond_forecast_are_skipped(self):
        engine, _ = build_engine(week_samples(days=3))
        forecasts = await engine.calendar(PARIS, days=7)
        assert len(forecasts) == 3

    @pytest.mark.asyncio
    async def test_day_without_sunset_is_skipped(self):
        class NoSunsetOnDay2(FixedSunsetEstimator):
            def estimate(self, day, coordinate):
                if day == TODAY + timedelta(days=1):
                    return None
                return super().estimate(day, coordinate)

        source = StaticSource(week_samples())
        clock = FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=PARIS_TZ))
        engine = SunsetEngine(ForecastCache(source, clock=clock), estimator=NoSunsetOnDay2(PARIS_TZ), clock=clock)

        forecasts = await engine.calendar(PARIS, days=3)
        assert [f.date for f in forecasts] == [TODAY, TODAY + timedelta(days=2)]

    @pytest.mark.asyncio
    async def test_scores_match_single_day(self):
        engine, _ = build_engine(week_samples())
        forecasts = await engine.calendar(PARIS, days=1)
        outlook = await engine.today(PARIS)

        assert forecasts[0].score == outlook.score
        assert forecasts[0].afterglow_probability == outlook.result.afterglow_probability

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, failing_error):
        engine, source = build_engine(week_samples())
        source.fail_with = failing_error

        with pytest.raises(FetchError):
            await engine.calendar(PARIS)


class TestLatestRequestWins:

    def test_tracker(self):
        tracker = LatestRequestTracker()
        first = tracker.begin()
        second = tracker.begin()

        assert not tracker.is_current(first)
        assert tracker.is_current(second)

    @pytest.mark.asyncio
    async def test_superseded_outlook_is_dropped(self):
        engine, source = build_engine(week_samples())
        source.gate = asyncio.Event()

        stale = asyncio.create_task(engine.refresh_today(PARIS))
        await asyncio.sleep(0)
        fresh = asyncio.create_task(engine.refresh_today(PARIS))
        await asyncio.sleep(0)
        source.gate.set()

        stale_result, fresh_result = await asyncio.gather(stale, fresh)

        assert stale_result is None
        assert fresh_result is not None
        assert engine.state.outlook is fresh_result
        assert engine.state.error is None

    @pytest.mark.asyncio
    async def test_refresh_calendar_updates_state(self):
        engine, _ = build_engine(week_samples())
        forecasts = await engine.refresh_calendar(PARIS, days=7)

        assert engine.state.calendar is forecasts
        assert engine.state.updated_at is not None

    @pytest.mark.asyncio
    async def test_refresh_failure_recorded(self, failing_error):
        engine, source = build_engine(week_samples())
        source.fail_with = failing_error

        with pytest.raises(FetchError):
            await engine.refresh_today(PARIS)
        assert "connection refused" in engine.state.error
