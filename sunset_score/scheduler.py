"""
Sunset Score runner

Wires the engine from Settings and runs one command:
- today:    today's outlook (score, narrative, phenomena, golden/blue hour)
- calendar: N-day sunset calendar, optionally setting a 15:00 reminder
            for one day (--remind). Reminders go to an in-process scheduler
            and are printed; nothing delivers them after the process exits.
- feedback: record a correction against a predicted score

Entry point: main.py at the project root.
"""

import logging
import os
import sys
from datetime import date, datetime
from typing import List, Optional

from sunset_score.cache_manager import ForecastCache, JsonFileCacheStore
from sunset_score.config import Settings
from sunset_score.engine import SunsetEngine
from sunset_score.errors import FetchError, InsufficientData, SubmitError
from sunset_score.feedback import FeedbackService, SqliteFeedbackStore
from sunset_score.location import StaticLocationProvider
from sunset_score.models import Coordinate, DailyForecast, SunsetOutlook
from sunset_score.providers import get_source
from sunset_score.reminders import InMemoryNotificationScheduler, ReminderService, reminder_id
from sunset_score.solar import countdown, format_countdown, get_estimator

logger = logging.getLogger(__name__)

RETRY_HINT = "Could not compute a sunset score right now. Try again in a few minutes."


def setup_logging(level: str = "INFO", log_dir: str = "logs") -> None:
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(log_dir, "sunset_score.log"), mode='a', encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )


def build_engine(settings: Settings, days: int = 7) -> SunsetEngine:
    tz = settings.tz
    source = get_source(settings.forecast_source, tz, days=days, seed=settings.seed)
    cache = ForecastCache(
        source,
        store=JsonFileCacheStore(settings.cache_dir),
        ttl_seconds=settings.cache_ttl_seconds,
    )
    estimator = get_estimator(settings.solar_model, tz)

    logger.info(
        f"[build_engine] source={source.name} solar={estimator.name} tz={tz.key} "
        f"cache={settings.cache_dir}"
    )
    return SunsetEngine(cache, estimator=estimator, tz=tz)


def format_outlook(outlook: SunsetOutlook, now: datetime) -> str:
    result = outlook.result
    weather = outlook.weather
    lines = [
        f"Sunset:        {outlook.sunset_time.strftime('%Y-%m-%d %H:%M %Z')}",
        f"Golden hour:   {outlook.golden_hour.strftime('%H:%M')}",
        f"Blue hour:     {outlook.blue_hour.strftime('%H:%M')}",
        f"Score:         {result.score}",
        f"Outlook:       {result.narrative}",
        f"Afterglow:     {result.afterglow_probability:.0f}%",
        f"Tyndall:       {result.tyndall_probability:.0f}%",
        f"Clouds:        high {weather.high_cloud:.0%} / mid {weather.mid_cloud:.0%} / low {weather.low_cloud:.0%}",
        format_countdown(countdown(outlook.golden_hour, now)),
    ]
    return "\n".join(lines)


def format_calendar(forecasts: List[DailyForecast]) -> str:
    if not forecasts:
        return "No days with enough forecast data."

    lines = [f"{'Date':<12}{'Sunset':<8}{'Score':>6}{'Afterglow':>11}{'Tyndall':>9}  Reminder"]
    for f in forecasts:
        lines.append(
            f"{f.date.strftime('%a %m-%d'):<12}{f.sunset_time.strftime('%H:%M'):<8}"
            f"{f.score:>6}{f.afterglow_probability:>10.0f}%{f.tyndall_probability:>8.0f}%"
            f"  {'on' if f.reminder_set else ''}"
        )
    return "\n".join(lines)


async def run_today(engine: SunsetEngine, coordinate: Coordinate) -> int:
    try:
        outlook = await engine.refresh_today(coordinate)
    except (FetchError, InsufficientData) as e:
        logger.error(f"[run_today] {e}")
        print(RETRY_HINT)
        return 1

    if outlook is None:
        return 1

    print(format_outlook(outlook, engine.clock()))
    return 0


async def run_calendar(
    engine: SunsetEngine,
    coordinate: Coordinate,
    days: int,
    remind: Optional[date] = None,
    scheduler: Optional[InMemoryNotificationScheduler] = None
) -> int:
    try:
        forecasts = await engine.refresh_calendar(coordinate, days)
    except FetchError as e:
        logger.error(f"[run_calendar] {e}")
        print(RETRY_HINT)
        return 1

    forecasts = forecasts or []

    if remind is not None:
        scheduler = scheduler if scheduler is not None else InMemoryNotificationScheduler()
        updated = ReminderService(scheduler, engine.tz).toggle_in(forecasts, remind)
        if updated is None:
            print(format_calendar(forecasts))
            print(f"No forecast for {remind.isoformat()}, reminder not set.")
            return 1

        notification = scheduler.pending.get(reminder_id(remind))
        if notification is not None:
            print(f"Reminder set for {notification.at.strftime('%Y-%m-%d %H:%M')}: {notification.body}")

    print(format_calendar(forecasts))
    return 0


def run_feedback(
    settings: Settings,
    coordinate: Coordinate,
    score: int,
    label: str,
    reason: Optional[str]
) -> int:
    store = SqliteFeedbackStore(settings.feedback_db)
    try:
        record = FeedbackService(store).submit(coordinate, score, label, reason)
    except (SubmitError, ValueError) as e:
        logger.error(f"[run_feedback] {e}")
        print(f"Feedback not saved: {e}")
        return 1
    finally:
        store.close()

    print(f"Thanks! Feedback recorded for {record.coordinate}.")
    return 0


async def main(
    command: str,
    settings: Settings,
    days: int = 7,
    score: Optional[int] = None,
    label: Optional[str] = None,
    reason: Optional[str] = None,
    remind: Optional[date] = None
) -> int:
    coordinate = StaticLocationProvider(settings.coordinate).current_coordinate()
    logger.info(f"[main] command={command} coordinate={coordinate}")

    if command == "feedback":
        return run_feedback(settings, coordinate, score, label, reason)

    engine = build_engine(settings, days=days)
    if command == "calendar":
        return await run_calendar(engine, coordinate, days, remind=remind)
    return await run_today(engine, coordinate)
