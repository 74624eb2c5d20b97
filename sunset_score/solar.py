"""
Solar Time Estimator for the Sunset Score engine

Two interchangeable strategies answer "when does the sun set on this date
at this place?":

- FixedSunsetEstimator (default): 18:00 local time, every day, everywhere.
- AstronomicalSunsetEstimator: sunrise equation with solar declination,
  equation of time and the -0.833 degree refraction-corrected horizon.
  Accurate to a few minutes outside the polar circles.

Both always return an instant on the requested civil date (or None when
the sun does not set at all).
"""

import math
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sunset_score.models import BLUE_HOUR_OFFSET, GOLDEN_HOUR_OFFSET, Coordinate

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Paris"

# Refraction + solar disc radius
SUNSET_ZENITH_OFFSET_DEG = -0.833


class SunsetEstimator:
    """Base strategy. Subclasses implement estimate()."""

    name = "base"

    def __init__(self, tz: Optional[ZoneInfo] = None):
        self.tz = tz or ZoneInfo(DEFAULT_TIMEZONE)

    def estimate(self, day: date, coordinate: Coordinate) -> Optional[datetime]:
        raise NotImplementedError


class FixedSunsetEstimator(SunsetEstimator):
    """Sunset at a fixed local clock time, ignoring location and season."""

    name = "fixed"

    def __init__(self, tz: Optional[ZoneInfo] = None, at: time = time(18, 0)):
        super().__init__(tz)
        self.at = at

    def estimate(self, day: date, coordinate: Coordinate) -> Optional[datetime]:
        return datetime.combine(day, self.at, tzinfo=self.tz)


def solar_declination(day_of_year: int) -> float:
    """Solar declination in degrees (Cooper's approximation)."""
    return 23.45 * math.sin(math.radians(360 * (284 + day_of_year) / 365))


def equation_of_time(day_of_year: int) -> float:
    """Equation of time in minutes."""
    b = math.radians(360 * (day_of_year - 81) / 364)
    return 9.87 * math.sin(2 * b) - 7.53 * math.cos(b) - 1.5 * math.sin(b)


def sunset_hour_angle(lat: float, declination: float) -> Optional[float]:
    """
    Hour angle of sunset in degrees, or None during polar day/night.
    """
    lat_rad = math.radians(lat)
    decl_rad = math.radians(declination)

    cos_h = (
        (math.sin(math.radians(SUNSET_ZENITH_OFFSET_DEG))
         - math.sin(lat_rad) * math.sin(decl_rad))
        / (math.cos(lat_rad) * math.cos(decl_rad))
    )

    if cos_h > 1.0 or cos_h < -1.0:
        return None

    return math.degrees(math.acos(cos_h))


class AstronomicalSunsetEstimator(SunsetEstimator):
    """Latitude / day-of-year based sunset."""

    name = "astronomical"

    def _utc_sunset(self, day: date, coordinate: Coordinate) -> Optional[datetime]:
        day_of_year = day.timetuple().tm_yday
        declination = solar_declination(day_of_year)
        hour_angle = sunset_hour_angle(coordinate.latitude, declination)

        if hour_angle is None:
            logger.info(
                f"[AstronomicalSunsetEstimator] No sunset on {day} at {coordinate} "
                f"(declination={declination:.2f})"
            )
            return None

        # Minutes after UTC midnight: solar noon plus 4 minutes per degree
        solar_noon = 720 - 4 * coordinate.longitude - equation_of_time(day_of_year)
        minutes = solar_noon + 4 * hour_angle

        midnight = datetime.combine(day, time(0, 0), tzinfo=timezone.utc)
        return midnight + timedelta(minutes=minutes)

    def estimate(self, day: date, coordinate: Coordinate) -> Optional[datetime]:
        utc_sunset = self._utc_sunset(day, coordinate)
        if utc_sunset is None:
            return None

        local = utc_sunset.astimezone(self.tz)

        # Far from the zone's meridian the UTC day can land on a neighbouring
        # civil date; recompute on the shifted day so the answer stays on `day`.
        shift = (day - local.date()).days
        if shift:
            shifted = self._utc_sunset(day + timedelta(days=shift), coordinate)
            if shifted is None:
                return None
            local = shifted.astimezone(self.tz)

        logger.debug(f"[AstronomicalSunsetEstimator] {day} {coordinate}: sunset {local.isoformat()}")
        return local


ESTIMATORS = {
    FixedSunsetEstimator.name: FixedSunsetEstimator,
    AstronomicalSunsetEstimator.name: AstronomicalSunsetEstimator,
}


def get_estimator(name: str, tz: Optional[ZoneInfo] = None) -> SunsetEstimator:
    """Build an estimator by name ('fixed' or 'astronomical')."""
    try:
        return ESTIMATORS[name](tz)
    except KeyError:
        raise ValueError(
            f"Unknown solar model '{name}', expected one of {sorted(ESTIMATORS)}"
        ) from None


def golden_hour(sunset: datetime) -> datetime:
    return sunset + GOLDEN_HOUR_OFFSET


def blue_hour(sunset: datetime) -> datetime:
    return sunset + BLUE_HOUR_OFFSET


def countdown(target: datetime, now: datetime) -> Optional[timedelta]:
    """Time left until `target`, or None once it has passed."""
    remaining = target - now
    if remaining <= timedelta(0):
        return None
    return remaining


def format_countdown(remaining: Optional[timedelta]) -> str:
    if remaining is None:
        return "Golden hour has passed"

    total = int(remaining.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"Golden hour in {hours:02d}:{minutes:02d}:{seconds:02d}"
