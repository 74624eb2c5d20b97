"""
Open-Meteo Forecast Source for the Sunset Score engine

Fetches hourly cloud cover, relative humidity, visibility, temperature and
WMO weather code from the free Open-Meteo forecast API (no key required).

Unit conversions done here so the engine only sees normalized samples:
- cloud_cover: percent -> 0-1
- relative_humidity_2m: percent -> 0-1
- visibility: metres -> km
"""

import httpx
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from sunset_score.errors import ErrorType, FetchError
from sunset_score.models import Coordinate, ForecastSample
from sunset_score.providers.base import ForecastSource
from sunset_score.resilience import RetryConfig, with_retry

logger = logging.getLogger(__name__)

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"

HOURLY_FIELDS = [
    "temperature_2m",
    "cloud_cover",
    "relative_humidity_2m",
    "visibility",
    "weather_code",
]

# WMO Weather Code to human-readable conditions
# Reference: https://open-meteo.com/en/docs
WEATHER_CODES = {
    0: "Clear",
    1: "Mostly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Fog",
    51: "Light Drizzle",
    53: "Drizzle",
    55: "Heavy Drizzle",
    61: "Light Rain",
    63: "Rain",
    65: "Heavy Rain",
    71: "Light Snow",
    73: "Snow",
    75: "Heavy Snow",
    80: "Light Showers",
    81: "Showers",
    82: "Heavy Showers",
    95: "Thunderstorm",
    96: "Thunderstorm",
    99: "Thunderstorm",
}


def weather_code_to_condition(code: Optional[int]) -> str:
    """Convert WMO weather code to human-readable condition."""
    if code is None:
        return "Unknown"
    return WEATHER_CODES.get(int(code), "Unknown")


def parse_hourly(payload: Dict[str, Any], tz: ZoneInfo) -> List[ForecastSample]:
    """
    Turn an Open-Meteo response body into ForecastSamples.

    Hours with no cloud/humidity/visibility value are dropped rather than
    guessed. Open-Meteo returns local wall-clock times for the requested
    timezone, so each one is tagged with `tz`.

    Raises:
        FetchError: response has no usable hourly block
    """
    if not isinstance(payload, dict):
        raise FetchError(
            f"Open-Meteo response is a {type(payload).__name__}, expected an object",
            ErrorType.PARSE_ERROR
        )

    hourly = payload.get("hourly")
    if not isinstance(hourly, dict) or not isinstance(hourly.get("time"), list):
        raise FetchError("Open-Meteo response has no hourly data", ErrorType.PARSE_ERROR)

    times = hourly["time"]
    n = len(times)

    def column(name: str) -> List[Any]:
        values = hourly.get(name)
        if values is None:
            return [None] * n
        if not isinstance(values, list) or len(values) != n:
            raise FetchError(
                f"Open-Meteo column '{name}' does not line up with {n} hourly times",
                ErrorType.PARSE_ERROR
            )
        return values

    temps = column("temperature_2m")
    clouds = column("cloud_cover")
    humidity = column("relative_humidity_2m")
    visibility = column("visibility")
    codes = column("weather_code")

    samples: List[ForecastSample] = []
    skipped = 0

    for i, t in enumerate(times):
        if clouds[i] is None or humidity[i] is None or visibility[i] is None:
            skipped += 1
            continue

        samples.append(ForecastSample(
            timestamp=datetime.fromisoformat(t).replace(tzinfo=tz),
            temperature=float(temps[i]) if temps[i] is not None else 0.0,
            cloud_cover=float(clouds[i]) / 100.0,
            humidity=float(humidity[i]) / 100.0,
            visibility_km=max(float(visibility[i]) / 1000.0, 0.0),
            condition=weather_code_to_condition(codes[i]),
        ))

    if skipped:
        logger.warning(f"[OpenMeteoSource] Dropped {skipped} hours with missing values")

    return samples


class OpenMeteoSource(ForecastSource):
    """Live hourly forecast from api.open-meteo.com."""

    name = "open_meteo"

    def __init__(
        self,
        tz: ZoneInfo,
        days: int = 7,
        timeout: float = 30.0,
        retry_config: Optional[RetryConfig] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.tz = tz
        self.days = max(1, min(days, 16))  # API limit
        self.timeout = timeout
        self.retry_config = retry_config
        self._client = client

    def _params(self, coordinate: Coordinate) -> Dict[str, Any]:
        return {
            "latitude": coordinate.latitude,
            "longitude": coordinate.longitude,
            "hourly": HOURLY_FIELDS,
            "timezone": self.tz.key,
            "forecast_days": self.days,
        }

    async def _get(self, coordinate: Coordinate) -> Dict[str, Any]:
        params = self._params(coordinate)
        logger.debug(f"[OpenMeteoSource] Request params: {params}")

        if self._client is not None:
            resp = await self._client.get(OPEN_METEO_URL, params=params, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(OPEN_METEO_URL, params=params)

        logger.info(f"[OpenMeteoSource] Response status: {resp.status_code}")
        resp.raise_for_status()
        return resp.json()

    async def fetch_hourly(self, coordinate: Coordinate) -> List[ForecastSample]:
        logger.info(f"[OpenMeteoSource] Fetching {self.days}-day hourly forecast for {coordinate}")

        @with_retry(config=self.retry_config, provider_name="Open-Meteo")
        async def _fetch() -> List[ForecastSample]:
            payload = await self._get(coordinate)
            return parse_hourly(payload, self.tz)

        samples = await _fetch()
        logger.info(f"[OpenMeteoSource] Received {len(samples)} hourly samples")
        return samples
