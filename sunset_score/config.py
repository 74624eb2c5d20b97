"""
Settings for the Sunset Score engine, read from the environment.

Call load_dotenv() before load_settings() to pick up a local .env file.

Variables:
    SUNSET_LAT / SUNSET_LON     coordinate (default: Paris)
    SUNSET_TIMEZONE             IANA zone for sunset and forecast times
    SUNSET_FORECAST_SOURCE      open_meteo | synthetic
    SUNSET_SEED                 seed for the synthetic source
    SUNSET_SOLAR_MODEL          fixed | astronomical
    SUNSET_CACHE_DIR            directory for the JSON forecast cache
    SUNSET_CACHE_TTL            cache lifetime in seconds
    SUNSET_FEEDBACK_DB          SQLite file for feedback
    LOG_LEVEL                   logging level
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from sunset_score.cache_manager import DEFAULT_TTL_SECONDS
from sunset_score.models import DEFAULT_LAT, DEFAULT_LON, Coordinate
from sunset_score.solar import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    latitude: float = DEFAULT_LAT
    longitude: float = DEFAULT_LON
    timezone: str = DEFAULT_TIMEZONE
    forecast_source: str = "open_meteo"
    seed: Optional[int] = None
    solar_model: str = "fixed"
    cache_dir: Path = Path("outputs/cache")
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS
    feedback_db: Path = Path("outputs/feedback.db")
    log_level: str = "INFO"

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings() -> Settings:
    """Build Settings from environment variables, falling back to defaults."""
    seed = os.getenv("SUNSET_SEED")

    settings = Settings(
        latitude=float(os.getenv("SUNSET_LAT", DEFAULT_LAT)),
        longitude=float(os.getenv("SUNSET_LON", DEFAULT_LON)),
        timezone=os.getenv("SUNSET_TIMEZONE", DEFAULT_TIMEZONE),
        forecast_source=os.getenv("SUNSET_FORECAST_SOURCE", "open_meteo"),
        seed=int(seed) if seed else None,
        solar_model=os.getenv("SUNSET_SOLAR_MODEL", "fixed"),
        cache_dir=Path(os.getenv("SUNSET_CACHE_DIR", "outputs/cache")),
        cache_ttl_seconds=float(os.getenv("SUNSET_CACHE_TTL", DEFAULT_TTL_SECONDS)),
        feedback_db=Path(os.getenv("SUNSET_FEEDBACK_DB", "outputs/feedback.db")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )

    logger.debug(f"[load_settings] {settings}")
    return settings
