"""
Synthetic Forecast Source

Generates plausible random hourly samples starting at the current hour.
Seed it for reproducible runs; it is a drop-in ForecastSource, so nothing
downstream can tell it apart from live data.

Ranges:
- temperature: 20 +/- 5 C
- cloud_cover: 0-1
- humidity: 0.3-0.8
- visibility: 10-40 km
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

import numpy as np

from sunset_score.models import Coordinate, ForecastSample
from sunset_score.providers.base import ForecastSource

logger = logging.getLogger(__name__)


class SyntheticSource(ForecastSource):
    """Seedable random forecast generator."""

    name = "synthetic"

    def __init__(
        self,
        tz: ZoneInfo,
        hours: int = 24,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.tz = tz
        self.hours = hours
        self.seed = seed
        self.clock = clock or (lambda: datetime.now(self.tz))
        self._rng = np.random.default_rng(seed)

    async def fetch_hourly(self, coordinate: Coordinate) -> List[ForecastSample]:
        start = self.clock().astimezone(self.tz).replace(minute=0, second=0, microsecond=0)
        n = self.hours

        temperature = 20.0 + self._rng.uniform(-5.0, 5.0, n)
        cloud_cover = self._rng.uniform(0.0, 1.0, n)
        humidity = self._rng.uniform(0.3, 0.8, n)
        visibility = 10.0 + self._rng.uniform(0.0, 30.0, n)

        samples = [
            ForecastSample(
                timestamp=start + timedelta(hours=i),
                temperature=round(float(temperature[i]), 1),
                cloud_cover=float(cloud_cover[i]),
                humidity=float(humidity[i]),
                visibility_km=float(visibility[i]),
                condition="PartlyCloudy",
            )
            for i in range(n)
        ]

        logger.info(
            f"[SyntheticSource] Generated {n} hourly samples from {start.isoformat()} "
            f"(seed={self.seed})"
        )
        return samples
