"""
Forecast Source interface.

A source turns a coordinate into hourly ForecastSamples. Sources may be live
(Open-Meteo) or synthetic; the engine never knows which one it is talking to.
"""

from typing import List

from sunset_score.models import Coordinate, ForecastSample


class ForecastSource:
    """Base class for forecast sources."""

    name = "base"

    async def fetch_hourly(self, coordinate: Coordinate) -> List[ForecastSample]:
        """
        Fetch hourly samples for a coordinate.

        Raises:
            FetchError: source unreachable or response malformed
        """
        raise NotImplementedError
