"""
Location Provider for the Sunset Score engine.

current_coordinate() never fails: when the underlying resolver is not
authorized or breaks, the default coordinate (Paris) is used instead.
"""

import logging
from typing import Callable, Optional

from sunset_score.errors import PermissionDenied
from sunset_score.models import DEFAULT_COORDINATE, Coordinate

logger = logging.getLogger(__name__)


class LocationProvider:

    def current_coordinate(self) -> Coordinate:
        raise NotImplementedError

    def default_coordinate(self) -> Coordinate:
        return DEFAULT_COORDINATE


class StaticLocationProvider(LocationProvider):
    """A configured coordinate, or the default one."""

    def __init__(self, coordinate: Optional[Coordinate] = None):
        self.coordinate = coordinate

    def current_coordinate(self) -> Coordinate:
        return self.coordinate or self.default_coordinate()


class FallbackLocationProvider(LocationProvider):
    """
    Wraps a resolver that may raise PermissionDenied (or return None) and
    falls back to the default coordinate.
    """

    def __init__(self, resolver: Callable[[], Optional[Coordinate]]):
        self.resolver = resolver
        self.last_error: Optional[str] = None

    def current_coordinate(self) -> Coordinate:
        try:
            coordinate = self.resolver()
        except PermissionDenied as e:
            self.last_error = f"{e}. Using default location: Paris"
            logger.warning(f"[FallbackLocationProvider] {self.last_error}")
            return self.default_coordinate()

        if coordinate is None:
            logger.info("[FallbackLocationProvider] No fix yet, using default location")
            return self.default_coordinate()

        self.last_error = None
        return coordinate
