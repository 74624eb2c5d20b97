"""
Forecast Cache for the Sunset Score engine

Wraps a ForecastSource with a one-hour time-to-live so repeated scoring
requests reuse a single fetch.

Rules:
- HIT:     entry younger than (or exactly) TTL -> served, source untouched
- EXPIRED: entry older than TTL -> discarded and refetched, never served
- MISS:    nothing stored, or an entry that cannot be decoded (deleted) -> fetched
- A failed fetch propagates as FetchError; there is no stale fallback.

There is one cache slot per process (key "hourly_forecast_cache"). With
key_by_coordinate=True the slot key includes the coordinate rounded to 0.1
degree, so moving between towns does not serve the previous town's weather.

Storage is pluggable (CacheStore): in-memory, or a JSON file that survives
restarts.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from sunset_score.models import Coordinate, ForecastSample
from sunset_score.providers.base import ForecastSource

logger = logging.getLogger(__name__)

CACHE_KEY = "hourly_forecast_cache"
DEFAULT_TTL_SECONDS = 3600


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheState(Enum):
    HIT = "HIT"
    EXPIRED = "EXPIRED"
    MISS = "MISS"


@dataclass
class CacheEntry:
    """Decoded cached samples with their fetch time."""
    samples: Tuple[ForecastSample, ...]
    fetched_at: datetime

    @classmethod
    def decode(cls, payload: List[Dict[str, Any]], fetched_at: datetime) -> "CacheEntry":
        """
        Raises:
            KeyError, ValueError, TypeError, AttributeError: payload rows
                are not serialized ForecastSamples
        """
        return cls(
            samples=tuple(ForecastSample.from_dict(raw) for raw in payload),
            fetched_at=fetched_at,
        )

    def age_seconds(self, now: datetime) -> float:
        return (now - self.fetched_at).total_seconds()

    def is_valid(self, now: datetime, ttl_seconds: float) -> bool:
        return self.age_seconds(now) <= ttl_seconds


class CacheStore:
    """Key/value store of (payload, stored_at). TTL policy lives in ForecastCache."""

    def get(self, key: str) -> Optional[Tuple[Any, datetime]]:
        raise NotImplementedError

    def put(self, key: str, payload: Any, stored_at: datetime) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryCacheStore(CacheStore):

    def __init__(self):
        self._data: Dict[str, Tuple[Any, datetime]] = {}

    def get(self, key: str) -> Optional[Tuple[Any, datetime]]:
        return self._data.get(key)

    def put(self, key: str, payload: Any, stored_at: datetime) -> None:
        self._data[key] = (payload, stored_at)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileCacheStore(CacheStore):
    """
    One JSON file per key under `cache_dir`.

    A file that cannot be read or parsed is reported and treated as a miss.
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _cache_path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.cache_dir / f"{safe}.json"

    def get(self, key: str) -> Optional[Tuple[Any, datetime]]:
        cache_path = self._cache_path(key)
        if not cache_path.exists():
            return None

        try:
            with open(cache_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
            return raw["payload"], datetime.fromisoformat(raw["stored_at"])
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(f"[JsonFileCacheStore] Failed to load {cache_path}: {e}")
            return None

    def put(self, key: str, payload: Any, stored_at: datetime) -> None:
        record = {
            "key": key,
            "stored_at": stored_at.isoformat(),
            "payload": payload,
        }
        with open(self._cache_path(key), 'w', encoding='utf-8') as f:
            json.dump(record, f, indent=2, default=str)
        logger.debug(f"[JsonFileCacheStore] Saved {key}")

    def delete(self, key: str) -> None:
        self._cache_path(key).unlink(missing_ok=True)


class ForecastCache:
    """TTL cache in front of a ForecastSource."""

    def __init__(
        self,
        source: ForecastSource,
        store: Optional[CacheStore] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
        key_by_coordinate: bool = False
    ):
        self.source = source
        self.store = store if store is not None else MemoryCacheStore()
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.key_by_coordinate = key_by_coordinate
        self._lock = asyncio.Lock()
        self.fetch_count = 0

    def cache_key(self, coordinate: Coordinate) -> str:
        if not self.key_by_coordinate:
            return CACHE_KEY
        bucket = coordinate.quantized()
        return f"{CACHE_KEY}_{bucket.latitude:.1f}_{bucket.longitude:.1f}"

    def _load(self, key: str, now: datetime) -> Optional[CacheEntry]:
        """Stored entry for `key`. An entry that cannot be decoded or aged is deleted."""
        stored = self.store.get(key)
        if stored is None:
            return None

        payload, stored_at = stored
        try:
            entry = CacheEntry.decode(payload, stored_at)
            entry.age_seconds(now)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"[ForecastCache] Unreadable entry {key}: {e!r} - discarding")
            self.store.delete(key)
            return None
        return entry

    def peek(self, coordinate: Coordinate) -> CacheState:
        """Report what get() would do right now, without fetching."""
        now = self.clock()
        entry = self._load(self.cache_key(coordinate), now)
        if entry is None:
            return CacheState.MISS
        if entry.is_valid(now, self.ttl_seconds):
            return CacheState.HIT
        return CacheState.EXPIRED

    async def get(self, coordinate: Coordinate) -> Tuple[ForecastSample, ...]:
        """
        Hourly samples for `coordinate`, from cache when fresh.

        Raises:
            FetchError: cache miss/expiry and the source failed
        """
        key = self.cache_key(coordinate)

        async with self._lock:
            now = self.clock()
            entry = self._load(key, now)

            if entry is not None:
                if entry.is_valid(now, self.ttl_seconds):
                    logger.info(
                        f"[ForecastCache] HIT {key} ({entry.age_seconds(now):.0f}s old, "
                        f"{len(entry.samples)} samples)"
                    )
                    return entry.samples

                logger.info(
                    f"[ForecastCache] EXPIRED {key} ({entry.age_seconds(now):.0f}s old) - discarding"
                )
                self.store.delete(key)
            else:
                logger.info(f"[ForecastCache] MISS {key}")

            samples = await self.source.fetch_hourly(coordinate)
            self.fetch_count += 1

            fetched_at = self.clock()
            self.store.put(key, [s.to_dict() for s in samples], fetched_at)
            logger.info(f"[ForecastCache] Stored {len(samples)} samples under {key}")

            return tuple(samples)

    def clear(self, coordinate: Optional[Coordinate] = None) -> None:
        """
        Drop the entry `get(coordinate)` would use. In single-slot mode the
        coordinate may be omitted.

        Raises:
            ValueError: key_by_coordinate is on and no coordinate was given
        """
        if coordinate is None:
            if self.key_by_coordinate:
                raise ValueError("clear() needs a coordinate when entries are keyed by coordinate")
            key = CACHE_KEY
        else:
            key = self.cache_key(coordinate)
        self.store.delete(key)
        logger.info(f"[ForecastCache] Cleared {key}")
