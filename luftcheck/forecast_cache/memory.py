"""In-memory forecast cache with TTL, the default for single-process deployments."""

import threading
import time
from datetime import datetime, timezone
from typing import Optional

from luftcheck.domain import CachedForecast, ForecastSeries, Location
from luftcheck.forecast_cache.base import ForecastCache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_cache/in_memory")


class InMemoryForecastCache(ForecastCache):
    """Thread-safe, TTL-aware per-location cache."""

    def __init__(self, ttl_seconds: int = 3600) -> None:
        logger.debug("Initializing InMemoryForecastCache")
        self.ttl = ttl_seconds
        self._entries: dict[str, tuple[CachedForecast, float]] = {}
        self._lock = threading.Lock()

    def get(self, location: Location) -> Optional[CachedForecast]:
        """Return the cached entry, dropping it first if it has expired."""
        key = location.cache_key()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            cached, exp = entry
            if exp < time.monotonic():
                self._entries.pop(key, None)
                return None
            return cached

    def put(self, location: Location, series: ForecastSeries) -> CachedForecast:
        """Replace whatever was cached for ``location``."""
        cached = CachedForecast(series=series, fetched_at=datetime.now(timezone.utc))
        with self._lock:
            self._entries[location.cache_key()] = (cached, time.monotonic() + self.ttl)
        return cached

    def invalidate(self, location: Location) -> None:
        with self._lock:
            self._entries.pop(location.cache_key(), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
