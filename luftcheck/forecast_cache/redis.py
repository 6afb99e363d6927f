"""Redis-backed forecast cache with TTL, for multi-worker deployments."""

import json
from datetime import datetime, timezone
from typing import Optional

from luftcheck.data_sources.open_meteo_client import parse_hourly_payload
from luftcheck.domain import CachedForecast, ForecastSeries, Location
from luftcheck.errors import WeatherFetchError
from luftcheck.forecast_cache.base import ForecastCache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_cache/redis")


class RedisForecastCache(ForecastCache):
    """Stores each series as an Open-Meteo-shaped JSON document under SETEX."""

    def __init__(self, client, ttl_seconds: int = 3600, prefix: str = "forecast:") -> None:
        logger.debug("Initializing RedisForecastCache")
        self.client = client
        self.ttl = ttl_seconds
        self.prefix = prefix

    def _key(self, location: Location) -> str:
        """Return the Redis key for a location."""
        return f"{self.prefix}{location.cache_key()}"

    @staticmethod
    def _serialize(cached: CachedForecast) -> bytes:
        """Encode a cached series; times are stored as local wall-clock strings."""
        series = cached.series
        data = {
            "timezone": series.timezone,
            "latitude": series.latitude,
            "longitude": series.longitude,
            "fetched_at": cached.fetched_at.isoformat(),
            "hourly": {
                "time": [s.timestamp.replace(tzinfo=None).isoformat(timespec="minutes") for s in series],
                "temperature_2m": [s.temperature_c for s in series],
                "relative_humidity_2m": [s.relative_humidity_pct for s in series],
            },
        }
        return json.dumps(data).encode("utf-8")

    @staticmethod
    def _deserialize(raw: bytes) -> Optional[CachedForecast]:
        """Decode a cached series; None if the payload is unusable."""
        try:
            data = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
            series = parse_hourly_payload(data, requested_timezone=data.get("timezone") or "UTC")
            fetched_at = datetime.fromisoformat(data["fetched_at"])
        except (ValueError, KeyError, TypeError, AttributeError, WeatherFetchError) as exc:
            logger.error("Failed to deserialize cached forecast: %s", exc)
            return None
        return CachedForecast(series=series, fetched_at=fetched_at)

    def get(self, location: Location) -> Optional[CachedForecast]:
        """Fetch a cached series, or None on miss, corrupt data or Redis errors."""
        try:
            raw = self.client.get(self._key(location))
        except Exception as exc:  # pragma: no cover - backend failure
            logger.error("Failed to read forecast from Redis: %s", exc)
            return None
        if not raw:
            return None
        return self._deserialize(raw)

    def put(self, location: Location, series: ForecastSeries) -> CachedForecast:
        """Write a series; a failed write is logged and the series still returned."""
        cached = CachedForecast(series=series, fetched_at=datetime.now(timezone.utc))
        try:
            self.client.setex(self._key(location), self.ttl, self._serialize(cached))
        except Exception as exc:  # pragma: no cover - backend failure
            logger.error("Failed to write forecast to Redis: %s", exc)
        return cached

    def invalidate(self, location: Location) -> None:
        try:
            self.client.delete(self._key(location))
        except Exception as exc:  # pragma: no cover - backend failure
            logger.error("Failed to delete forecast from Redis: %s", exc)

    def clear(self) -> None:
        """Best-effort clear of all keys under the configured prefix."""
        try:
            for key in self.client.scan_iter(f"{self.prefix}*"):
                self.client.delete(key)
        except Exception as exc:  # pragma: no cover - backend failure
            logger.error("Failed to clear forecasts from Redis: %s", exc)
