"""Fetch-once forecast access with explicit invalidation on location change."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

import redis

from luftcheck import config
from luftcheck.data_sources import ForecastDataSource, build_data_source
from luftcheck.domain import ForecastSeries, Location
from luftcheck.forecast_cache import ForecastCache, InMemoryForecastCache, RedisForecastCache
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="forecast_service")


def build_forecast_cache(settings: config.Settings | None = None) -> ForecastCache:
    """Pick the cache backend: Redis when configured and reachable, else in-memory."""
    settings = settings or config.settings
    if settings.forecast_redis_url:
        try:
            client = redis.Redis.from_url(settings.forecast_redis_url)
            client.ping()
            logger.info("Using RedisForecastCache", extra={"redis_url": mask_url(settings.forecast_redis_url)})
            return RedisForecastCache(client, ttl_seconds=settings.forecast_ttl_seconds)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("Falling back to InMemoryForecastCache (Redis unavailable)", extra={"error": str(exc)})
    return InMemoryForecastCache(ttl_seconds=settings.forecast_ttl_seconds)


class ForecastService:
    """
    Owns the forecast series on behalf of the API.

    A series is fetched once per location and reused until its TTL runs out,
    a caller asks for ``refresh``, or the location changes. Entries are always
    replaced whole; the cached ForecastSeries objects are immutable.
    """

    def __init__(
        self,
        data_source: ForecastDataSource,
        cache: ForecastCache,
        *,
        timezone: str = "auto",
        forecast_days: int | None = None,
    ) -> None:
        self.data_source = data_source
        self.cache = cache
        self.timezone = timezone
        self.forecast_days = forecast_days

    def get_series(self, location: Location, *, refresh: bool = False) -> ForecastSeries:
        """Return the cached series for ``location``, fetching it when needed."""
        if not refresh:
            cached = self.cache.get(location)
            if cached is not None:
                logger.debug(
                    "Forecast cache hit",
                    extra={"location": location.cache_key(), "fetched_at": cached.fetched_at.isoformat()},
                )
                return cached.series

        series = self.data_source.fetch_hourly_forecast(
            location.latitude,
            location.longitude,
            timezone=self.timezone,
            forecast_days=self.forecast_days,
        )
        self.cache.put(location, series)
        logger.info("Cached new forecast", extra={"location": location.cache_key(), "hours": len(series)})
        return series

    def fetched_at(self, location: Location) -> Optional[datetime]:
        """When the cached series for ``location`` was fetched, if cached."""
        cached = self.cache.get(location)
        return cached.fetched_at if cached else None

    def change_location(self, previous: Location | None, new: Location) -> Location:
        """Discard the previous location's series; the next read fetches fresh data."""
        if previous is not None:
            self.cache.invalidate(previous)
            logger.info(
                "Location changed; invalidated cached forecast",
                extra={"previous": previous.cache_key(), "new": new.cache_key()},
            )
        self.cache.invalidate(new)
        return new

    def resolve_location(self, query: str) -> Location:
        """Geocode a place name through the configured data source."""
        return self.data_source.geocode(query)


def build_forecast_service(settings: config.Settings | None = None) -> ForecastService:
    """Wire the configured data source and cache into a ForecastService."""
    settings = settings or config.settings
    return ForecastService(
        build_data_source(settings),
        build_forecast_cache(settings),
        timezone=settings.forecast_timezone,
        forecast_days=settings.forecast_days,
    )
