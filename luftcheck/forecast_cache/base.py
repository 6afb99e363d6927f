"""Shared protocol for forecast cache backends."""

from typing import Optional, Protocol

from luftcheck.domain import CachedForecast, ForecastSeries, Location


class ForecastCache(Protocol):
    """Protocol for forecast cache backends, keyed by location."""

    def get(self, location: Location) -> Optional[CachedForecast]:
        """Return the cached series for ``location``, or None if missing/expired."""

    def put(self, location: Location, series: ForecastSeries) -> CachedForecast:
        """Store ``series`` for ``location``, replacing any previous entry."""

    def invalidate(self, location: Location) -> None:
        """Drop the entry for ``location`` without raising if it is absent."""

    def clear(self) -> None:
        """Drop all cached series."""
