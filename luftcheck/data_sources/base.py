"""Interfaces and helpers for forecast data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from luftcheck.domain import ForecastSeries, Location


class ForecastDataSource(Protocol):
    """Anything that can provide an hourly forecast and resolve place names."""

    def fetch_hourly_forecast(
        self,
        latitude: float,
        longitude: float,
        *,
        timezone: str = "auto",
        forecast_days: int | None = None,
    ) -> ForecastSeries:
        """Return the hourly temperature/humidity series for a location."""
        ...

    def geocode(self, query: str) -> Location:
        """Return coordinates for a free-text place name."""
        ...


@dataclass
class CallableForecastDataSource(ForecastDataSource):
    """Wrap two callables so backends (or test fakes) can be swapped in."""

    hourly_forecast: Callable[..., ForecastSeries]
    geocoder: Callable[[str], Location]

    def fetch_hourly_forecast(self, *args, **kwargs) -> ForecastSeries:
        """Delegate to the configured forecast callable."""
        return self.hourly_forecast(*args, **kwargs)

    def geocode(self, query: str) -> Location:
        """Delegate to the configured geocoding callable."""
        return self.geocoder(query)
