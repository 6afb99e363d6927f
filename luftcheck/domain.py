"""Domain vocabulary for forecast series and ventilation recommendations.

Forecast data flows in as frozen dataclasses (built by the data sources, read
by the scanner); results flow out as Pydantic models so the API can serialize
them directly. No humidity or scanning logic lives here.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Tuple, overload

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True)
class HourlySample:
    """One hour of outdoor conditions from the forecast provider."""
    timestamp: dt.datetime  # timezone-aware
    temperature_c: float
    relative_humidity_pct: float


@dataclass(frozen=True)
class ForecastSeries:
    """Chronological hourly samples for one location, immutable once fetched."""
    samples: Tuple[HourlySample, ...]
    timezone: str
    latitude: float | None = None
    longitude: float | None = None

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[HourlySample]:
        return iter(self.samples)

    @overload
    def __getitem__(self, index: int) -> HourlySample: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[HourlySample, ...]: ...

    def __getitem__(self, index):
        return self.samples[index]

    @classmethod
    def from_samples(cls, samples, timezone: str, **kwargs) -> "ForecastSeries":
        """Build a series from any iterable of samples."""
        return cls(samples=tuple(samples), timezone=timezone, **kwargs)


@dataclass(frozen=True)
class Location:
    """Coordinates the forecast is fetched for."""
    latitude: float
    longitude: float
    display_name: str | None = field(default=None, compare=False)

    def cache_key(self) -> str:
        """Stable key for cache lookups; ~11 m resolution."""
        return f"{self.latitude:.4f},{self.longitude:.4f}"


@dataclass
class CachedForecast:
    """ForecastSeries with the timestamp it was fetched."""
    series: ForecastSeries
    fetched_at: dt.datetime


class Verdict(str, Enum):
    """Outcome of a ventilation check."""
    GOOD_NOW = "good_now"
    WAIT = "wait"
    NO_WINDOW_TODAY = "no_window_today"
    INSUFFICIENT_INPUT = "insufficient_input"


class VentilationRecommendation(_StrictBaseModel):
    """Point-in-time ventilation advice derived from one forecast series."""
    verdict: Verdict
    current_outdoor: float | None = Field(default=None, description="Outdoor absolute humidity now, g/m³")
    indoor: float | None = Field(default=None, description="Indoor absolute humidity, g/m³")
    next_good_time: dt.datetime | None = None
    current_index: int | None = None
    next_good_index: int | None = None
    margin: float


class OutlookPoint(_StrictBaseModel):
    """Chart row: one forecast hour with its absolute humidity."""
    time: dt.datetime
    temperature_c: float
    relative_humidity_pct: float
    absolute_humidity: float
