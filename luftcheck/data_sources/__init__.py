"""Forecast and geocoding backends."""

from .base import CallableForecastDataSource, ForecastDataSource
from .factory import build_data_source
from .nominatim_client import geocode
from .open_meteo_client import fetch_hourly_forecast, parse_hourly_payload

__all__ = [
    "build_data_source",
    "ForecastDataSource",
    "CallableForecastDataSource",
    "fetch_hourly_forecast",
    "parse_hourly_payload",
    "geocode",
]
