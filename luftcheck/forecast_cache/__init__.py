"""Forecast cache backends."""

from .base import ForecastCache
from .memory import InMemoryForecastCache
from .redis import RedisForecastCache

__all__ = [
    "ForecastCache",
    "InMemoryForecastCache",
    "RedisForecastCache",
]
