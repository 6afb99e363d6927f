"""Exceptions raised by the weather and geocoding clients.

The humidity model and the forecast scanner never raise; these cover the I/O
shell only and are translated to HTTP errors in the API layer.
"""


class LuftcheckError(Exception):
    """Base class for Luftcheck errors."""


class WeatherFetchError(LuftcheckError):
    """The hourly forecast could not be fetched or parsed."""


class GeocodingError(LuftcheckError):
    """The geocoding service failed or returned an unusable payload."""


class LocationNotFoundError(LuftcheckError):
    """A place name did not resolve to any coordinates."""
