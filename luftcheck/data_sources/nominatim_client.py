"""Resolve free-text place names to coordinates via OpenStreetMap Nominatim."""
from __future__ import annotations

import requests

from luftcheck.config import settings
from luftcheck.domain import Location
from luftcheck.errors import GeocodingError, LocationNotFoundError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="nominatim_client")

# Nominatim's usage policy asks for an identifying User-Agent on every request.
session = requests.Session()
session.headers.update({"User-Agent": settings.nominatim_user_agent})


def geocode(query: str) -> Location:
    """Return the best match for ``query``; raise LocationNotFoundError if none."""
    query = (query or "").strip()
    if not query:
        raise LocationNotFoundError("empty location query")

    params = {"q": query, "format": "json", "limit": 1}
    logger.info("Geocoding location", extra={"query": query})
    try:
        resp = session.get(settings.nominatim_url, params=params, timeout=settings.request_timeout_seconds)
        resp.raise_for_status()
        results = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Nominatim request failed", extra={"error": str(exc)})
        raise GeocodingError("geocoding-failed") from exc

    if not results:
        raise LocationNotFoundError(f"no match for {query!r}")

    best = results[0]
    try:
        location = Location(
            latitude=float(best["lat"]),
            longitude=float(best["lon"]),
            display_name=best.get("display_name"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise GeocodingError(f"unusable Nominatim result: {best!r}") from exc

    logger.debug("Resolved location", extra={"latitude": location.latitude, "longitude": location.longitude})
    return location
