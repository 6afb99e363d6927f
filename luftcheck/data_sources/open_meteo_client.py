"""Helpers for fetching the hourly temperature/humidity forecast from Open-Meteo."""
from __future__ import annotations

import datetime as dt
from typing import List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests
import requests_cache
from retry_requests import retry

from luftcheck.config import settings
from luftcheck.domain import ForecastSeries, HourlySample
from luftcheck.errors import WeatherFetchError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="open_meteo_client")

cache_session = requests_cache.CachedSession(
    "luftcheck_http_cache", expire_after=settings.http_cache_seconds
)
session = retry(cache_session, retries=5, backoff_factor=0.2)

HOURLY_VARS = ["temperature_2m", "relative_humidity_2m"]

EXPECTED_HOURLY_UNITS = {
    "temperature_2m": "°C",
    "relative_humidity_2m": "%",
}

# Localized spellings that still mean the unit we asked for.
ALLOWED_UNIT_SYNONYMS = {
    "temperature_2m": {"°C", "degC", "celsius"},
    "relative_humidity_2m": {"%", "percent"},
}


def _resolve_zone(tz_name: Optional[str]) -> ZoneInfo:
    """ZoneInfo for ``tz_name``, UTC when missing, "auto" or unknown."""
    if not tz_name or tz_name == "auto":
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone from Open-Meteo; using UTC", extra={"timezone": tz_name})
        return ZoneInfo("UTC")


def _iso_to_dt_with_tz(s: str, tz: ZoneInfo) -> dt.datetime:
    """Interpret an Open-Meteo local time string as wall-clock time in ``tz``."""
    naive = dt.datetime.fromisoformat(s)
    return naive.replace(tzinfo=tz)


def _warn_on_unexpected_units(units: Mapping | None, *, context: str) -> None:
    """Log a warning if Open-Meteo returns units other than °C / %."""
    if not units:
        return
    for name, expected in EXPECTED_HOURLY_UNITS.items():
        actual = units.get(name)
        if actual and actual != expected and actual not in ALLOWED_UNIT_SYNONYMS.get(name, set()):
            logger.warning(
                "Unexpected Open-Meteo unit",
                extra={"context": context, "field": name, "unit": actual, "expected": expected},
            )


def parse_hourly_payload(data: Mapping, *, requested_timezone: str = "auto") -> ForecastSeries:
    """
    Turn an Open-Meteo forecast response into a ForecastSeries.

    The three hourly arrays must have equal length. Times are local to the
    response's ``timezone`` field (what ``timezone=auto`` resolved to).
    """
    hourly = data.get("hourly") if isinstance(data, Mapping) else None
    if not hourly:
        raise WeatherFetchError("Open-Meteo response has no hourly section")

    try:
        times: List[str] = list(hourly["time"])
        temps: List[float] = list(hourly["temperature_2m"])
        hums: List[float] = list(hourly["relative_humidity_2m"])
    except (KeyError, TypeError) as exc:
        raise WeatherFetchError(f"Open-Meteo hourly section is incomplete: {exc}") from exc

    if not (len(times) == len(temps) == len(hums)):
        raise WeatherFetchError(
            f"Open-Meteo hourly arrays differ in length: time={len(times)} "
            f"temperature_2m={len(temps)} relative_humidity_2m={len(hums)}"
        )

    _warn_on_unexpected_units(data.get("hourly_units"), context="hourly")

    tz_name = data.get("timezone") or requested_timezone
    tz = _resolve_zone(tz_name)

    samples: List[HourlySample] = []
    for t, temp, rh in zip(times, temps, hums):
        # Open-Meteo emits null for hours beyond the model horizon.
        if temp is None or rh is None:
            logger.debug("Skipping hour without data", extra={"time": t})
            continue
        try:
            ts = _iso_to_dt_with_tz(t, tz)
        except (TypeError, ValueError) as exc:
            raise WeatherFetchError(f"Unparseable Open-Meteo time {t!r}") from exc
        samples.append(HourlySample(timestamp=ts, temperature_c=float(temp), relative_humidity_pct=float(rh)))

    return ForecastSeries.from_samples(
        samples,
        timezone=str(tz),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
    )


def fetch_hourly_forecast(
    latitude: float,
    longitude: float,
    *,
    timezone: str = "auto",
    forecast_days: int | None = None,
) -> ForecastSeries:
    """Fetch hourly temperature and relative humidity for the given coordinates."""
    params = {
        "latitude": latitude,
        "longitude": longitude,
        "hourly": ",".join(HOURLY_VARS),
        "timezone": timezone,
    }
    if forecast_days is not None:
        params["forecast_days"] = forecast_days

    logger.info(
        "Fetching hourly forecast",
        extra={"latitude": latitude, "longitude": longitude, "timezone": timezone},
    )
    try:
        resp = session.get(settings.open_meteo_url, params=params, timeout=settings.request_timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Open-Meteo request failed", extra={"error": str(exc)})
        raise WeatherFetchError("weather-fetch-failed") from exc

    series = parse_hourly_payload(data, requested_timezone=timezone)
    logger.debug("Parsed hourly forecast", extra={"hours": len(series), "timezone": series.timezone})
    return series


def main():
    """Manual test helper: print the next hours for Berlin."""
    from luftcheck.humidity import absolute_humidity

    series = fetch_hourly_forecast(52.52, 13.41)
    for s in series.samples[:24]:
        ah = absolute_humidity(s.temperature_c, s.relative_humidity_pct)
        print(f"{s.timestamp:%d.%m. %H:%M}  {s.temperature_c:5.1f} °C  {s.relative_humidity_pct:3.0f} %  {ah:4.1f} g/m³")


if __name__ == "__main__":
    main()
