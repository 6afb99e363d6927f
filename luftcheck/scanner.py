"""Align "now" to an hourly forecast and scan it for a ventilation window.

Everything here is pure: the forecast series comes in as a parameter, nothing
is cached or fetched, and failed searches return ``None`` instead of raising.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from luftcheck.domain import ForecastSeries, OutlookPoint, Verdict, VentilationRecommendation
from luftcheck.humidity import absolute_humidity
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="scanner")

# Outdoor air must be at least this much drier (g/m³) than indoor air.
VENTILATION_MARGIN_GM3 = 1.0


def _series_zone(series: ForecastSeries) -> dt.tzinfo:
    """Timezone the series' hours are aligned to."""
    if series.samples and series.samples[0].timestamp.tzinfo is not None:
        return series.samples[0].timestamp.tzinfo
    try:
        return ZoneInfo(series.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return dt.timezone.utc


def _truncate_to_hour(now: dt.datetime, tz: dt.tzinfo) -> dt.datetime:
    """Express ``now`` in ``tz`` and drop minutes and below."""
    local = now.replace(tzinfo=tz) if now.tzinfo is None else now.astimezone(tz)
    return local.replace(minute=0, second=0, microsecond=0)


def _parse_reading(value: object) -> Optional[float]:
    """
    Coerce a user-supplied indoor value to a finite float, else None.

    The whole string must be a number; trailing units or text ("22 °C",
    "22abc") are rejected rather than read up to the first non-digit.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def find_current_index(series: ForecastSeries, now: dt.datetime) -> Optional[int]:
    """
    Return the index of the sample covering ``now``'s hour, or None.

    ``now`` is converted to the series' timezone and truncated to the hour; the
    match is an equality of instants, so date, month and year are part of it.
    A naive ``now`` is read as wall-clock time in the series' timezone.
    """
    if not series.samples:
        return None
    target = _truncate_to_hour(now, _series_zone(series))
    for i, sample in enumerate(series.samples):
        if sample.timestamp == target:
            return i
    logger.debug("Current hour not covered by forecast", extra={"target": target.isoformat()})
    return None


def find_next_good_slot(
    series: ForecastSeries,
    indoor_ah: float,
    threshold_margin: float = VENTILATION_MARGIN_GM3,
    *,
    start: int = 0,
) -> Optional[int]:
    """
    Return the first index at or after ``start`` where outdoor air is dry enough.

    A sample qualifies when its absolute humidity is below
    ``indoor_ah - threshold_margin``. The earliest qualifying hour wins, not the
    driest one.
    """
    limit = indoor_ah - threshold_margin
    for i in range(max(start, 0), len(series.samples)):
        sample = series.samples[i]
        if absolute_humidity(sample.temperature_c, sample.relative_humidity_pct) < limit:
            return i
    return None


def recommend(
    series: ForecastSeries,
    now: dt.datetime,
    indoor_temp: object,
    indoor_rh: object,
    *,
    threshold_margin: float = VENTILATION_MARGIN_GM3,
) -> VentilationRecommendation:
    """
    Decide whether to ventilate now, later, or not at all.

    ``indoor_temp`` / ``indoor_rh`` may be numbers, numeric strings or None;
    anything that is not a finite number, or an indoor temperature the Magnus
    formula cannot evaluate (at or below about -243 °C), yields
    INSUFFICIENT_INPUT without scanning the series.
    """
    temp_in = _parse_reading(indoor_temp)
    rh_in = _parse_reading(indoor_rh)
    if temp_in is None or rh_in is None:
        return VentilationRecommendation(verdict=Verdict.INSUFFICIENT_INPUT, margin=threshold_margin)

    try:
        indoor_ah = absolute_humidity(temp_in, rh_in)
    except ArithmeticError:
        indoor_ah = math.nan
    if not math.isfinite(indoor_ah):
        logger.debug("Indoor reading outside the humidity model", extra={"indoor_temp": temp_in})
        return VentilationRecommendation(verdict=Verdict.INSUFFICIENT_INPUT, margin=threshold_margin)

    idx = find_current_index(series, now)
    if idx is None:
        return VentilationRecommendation(
            verdict=Verdict.INSUFFICIENT_INPUT,
            indoor=indoor_ah,
            margin=threshold_margin,
        )

    current = series.samples[idx]
    outdoor_ah = absolute_humidity(current.temperature_c, current.relative_humidity_pct)

    if outdoor_ah < indoor_ah - threshold_margin:
        return VentilationRecommendation(
            verdict=Verdict.GOOD_NOW,
            current_outdoor=outdoor_ah,
            indoor=indoor_ah,
            current_index=idx,
            margin=threshold_margin,
        )

    good_idx = find_next_good_slot(series, indoor_ah, threshold_margin)
    if good_idx is None:
        return VentilationRecommendation(
            verdict=Verdict.NO_WINDOW_TODAY,
            current_outdoor=outdoor_ah,
            indoor=indoor_ah,
            current_index=idx,
            margin=threshold_margin,
        )

    return VentilationRecommendation(
        verdict=Verdict.WAIT,
        current_outdoor=outdoor_ah,
        indoor=indoor_ah,
        current_index=idx,
        next_good_index=good_idx,
        next_good_time=series.samples[good_idx].timestamp,
        margin=threshold_margin,
    )


def build_outlook(series: ForecastSeries, now: dt.datetime) -> List[OutlookPoint]:
    """Chart rows from the current hour to the end of the series (empty if not covered)."""
    idx = find_current_index(series, now)
    if idx is None:
        return []
    return [
        OutlookPoint(
            time=s.timestamp,
            temperature_c=s.temperature_c,
            relative_humidity_pct=s.relative_humidity_pct,
            absolute_humidity=absolute_humidity(s.temperature_c, s.relative_humidity_pct),
        )
        for s in series.samples[idx:]
    ]
