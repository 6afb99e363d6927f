"""User-facing text for recommendations and outdoor readings.

The scanner only returns verdicts and sentinels; this module is where they
become sentences.
"""
from __future__ import annotations

import datetime as dt

from luftcheck.domain import HourlySample, Verdict, VentilationRecommendation
from luftcheck.humidity import absolute_humidity

MSG_GOOD_NOW = "Now is a good time to ventilate."
MSG_KEEP_CLOSED = "Keep the windows closed for now."
MSG_NEXT_GOOD = "Next good time to ventilate: {slot}"
MSG_NO_WINDOW = "No favourable ventilation time expected in the forecast."
MSG_MISSING_INDOOR = "Please enter indoor temperature and relative humidity."
MSG_NO_OUTDOOR = "No outdoor reading for the current hour."
MSG_LOCATION_MISSING = "Please provide a location."
MSG_FETCH_FAILED = "Weather data could not be retrieved."
MSG_LOCATION_NOT_FOUND = "Location not found."


def format_slot_time(ts: dt.datetime) -> str:
    """Short local label used for forecast hours, e.g. ``24.10. 14:00``."""
    return ts.strftime("%d.%m. %H:%M")


def describe_outdoor_now(sample: HourlySample) -> str:
    """One-line summary of the current outdoor hour."""
    ah = absolute_humidity(sample.temperature_c, sample.relative_humidity_pct)
    return (
        f"Outdoor now: {sample.temperature_c:.1f} °C, "
        f"{sample.relative_humidity_pct:.0f}% RH → {ah:.1f} g/m³"
    )


def describe_recommendation(rec: VentilationRecommendation) -> str:
    """Render a recommendation as a short multi-line message."""
    if rec.verdict is Verdict.INSUFFICIENT_INPUT:
        if rec.indoor is None:
            return MSG_MISSING_INDOOR
        return f"Indoor: {rec.indoor:.1f} g/m³\n{MSG_NO_OUTDOOR}"

    lines = [f"Indoor: {rec.indoor:.1f} g/m³", f"Outdoor: {rec.current_outdoor:.1f} g/m³", ""]
    if rec.verdict is Verdict.GOOD_NOW:
        lines.append(MSG_GOOD_NOW)
    elif rec.verdict is Verdict.WAIT and rec.next_good_time is not None:
        lines.append(MSG_KEEP_CLOSED)
        lines.append(MSG_NEXT_GOOD.format(slot=format_slot_time(rec.next_good_time)))
    else:
        lines.append(MSG_KEEP_CLOSED)
        lines.append(MSG_NO_WINDOW)
    return "\n".join(lines)
