"""Absolute humidity from temperature and relative humidity.

Uses the Magnus approximation for saturation vapour pressure over water.
Inputs are not validated: NaN propagates, relative humidity is not clamped.
"""
from __future__ import annotations

import math

MAGNUS_BASE_HPA = 6.112
MAGNUS_A = 17.62
MAGNUS_B_C = 243.12
WATER_VAPOUR_FACTOR = 216.7  # g·K/(m³·hPa), 100 / R_v
KELVIN_OFFSET = 273.15


def saturation_vapor_pressure(temp_c: float) -> float:
    """Saturation vapour pressure in hPa at ``temp_c`` °C."""
    return MAGNUS_BASE_HPA * math.exp((MAGNUS_A * temp_c) / (MAGNUS_B_C + temp_c))


def absolute_humidity(temp_c: float, rh_percent: float) -> float:
    """
    Return absolute humidity in g/m³ for air at ``temp_c`` °C and ``rh_percent`` % RH.

    >>> round(absolute_humidity(22.0, 50.0), 1)
    9.7
    """
    svp = saturation_vapor_pressure(temp_c)
    return (WATER_VAPOUR_FACTOR * (rh_percent / 100) * svp) / (temp_c + KELVIN_OFFSET)
