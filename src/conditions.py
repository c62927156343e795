# ABOUTME: Pure helpers mapping WMO weather codes to conditions and converting units.
# ABOUTME: Used by adapters at the boundary and by insights for unit-independent thresholds.

import math

from src.models import Condition, UnitSystem

WEATHER_CODES: dict[int, tuple[str, str]] = {
    0: ("Clear sky", "01d"),
    1: ("Mainly clear", "02d"),
    2: ("Partly cloudy", "03d"),
    3: ("Overcast", "04d"),
    45: ("Foggy", "50d"),
    48: ("Depositing rime fog", "50d"),
    51: ("Light drizzle", "09d"),
    53: ("Moderate drizzle", "09d"),
    55: ("Dense drizzle", "09d"),
    61: ("Slight rain", "10d"),
    63: ("Moderate rain", "10d"),
    65: ("Heavy rain", "10d"),
    71: ("Slight snow", "13d"),
    73: ("Moderate snow", "13d"),
    75: ("Heavy snow", "13d"),
    80: ("Slight rain showers", "09d"),
    81: ("Moderate rain showers", "09d"),
    82: ("Violent rain showers", "09d"),
    95: ("Thunderstorm", "11d"),
    96: ("Thunderstorm with hail", "11d"),
    99: ("Thunderstorm with heavy hail", "11d"),
}

DEFAULT_CONDITION = Condition(description="Unknown weather", icon="02d")

MPH_PER_MS = 2.2369362920544


def code_to_condition(code: int | None) -> Condition:
    """Map a WMO weather code to a Condition. Unknown codes get the default pair."""
    if code is None or code not in WEATHER_CODES:
        return DEFAULT_CONDITION
    description, icon = WEATHER_CODES[code]
    return Condition(description=description, icon=icon)


def convert_temperature(value: float, from_units: UnitSystem, to_units: UnitSystem) -> float:
    if from_units == to_units:
        return value
    if to_units == "imperial":
        return value * 9 / 5 + 32
    return (value - 32) * 5 / 9


def convert_wind_speed(value: float, from_units: UnitSystem, to_units: UnitSystem) -> float:
    """Convert between m/s (metric) and mph (imperial)."""
    if from_units == to_units:
        return value
    if to_units == "imperial":
        return value * MPH_PER_MS
    return value / MPH_PER_MS


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, matching browser Math.round."""
    return math.floor(value + 0.5)
