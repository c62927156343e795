# ABOUTME: Combines two canonical weather snapshots into one, field by field.
# ABOUTME: Deterministic; the primary snapshot wins every tie.

from datetime import datetime

from src.conditions import round_half_up
from src.models import Condition, CurrentWeather, DailyForecast, HourlyForecast, WeatherSnapshot

DEFAULT_PRESSURE = 1013.0
MAX_HOURLY = 24
MAX_DAILY = 7


def merge(primary: WeatherSnapshot, secondary: WeatherSnapshot | None = None) -> WeatherSnapshot:
    """Merge ``secondary`` into ``primary``.

    Returns ``primary`` itself when there is nothing to merge. Current readings
    average temperature and humidity, take the higher wind speed, and prefer
    the primary pressure and conditions. Forecast entries are matched by
    timestamp: matched pairs average their temperatures and keep the higher
    precipitation probability, unmatched entries pass through untouched.
    """
    if secondary is None:
        return primary
    if primary.units != secondary.units:
        raise ValueError(f"Cannot merge {primary.units} snapshot with {secondary.units} snapshot")

    return WeatherSnapshot(
        units=primary.units,
        current=_merge_current(primary.current, secondary.current),
        hourly=_merge_series(primary.hourly, secondary.hourly, _merge_hour)[:MAX_HOURLY],
        daily=_merge_series(primary.daily, secondary.daily, _merge_day)[:MAX_DAILY],
        timezone_offset_seconds=primary.timezone_offset_seconds,
    )


def _merge_current(a: CurrentWeather, b: CurrentWeather) -> CurrentWeather:
    return CurrentWeather(
        timestamp=a.timestamp,
        temperature=_mean(a.temperature, b.temperature),
        humidity=round_half_up(_mean(a.humidity, b.humidity)),
        pressure=_first_present(a.pressure, b.pressure, DEFAULT_PRESSURE),
        wind_speed=max(a.wind_speed, b.wind_speed),
        uv_index=a.uv_index,
        conditions=_prefer(a.conditions, b.conditions),
    )


def _merge_hour(a: HourlyForecast, b: HourlyForecast) -> HourlyForecast:
    return HourlyForecast(
        timestamp=a.timestamp,
        temperature=round_half_up(_mean(a.temperature, b.temperature)),
        conditions=_prefer(a.conditions, b.conditions),
        precipitation_probability=max(a.precipitation_probability, b.precipitation_probability),
    )


def _merge_day(a: DailyForecast, b: DailyForecast) -> DailyForecast:
    return DailyForecast(
        timestamp=a.timestamp,
        temp_max=round_half_up(_mean(a.temp_max, b.temp_max)),
        temp_min=round_half_up(_mean(a.temp_min, b.temp_min)),
        conditions=_prefer(a.conditions, b.conditions),
    )


def _merge_series(primary: list, secondary: list, combine) -> list:
    by_time: dict[datetime, object] = {entry.timestamp: entry for entry in primary}
    for entry in secondary:
        match = by_time.get(entry.timestamp)
        by_time[entry.timestamp] = entry if match is None else combine(match, entry)
    return sorted(by_time.values(), key=lambda entry: entry.timestamp)


def _mean(a: float | None, b: float | None) -> float | None:
    if a is None:
        return b
    if b is None:
        return a
    return (a + b) / 2


def _first_present(*values: float | None) -> float:
    return next(v for v in values if v is not None)


def _prefer(a: Condition, b: Condition) -> Condition:
    return a if a.description else b
