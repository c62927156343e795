# ABOUTME: Service layer for weather provider calls and response reshaping.
# ABOUTME: Fetches Open-Meteo and OpenWeatherMap concurrently, merging when both answer.

import asyncio
import logging
from datetime import datetime, timedelta, timezone, tzinfo

import httpx

from src.conditions import DEFAULT_CONDITION, code_to_condition, convert_temperature, round_half_up
from src.config import has_credential
from src.errors import AllSourcesExhausted, SourceUnavailable, failure_reason
from src.geocoding import build_forward_geocoders, resolve
from src.merge import merge
from src.models import (
    Condition,
    CurrentWeather,
    DailyForecast,
    HourlyForecast,
    UnitSystem,
    WeatherSnapshot,
)
from src.schemas import OpenMeteoResponse, OwmOneCallResponse, OwmWeatherItem

logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
ONECALL_URL = "https://api.openweathermap.org/data/2.5/onecall"

HOURLY_PARAMS = "temperature_2m,relative_humidity_2m,precipitation_probability,weather_code,wind_speed_10m"
DAILY_PARAMS = "weather_code,temperature_2m_max,temperature_2m_min,precipitation_probability_max"

MAX_HOURLY = 24
MAX_DAILY = 7

# Open-Meteo's current_weather block has no humidity, pressure or UV reading.
FALLBACK_HUMIDITY = 65.0
FALLBACK_PRESSURE = 1013.0
FALLBACK_UV_INDEX = 5.0

OPEN_METEO_LABEL = "Open-Meteo (Live)"
OPENWEATHER_LABEL = "OpenWeatherMap (Live)"
MERGED_LABEL = "OpenWeatherMap + Open-Meteo (Live)"


async def fetch_open_meteo(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    units: UnitSystem = "metric",
    now: datetime | None = None,
) -> WeatherSnapshot:
    """Fetch current, 24h hourly and 7-day weather from the no-auth Open-Meteo API."""
    try:
        resp = await client.get(
            FORECAST_URL,
            params={
                "latitude": latitude,
                "longitude": longitude,
                "current_weather": "true",
                "hourly": HOURLY_PARAMS,
                "daily": DAILY_PARAMS,
                "temperature_unit": "celsius" if units == "metric" else "fahrenheit",
                "wind_speed_unit": "ms" if units == "metric" else "mph",
                "timezone": "auto",
            },
        )
        resp.raise_for_status()
        data = OpenMeteoResponse.model_validate(resp.json())
        if data.current_weather is None:
            raise SourceUnavailable("Open-Meteo", "no current weather data available")
        return _open_meteo_snapshot(data, units, now or datetime.now(timezone.utc))
    except (httpx.HTTPError, ValueError, TypeError) as e:
        raise SourceUnavailable("Open-Meteo", failure_reason(e)) from e


def _open_meteo_snapshot(data: OpenMeteoResponse, units: UnitSystem, now: datetime) -> WeatherSnapshot:
    local_tz = timezone(timedelta(seconds=data.utc_offset_seconds))
    reported = _reported_units(data.current_weather_units.get("temperature"))

    def temp(value: float) -> float:
        return convert_temperature(value, reported or units, units)

    current = data.current_weather
    humidity = _get_at(data.hourly, "relative_humidity_2m", 0)

    return WeatherSnapshot(
        units=units,
        current=CurrentWeather(
            timestamp=_local_time(current.time, local_tz) if current.time else now,
            temperature=round_half_up(temp(_num(current.temperature))),
            humidity=_num(humidity) or FALLBACK_HUMIDITY,
            pressure=FALLBACK_PRESSURE,
            wind_speed=_num(current.windspeed),
            uv_index=FALLBACK_UV_INDEX,
            conditions=code_to_condition(current.weathercode),
        ),
        hourly=parse_hourly_data(data.hourly, local_tz, now, temp),
        daily=parse_daily_data(data.daily, local_tz, temp),
        timezone_offset_seconds=data.utc_offset_seconds,
    )


def parse_hourly_data(raw: dict, local_tz: tzinfo, now: datetime, temp=lambda v: v) -> list[HourlyForecast]:
    """Zip Open-Meteo hourly columns into rows, keeping hours at or after ``now``."""
    result = []
    for i, t in enumerate(raw.get("time", [])):
        timestamp = _hour_start(_local_time(t, local_tz), local_tz)
        if timestamp < now:
            continue
        pop = _num(_get_at(raw, "precipitation_probability", i)) / 100
        result.append(
            HourlyForecast(
                timestamp=timestamp,
                temperature=temp(_num(_get_at(raw, "temperature_2m", i))),
                conditions=code_to_condition(_get_at(raw, "weather_code", i)),
                precipitation_probability=min(max(pop, 0.0), 1.0),
            )
        )
        if len(result) == MAX_HOURLY:
            break
    return result


def parse_daily_data(raw: dict, local_tz: tzinfo, temp=lambda v: v) -> list[DailyForecast]:
    """Zip Open-Meteo daily columns into at most seven DailyForecast rows."""
    result = []
    for i, d in enumerate(raw.get("time", [])[:MAX_DAILY]):
        result.append(
            DailyForecast(
                timestamp=_day_start(_local_time(d, local_tz), local_tz),
                temp_max=temp(_num(_get_at(raw, "temperature_2m_max", i))),
                temp_min=temp(_num(_get_at(raw, "temperature_2m_min", i))),
                conditions=code_to_condition(_get_at(raw, "weather_code", i)),
            )
        )
    return result


async def fetch_openweather(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    units: UnitSystem,
    credential: str,
    now: datetime | None = None,
) -> WeatherSnapshot:
    """Fetch weather from the OpenWeatherMap One Call API (needs an API key).

    Hours and days are keyed by the start of the local clock hour and the local
    calendar day, the same keys the Open-Meteo adapter produces, so the merge
    can match them.
    """
    try:
        resp = await client.get(
            ONECALL_URL,
            params={
                "lat": latitude,
                "lon": longitude,
                "units": units,
                "exclude": "minutely,alerts",
                "appid": credential,
            },
        )
        resp.raise_for_status()
        data = OwmOneCallResponse.model_validate(resp.json())
    except (httpx.HTTPError, ValueError) as e:
        raise SourceUnavailable("OpenWeatherMap", failure_reason(e)) from e

    now = now or datetime.now(timezone.utc)
    local_tz = timezone(timedelta(seconds=data.timezone_offset))
    hours = [(_hour_start(_epoch(h.dt), local_tz), h) for h in data.hourly]
    current = data.current
    return WeatherSnapshot(
        units=units,
        current=CurrentWeather(
            timestamp=_epoch(current.dt) if current.dt is not None else now,
            temperature=_num(current.temp),
            humidity=_num(current.humidity),
            pressure=_num(current.pressure, FALLBACK_PRESSURE),
            wind_speed=_num(current.wind_speed),
            uv_index=_num(current.uvi),
            conditions=_owm_condition(current.weather),
        ),
        hourly=[
            HourlyForecast(
                timestamp=timestamp,
                temperature=_num(h.temp),
                conditions=_owm_condition(h.weather),
                precipitation_probability=min(max(_num(h.pop), 0.0), 1.0),
            )
            for timestamp, h in hours
            if timestamp >= now
        ][:MAX_HOURLY],
        daily=[
            DailyForecast(
                timestamp=_day_start(_epoch(d.dt), local_tz),
                temp_max=_num(d.temp.max),
                temp_min=_num(d.temp.min),
                conditions=_owm_condition(d.weather),
            )
            for d in data.daily[:MAX_DAILY]
        ],
        timezone_offset_seconds=data.timezone_offset,
    )


async def get_weather_by_coordinates(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    units: UnitSystem = "metric",
    credential: str | None = None,
    now: datetime | None = None,
) -> tuple[WeatherSnapshot, str]:
    """Resolve weather for a coordinate pair, returning the snapshot and its source label.

    Open-Meteo is always queried. OpenWeatherMap joins concurrently when a usable
    credential is given; if both answer, OpenWeatherMap is the primary side of the merge.
    """
    fetches = [fetch_open_meteo(client, latitude, longitude, units, now=now)]
    if has_credential(credential):
        fetches.append(fetch_openweather(client, latitude, longitude, units, credential, now=now))

    snapshots: list[WeatherSnapshot | None] = []
    for result in await asyncio.gather(*fetches, return_exceptions=True):
        if isinstance(result, SourceUnavailable):
            logger.warning("Weather provider failed: %s", result)
            snapshots.append(None)
        elif isinstance(result, BaseException):
            raise result
        else:
            snapshots.append(result)

    open_meteo = snapshots[0]
    openweather = snapshots[1] if len(snapshots) > 1 else None

    if openweather is not None and open_meteo is not None:
        snapshot, source = merge(openweather, open_meteo), MERGED_LABEL
    elif open_meteo is not None:
        snapshot, source = open_meteo, OPEN_METEO_LABEL
    elif openweather is not None:
        snapshot, source = openweather, OPENWEATHER_LABEL
    else:
        raise AllSourcesExhausted("All weather sources failed. Please check your internet connection.")

    logger.info("Weather for %.4f,%.4f from %s", latitude, longitude, source)
    return snapshot, source


async def get_weather_by_city_name(
    client: httpx.AsyncClient,
    name: str,
    units: UnitSystem = "metric",
    credential: str | None = None,
    now: datetime | None = None,
) -> tuple[WeatherSnapshot, str, str]:
    """Geocode a place name, then fetch its weather. Returns (snapshot, place_label, source_label)."""
    place = await resolve(client, name, build_forward_geocoders(credential))
    snapshot, source = await get_weather_by_coordinates(
        client, place.latitude, place.longitude, units, credential, now=now
    )
    return snapshot, place.label, source


def _owm_condition(items: list[OwmWeatherItem]) -> Condition:
    if not items or not items[0].description:
        return DEFAULT_CONDITION
    return Condition(description=items[0].description, icon=items[0].icon or DEFAULT_CONDITION.icon)


def _reported_units(label: str | None) -> UnitSystem | None:
    if label == "°C":
        return "metric"
    if label == "°F":
        return "imperial"
    return None


def _local_time(raw: str, local_tz: tzinfo) -> datetime:
    """Parse a provider-local ISO time and normalize it to UTC."""
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_tz)
    return parsed.astimezone(timezone.utc)


def _hour_start(ts: datetime, local_tz: tzinfo) -> datetime:
    """Start of the local clock hour containing ``ts``, in UTC."""
    return ts.astimezone(local_tz).replace(minute=0, second=0, microsecond=0).astimezone(timezone.utc)


def _day_start(ts: datetime, local_tz: tzinfo) -> datetime:
    """Local midnight of the calendar day containing ``ts``, in UTC."""
    return ts.astimezone(local_tz).replace(hour=0, minute=0, second=0, microsecond=0).astimezone(timezone.utc)


def _epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _num(value, default: float = 0.0) -> float:
    return default if value is None else float(value)


def _get_at(data: dict, key: str, index: int):
    """Safely get value at index from a column array, returning None if missing."""
    col = data.get(key)
    if col is None or index >= len(col):
        return None
    return col[index]
