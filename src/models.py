# ABOUTME: Pydantic BaseModels for the canonical weather snapshot and location results.
# ABOUTME: Every provider adapter produces these types; the display layer consumes only these.

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

UnitSystem = Literal["metric", "imperial"]


class Condition(BaseModel):
    """Human-readable weather condition with an OpenWeatherMap-style icon code."""

    description: str
    icon: str


class CurrentWeather(BaseModel):
    """Conditions right now. Wind speed is m/s for metric and mph for imperial."""

    timestamp: datetime
    temperature: float
    humidity: float
    pressure: float
    wind_speed: float
    uv_index: float
    conditions: Condition


class HourlyForecast(BaseModel):
    """One forecast hour."""

    timestamp: datetime
    temperature: float
    conditions: Condition
    precipitation_probability: float = Field(default=0.0, ge=0.0, le=1.0)


class DailyForecast(BaseModel):
    """One forecast day."""

    timestamp: datetime
    temp_max: float
    temp_min: float
    conditions: Condition


class WeatherSnapshot(BaseModel):
    """Canonical weather shape shared by adapters, the merge engine and the display layer.

    All temperatures and wind speeds use ``units``; conversion happens once in the adapter.
    """

    units: UnitSystem = "metric"
    current: CurrentWeather
    hourly: list[HourlyForecast] = []
    daily: list[DailyForecast] = []
    timezone_offset_seconds: int = 0


class GeocodeResult(BaseModel):
    """Forward geocoding result."""

    latitude: float
    longitude: float
    label: str
    source: str


class GpsFix(BaseModel):
    """A single location sensor sample. Accuracy is the reported radius in meters."""

    latitude: float
    longitude: float
    accuracy: float = 999.0


class LocationCandidate(BaseModel):
    """One reverse-geocoding provider's parsed address, before ranking."""

    latitude: float
    longitude: float
    accuracy: float = 0.0
    confidence: int = Field(default=0, ge=0, le=100)
    village: str | None = None
    hamlet: str | None = None
    neighborhood: str | None = None
    suburb: str | None = None
    locality: str | None = None
    sub_locality: str | None = None
    street: str | None = None
    house_number: str | None = None
    postcode: str | None = None
    city: str = ""
    district: str | None = None
    state: str = ""
    country: str = ""
    country_code: str = ""
    full_address: str = ""
    source: str


class WeatherAnalysis(BaseModel):
    """Quick 24-hour trend summary."""

    current_temperature: float
    high_24h: float | None = None
    low_24h: float | None = None
    average_24h: int | None = None
    max_precipitation_probability: float = 0.0
    rain_warning: bool = False


class WeatherNotice(BaseModel):
    """A change worth telling the user about between two consecutive snapshots."""

    kind: Literal["conditions", "rain", "temperature"]
    title: str
    message: str


class DashboardView(BaseModel):
    """Everything the display layer needs after one user action."""

    weather: WeatherSnapshot
    place_label: str
    accuracy_label: str
    source_label: str
    tips: list[str] = []
    notices: list[WeatherNotice] = []
