# ABOUTME: Partial, optional-field tolerant schemas for third-party provider payloads.
# ABOUTME: Adapters validate raw JSON against these before reshaping into canonical models.

from typing import Any

from pydantic import BaseModel, Field

# --- Weather -----------------------------------------------------------------


class OpenMeteoCurrentWeather(BaseModel):
    time: str | None = None
    temperature: float | None = None
    windspeed: float | None = None
    weathercode: int | None = None


class OpenMeteoResponse(BaseModel):
    """Open-Meteo forecast payload. ``hourly`` and ``daily`` stay column-oriented."""

    current_weather: OpenMeteoCurrentWeather | None = None
    current_weather_units: dict[str, str] = {}
    hourly: dict[str, list[Any]] = {}
    daily: dict[str, list[Any]] = {}
    utc_offset_seconds: int = 0


class OwmWeatherItem(BaseModel):
    description: str = ""
    icon: str = ""


class OwmCurrent(BaseModel):
    dt: int | None = None
    temp: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    wind_speed: float | None = None
    uvi: float | None = None
    weather: list[OwmWeatherItem] = []


class OwmHourly(BaseModel):
    dt: int
    temp: float | None = None
    pop: float | None = None
    weather: list[OwmWeatherItem] = []


class OwmDailyTemp(BaseModel):
    max: float | None = None
    min: float | None = None


class OwmDaily(BaseModel):
    dt: int
    temp: OwmDailyTemp = Field(default_factory=OwmDailyTemp)
    weather: list[OwmWeatherItem] = []


class OwmOneCallResponse(BaseModel):
    """OpenWeatherMap One Call payload. ``current`` is the only required block."""

    current: OwmCurrent
    hourly: list[OwmHourly] = []
    daily: list[OwmDaily] = []
    timezone_offset: int = 0


# --- Forward geocoding -------------------------------------------------------


class OwmGeocodeHit(BaseModel):
    lat: float
    lon: float
    name: str
    state: str | None = None
    country: str = ""


class NominatimSearchHit(BaseModel):
    lat: float
    lon: float
    display_name: str


class OpenMeteoGeocodeHit(BaseModel):
    latitude: float
    longitude: float
    name: str
    admin1: str | None = None
    country: str | None = None


class OpenMeteoGeocodeResponse(BaseModel):
    results: list[OpenMeteoGeocodeHit] = []


# --- Reverse geocoding -------------------------------------------------------


class OsmReverseResponse(BaseModel):
    """Nominatim and LocationIQ share the OpenStreetMap reverse payload."""

    address: dict[str, Any]
    display_name: str = ""
    importance: float | None = None


class BigDataCloudAdministrative(BaseModel):
    name: str | None = None


class BigDataCloudLocalityInfo(BaseModel):
    administrative: list[BigDataCloudAdministrative] = []


class BigDataCloudResponse(BaseModel):
    locality: str | None = None
    city: str | None = None
    principal_subdivision: str | None = Field(default=None, alias="principalSubdivision")
    country_name: str | None = Field(default=None, alias="countryName")
    country_code: str | None = Field(default=None, alias="countryCode")
    postcode: str | None = None
    confidence: float | None = None
    locality_info: BigDataCloudLocalityInfo = Field(
        default_factory=BigDataCloudLocalityInfo, alias="localityInfo"
    )

    def admin_name(self, index: int) -> str | None:
        """Name of the administrative level at ``index``, or None when absent."""
        levels = self.locality_info.administrative
        if index >= len(levels):
            return None
        return levels[index].name or None


class MapBoxFeature(BaseModel):
    text: str = ""
    place_name: str = ""
    place_type: list[str] = []
    properties: dict[str, Any] = {}


class MapBoxResponse(BaseModel):
    features: list[MapBoxFeature] = []


class OpenCageResult(BaseModel):
    components: dict[str, Any] = {}
    formatted: str = ""
    confidence: float | None = None


class OpenCageResponse(BaseModel):
    results: list[OpenCageResult] = []
