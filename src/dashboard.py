# ABOUTME: Dashboard session tying geocoding, weather and precise location into one view.
# ABOUTME: Drops results of superseded requests and threads the previous snapshot explicitly.

import asyncio
import logging

from src.deps import WeatherDeps
from src.errors import LocationNotFound
from src.geocoding import build_forward_geocoders, resolve
from src.gps import LocationSensor
from src.insights import detect_changes, weather_tips
from src.location_service import (
    accuracy_report,
    build_postal_code_sources,
    build_reverse_geocoders,
    format_display_label,
    get_precise_location,
    resolve_precise,
)
from src.models import DashboardView, UnitSystem, WeatherSnapshot
from src.weather_service import get_weather_by_coordinates

logger = logging.getLogger(__name__)


class Dashboard:
    """Runs user actions against the providers and keeps the last rendered view.

    Every action takes a new generation number. When an action finishes after a
    newer one has started, its result is discarded and ``None`` is returned, so a
    slow response can never overwrite fresher data.
    """

    def __init__(self, deps: WeatherDeps, sensor: LocationSensor | None = None):
        self.deps = deps
        self.sensor = sensor
        self.view: DashboardView | None = None
        self._generation = 0

    @property
    def _credential(self) -> str | None:
        return self.deps.settings.openweather_api_key

    def _start(self) -> int:
        self._generation += 1
        return self._generation

    async def load_by_city(self, name: str, units: UnitSystem | None = None) -> DashboardView | None:
        """Search flow: geocode the name, then fetch weather for the match."""
        generation = self._start()
        units = units or self.deps.settings.units
        client = self.deps.http_client

        place = await resolve(client, name, build_forward_geocoders(self._credential))
        weather, source = await get_weather_by_coordinates(
            client, place.latitude, place.longitude, units, self._credential
        )
        return self._publish(
            generation, weather, place.label, f"City-level precision • {source}", source
        )

    async def load_by_coordinates(
        self, latitude: float, longitude: float, units: UnitSystem | None = None
    ) -> DashboardView | None:
        """Coordinates flow: weather and reverse geocoding run concurrently."""
        generation = self._start()
        units = units or self.deps.settings.units
        settings = self.deps.settings
        client = self.deps.http_client

        (weather, source), place = await asyncio.gather(
            get_weather_by_coordinates(client, latitude, longitude, units, self._credential),
            self._describe_place(
                resolve_precise(
                    client,
                    latitude,
                    longitude,
                    build_reverse_geocoders(settings),
                    build_postal_code_sources(settings),
                ),
                latitude,
                longitude,
            ),
        )
        place_label, accuracy_label = place
        return self._publish(generation, weather, place_label, accuracy_label, source)

    async def load_current_location(self, units: UnitSystem | None = None) -> DashboardView | None:
        """Locate-me flow: read the sensor, then resolve place and weather for the fix."""
        if self.sensor is None:
            raise ValueError("No location sensor configured")
        generation = self._start()
        units = units or self.deps.settings.units
        settings = self.deps.settings
        client = self.deps.http_client

        location = await get_precise_location(
            client,
            self.sensor,
            build_reverse_geocoders(settings),
            build_postal_code_sources(settings),
            budget=settings.gps_budget,
        )
        weather, source = await get_weather_by_coordinates(
            client, location.latitude, location.longitude, units, self._credential
        )
        return self._publish(
            generation, weather, format_display_label(location), accuracy_report(location), source
        )

    async def _describe_place(self, lookup, latitude: float, longitude: float) -> tuple[str, str]:
        try:
            location = await lookup
        except LocationNotFound as e:
            logger.warning("Precise location lookup failed: %s", e)
            return f"{latitude:.6f}°N, {longitude:.6f}°E", "Coordinate precision"
        return format_display_label(location), accuracy_report(location)

    def _publish(
        self,
        generation: int,
        weather: WeatherSnapshot,
        place_label: str,
        accuracy_label: str,
        source: str,
    ) -> DashboardView | None:
        if generation != self._generation:
            logger.debug("Discarding stale result for request %d (current is %d)", generation, self._generation)
            return None
        previous = None
        if self.view is not None and self.view.place_label == place_label:
            previous = self.view.weather
        self.view = DashboardView(
            weather=weather,
            place_label=place_label,
            accuracy_label=accuracy_label,
            source_label=source,
            tips=weather_tips(weather),
            notices=detect_changes(previous, weather),
        )
        return self.view
