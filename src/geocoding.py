# ABOUTME: Forward geocoding turns a free-text place name into coordinates and a label.
# ABOUTME: Tries an ordered list of providers, falling through on any provider failure.

import logging

import httpx

from src.config import has_credential
from src.errors import LocationNotFound, SourceUnavailable, failure_reason
from src.models import GeocodeResult
from src.schemas import NominatimSearchHit, OpenMeteoGeocodeResponse, OwmGeocodeHit

logger = logging.getLogger(__name__)

OWM_GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"
NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
OPEN_METEO_GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"


def compose_label(name: str, state: str | None, country: str | None) -> str:
    """Build ``"<name>[, <state>], <country>"``, skipping the empty segments."""
    return ", ".join(part for part in (name, state, country) if part)


class HttpProvider:
    """Base for geocoding providers: a display name plus a JSON GET that fails as SourceUnavailable."""

    name = "provider"

    async def _get_json(self, client: httpx.AsyncClient, url: str, **kwargs):
        try:
            resp = await client.get(url, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SourceUnavailable(self.name, failure_reason(e)) from e


class ForwardGeocoder(HttpProvider):
    """One forward geocoding provider. Subclasses raise SourceUnavailable on any failure."""

    async def search(self, client: httpx.AsyncClient, query: str) -> GeocodeResult:
        raise NotImplementedError


class OpenWeatherGeocoder(ForwardGeocoder):
    name = "OpenWeatherMap"

    def __init__(self, credential: str):
        self.credential = credential

    async def search(self, client: httpx.AsyncClient, query: str) -> GeocodeResult:
        data = await self._get_json(
            client, OWM_GEOCODING_URL, params={"q": query, "limit": 1, "appid": self.credential}
        )
        if not isinstance(data, list) or not data:
            raise SourceUnavailable(self.name, "city not found")
        try:
            hit = OwmGeocodeHit.model_validate(data[0])
        except ValueError as e:
            raise SourceUnavailable(self.name, failure_reason(e)) from e
        return GeocodeResult(
            latitude=hit.lat,
            longitude=hit.lon,
            label=compose_label(hit.name, hit.state, hit.country),
            source=self.name,
        )


class NominatimGeocoder(ForwardGeocoder):
    name = "Nominatim"

    async def search(self, client: httpx.AsyncClient, query: str) -> GeocodeResult:
        data = await self._get_json(
            client,
            NOMINATIM_SEARCH_URL,
            params={"format": "json", "q": query, "limit": 1},
            headers={"Accept-Language": "en"},
        )
        if not isinstance(data, list) or not data:
            raise SourceUnavailable(self.name, f'city "{query}" not found')
        try:
            hit = NominatimSearchHit.model_validate(data[0])
        except ValueError as e:
            raise SourceUnavailable(self.name, failure_reason(e)) from e
        return GeocodeResult(
            latitude=hit.lat,
            longitude=hit.lon,
            label=hit.display_name.split(",")[0].strip(),
            source=self.name,
        )


class OpenMeteoGeocoder(ForwardGeocoder):
    name = "Open-Meteo"

    async def search(self, client: httpx.AsyncClient, query: str) -> GeocodeResult:
        data = await self._get_json(
            client, OPEN_METEO_GEOCODING_URL, params={"name": query, "count": 1, "language": "en"}
        )
        try:
            results = OpenMeteoGeocodeResponse.model_validate(data).results
        except ValueError as e:
            raise SourceUnavailable(self.name, failure_reason(e)) from e
        if not results:
            raise SourceUnavailable(self.name, f'city "{query}" not found')
        r = results[0]
        return GeocodeResult(
            latitude=r.latitude,
            longitude=r.longitude,
            label=compose_label(r.name, r.admin1, r.country),
            source=self.name,
        )


def build_forward_geocoders(credential: str | None = None) -> list[ForwardGeocoder]:
    """Providers in the order they are tried. OpenWeatherMap leads only with a usable key."""
    providers: list[ForwardGeocoder] = []
    if has_credential(credential):
        providers.append(OpenWeatherGeocoder(credential))
    providers.append(NominatimGeocoder())
    providers.append(OpenMeteoGeocoder())
    return providers


async def resolve(
    client: httpx.AsyncClient, query: str, providers: list[ForwardGeocoder] | None = None
) -> GeocodeResult:
    """Geocode ``query`` with the first provider that yields a match."""
    query = query.strip()
    if not query:
        raise LocationNotFound("Empty location query")
    for provider in providers if providers is not None else build_forward_geocoders():
        try:
            result = await provider.search(client, query)
        except SourceUnavailable as e:
            logger.warning("Geocoding via %s failed: %s", provider.name, e.reason)
            continue
        logger.info("Geocoded %r to %s via %s", query, result.label, provider.name)
        return result
    raise LocationNotFound(f'City "{query}" not found')
