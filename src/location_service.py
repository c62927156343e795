# ABOUTME: Reverse geocoding with several providers queried concurrently and ranked by detail.
# ABOUTME: Back-fills a missing postal code through a dedicated lookup cascade.

import asyncio
import logging

import httpx

from src.conditions import round_half_up
from src.config import Settings, has_credential
from src.errors import LocationNotFound, SourceUnavailable, failure_reason
from src.geocoding import HttpProvider
from src.gps import DEFAULT_BUDGET_S, LocationSensor, acquire_fix
from src.models import LocationCandidate
from src.schemas import BigDataCloudResponse, MapBoxResponse, OpenCageResponse, OsmReverseResponse

logger = logging.getLogger(__name__)

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
BIGDATACLOUD_URL = "https://api.bigdatacloud.net/data/reverse-geocode-client"
LOCATIONIQ_URL = "https://us1.locationiq.com/v1/reverse"
MAPBOX_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{lon},{lat}.json"
OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"

MIN_CONFIDENCE = 60
POSTCODE_BONUS = 10
POSTCODE_CONFIDENCE_BUMP = 8
HEURISTIC_CONFIDENCE_CAP = 95

DETAIL_WEIGHTS = (
    ("village", 20),
    ("hamlet", 15),
    ("neighborhood", 15),
    ("street", 10),
    ("house_number", 10),
    ("postcode", 10),
    ("locality", 5),
    ("suburb", 5),
)


class ReverseGeocoder(HttpProvider):
    """One reverse geocoding provider.

    Subclasses describe the request and parse the payload; ``locate`` turns
    transport errors and unusable payloads into SourceUnavailable.
    """

    def request(self, latitude: float, longitude: float) -> tuple[str, dict, dict]:
        raise NotImplementedError

    def parse(self, data, latitude: float, longitude: float) -> LocationCandidate:
        raise NotImplementedError

    async def locate(self, client: httpx.AsyncClient, latitude: float, longitude: float) -> LocationCandidate:
        url, params, headers = self.request(latitude, longitude)
        data = await self._get_json(client, url, params=params, headers=headers)
        try:
            return self.parse(data, latitude, longitude)
        except (ValueError, TypeError) as e:
            raise SourceUnavailable(self.name, failure_reason(e)) from e


class NominatimReverse(ReverseGeocoder):
    name = "Nominatim OpenStreetMap"

    def request(self, latitude, longitude):
        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "zoom": 18,
            "addressdetails": 1,
            "extratags": 1,
            "namedetails": 1,
        }
        return NOMINATIM_REVERSE_URL, params, {"Accept-Language": "en"}

    def parse(self, data, latitude, longitude):
        payload = OsmReverseResponse.model_validate(data)
        return _osm_candidate(payload, latitude, longitude, self.name, nominatim_confidence(payload))


class LocationIQReverse(ReverseGeocoder):
    name = "LocationIQ"

    def __init__(self, key: str):
        self.key = key

    def request(self, latitude, longitude):
        params = {"key": self.key, "lat": latitude, "lon": longitude, "format": "json", "addressdetails": 1}
        return LOCATIONIQ_URL, params, {}

    def parse(self, data, latitude, longitude):
        payload = OsmReverseResponse.model_validate(data)
        return _osm_candidate(payload, latitude, longitude, self.name, 80)


class BigDataCloudReverse(ReverseGeocoder):
    name = "BigDataCloud"

    def request(self, latitude, longitude):
        params = {"latitude": latitude, "longitude": longitude, "localityLanguage": "en"}
        return BIGDATACLOUD_URL, params, {}

    def parse(self, data, latitude, longitude):
        d = BigDataCloudResponse.model_validate(data)
        if not any((d.locality, d.city, d.principal_subdivision, d.country_name)):
            raise ValueError("missing address block")
        return LocationCandidate(
            latitude=latitude,
            longitude=longitude,
            village=_clean(d.locality) or d.admin_name(4),
            neighborhood=d.admin_name(5) or d.admin_name(6),
            street=d.admin_name(7),
            locality=_clean(d.locality),
            city=_clean(d.city) or d.admin_name(2) or "",
            district=d.admin_name(1),
            state=d.principal_subdivision or "",
            country=d.country_name or "",
            country_code=(d.country_code or "").upper(),
            postcode=_clean(d.postcode),
            full_address=_bigdatacloud_address(d),
            confidence=_confidence(d.confidence if d.confidence is not None else 85),
            source=self.name,
        )


class MapBoxReverse(ReverseGeocoder):
    name = "MapBox"

    def __init__(self, token: str):
        self.token = token

    def request(self, latitude, longitude):
        return MAPBOX_URL.format(lat=latitude, lon=longitude), {"access_token": self.token}, {}

    def parse(self, data, latitude, longitude):
        features = MapBoxResponse.model_validate(data).features
        if not features:
            raise ValueError("no MapBox results")
        first = features[0]

        def component(kind: str) -> str | None:
            return next((_clean(f.text) for f in features if kind in f.place_type), None)

        return LocationCandidate(
            latitude=latitude,
            longitude=longitude,
            village=component("locality"),
            neighborhood=component("neighborhood"),
            street=_clean(first.properties.get("address")) or _clean(first.place_name.split(",")[0]),
            city=component("place") or "",
            district=component("district"),
            state=component("region") or "",
            country=component("country") or "",
            postcode=component("postcode"),
            full_address=first.place_name,
            confidence=85,
            source=self.name,
        )


class OpenCageReverse(ReverseGeocoder):
    name = "OpenCage Data"

    def __init__(self, key: str):
        self.key = key

    def request(self, latitude, longitude):
        params = {"q": f"{latitude},{longitude}", "key": self.key, "language": "en", "no_annotations": 1}
        return OPENCAGE_URL, params, {}

    def parse(self, data, latitude, longitude):
        results = OpenCageResponse.model_validate(data).results
        if not results:
            raise ValueError("no OpenCage results")
        result = results[0]
        comp = result.components
        # OpenCage reports confidence on a 0-10 scale.
        confidence = result.confidence * 10 if result.confidence is not None else 80
        return LocationCandidate(
            latitude=latitude,
            longitude=longitude,
            village=_first(comp, "village", "hamlet", "neighbourhood"),
            hamlet=_first(comp, "hamlet"),
            neighborhood=_first(comp, "neighbourhood", "suburb"),
            suburb=_first(comp, "suburb"),
            locality=_first(comp, "locality"),
            street=_first(comp, "road", "street"),
            house_number=_first(comp, "house_number"),
            postcode=_first(comp, "postcode"),
            city=_first(comp, "city", "town", "village") or "",
            district=_first(comp, "county", "state_district"),
            state=_first(comp, "state") or "",
            country=_first(comp, "country") or "",
            country_code=(_first(comp, "country_code") or "").upper(),
            full_address=result.formatted,
            confidence=_confidence(confidence),
            source=self.name,
        )


def nominatim_confidence(payload: OsmReverseResponse) -> int:
    """Heuristic confidence for Nominatim, which reports none: 70 plus bonuses for address depth."""
    addr = payload.address
    confidence = 70
    if addr.get("village") or addr.get("hamlet"):
        confidence += 15
    if addr.get("neighbourhood"):
        confidence += 10
    if addr.get("road"):
        confidence += 5
    if addr.get("house_number"):
        confidence += 10
    if addr.get("postcode"):
        confidence += 5
    if payload.importance is not None and payload.importance > 0.5:
        confidence += 5
    return min(confidence, HEURISTIC_CONFIDENCE_CAP)


def detail_score(candidate: LocationCandidate) -> int:
    return sum(weight for field, weight in DETAIL_WEIGHTS if getattr(candidate, field))


def candidate_score(candidate: LocationCandidate) -> int:
    bonus = POSTCODE_BONUS if has_postcode(candidate) else 0
    return candidate.confidence + detail_score(candidate) + bonus


def has_postcode(candidate: LocationCandidate) -> bool:
    return bool(candidate.postcode and candidate.postcode.strip())


def rank_candidates(candidates: list[LocationCandidate]) -> LocationCandidate | None:
    """Pick the best candidate, or None if none is confident enough.

    Candidates at or below MIN_CONFIDENCE are dropped. Postcode-bearing
    candidates form a priority tier; within the tier the highest
    ``candidate_score`` wins and earlier candidates win ties.
    """
    usable = [c for c in candidates if c.confidence > MIN_CONFIDENCE]
    tier = [c for c in usable if has_postcode(c)] or usable
    best = None
    for candidate in tier:
        if best is None or candidate_score(candidate) > candidate_score(best):
            best = candidate
    return best


def backfill_place(candidate: LocationCandidate) -> LocationCandidate:
    """Fill empty city and state from the most specific populated fields."""
    city = (
        candidate.city
        or candidate.locality
        or candidate.village
        or candidate.hamlet
        or candidate.neighborhood
        or candidate.suburb
        or candidate.full_address.split(",")[0].strip()
    )
    state = candidate.state or candidate.district or ""
    return candidate.model_copy(update={"city": city, "state": state})


def build_reverse_geocoders(settings: Settings | None = None) -> list[ReverseGeocoder]:
    """Every reverse geocoding provider usable with the given settings, in tie-break order."""
    settings = settings or Settings()
    providers: list[ReverseGeocoder] = [NominatimReverse()]
    if has_credential(settings.mapbox_token):
        providers.append(MapBoxReverse(settings.mapbox_token))
    providers.append(BigDataCloudReverse())
    if has_credential(settings.locationiq_key):
        providers.append(LocationIQReverse(settings.locationiq_key))
    if has_credential(settings.opencage_key):
        providers.append(OpenCageReverse(settings.opencage_key))
    return providers


def build_postal_code_sources(settings: Settings | None = None) -> list[ReverseGeocoder]:
    """Postal code lookups in the order they are tried."""
    settings = settings or Settings()
    sources: list[ReverseGeocoder] = [BigDataCloudReverse(), NominatimReverse()]
    if has_credential(settings.opencage_key):
        sources.append(OpenCageReverse(settings.opencage_key))
    return sources


async def lookup_postal_code(
    client: httpx.AsyncClient, latitude: float, longitude: float, sources: list[ReverseGeocoder]
) -> str | None:
    """Return the first non-empty postcode from ``sources``; failures just move on."""
    for source in sources:
        try:
            candidate = await source.locate(client, latitude, longitude)
        except SourceUnavailable as e:
            logger.warning("Postal code lookup via %s failed: %s", source.name, e.reason)
            continue
        if has_postcode(candidate):
            logger.info("Postal code %s found via %s", candidate.postcode, source.name)
            return candidate.postcode.strip()
    return None


async def resolve_precise(
    client: httpx.AsyncClient,
    latitude: float,
    longitude: float,
    providers: list[ReverseGeocoder] | None = None,
    postal_sources: list[ReverseGeocoder] | None = None,
    accuracy: float = 0.0,
) -> LocationCandidate:
    """Reverse geocode a coordinate pair into the best available address."""
    if providers is None:
        providers = build_reverse_geocoders()
    if postal_sources is None:
        postal_sources = build_postal_code_sources()

    results = await asyncio.gather(
        *(provider.locate(client, latitude, longitude) for provider in providers),
        return_exceptions=True,
    )
    candidates = []
    for provider, result in zip(providers, results):
        if isinstance(result, SourceUnavailable):
            logger.warning("Reverse geocoding via %s failed: %s", provider.name, result.reason)
        elif isinstance(result, BaseException):
            raise result
        else:
            candidates.append(result)

    best = rank_candidates(candidates)
    if best is None:
        raise LocationNotFound("Unable to determine precise location")

    best = backfill_place(
        best.model_copy(update={"latitude": latitude, "longitude": longitude, "accuracy": accuracy})
    )
    if not has_postcode(best):
        postcode = await lookup_postal_code(client, latitude, longitude, postal_sources)
        if postcode:
            confidence = min(HEURISTIC_CONFIDENCE_CAP, best.confidence + POSTCODE_CONFIDENCE_BUMP)
            best = best.model_copy(update={"postcode": postcode, "confidence": confidence})

    logger.info("Precise location from %s (%d%% confident)", best.source, best.confidence)
    return best


async def get_precise_location(
    client: httpx.AsyncClient,
    sensor: LocationSensor,
    providers: list[ReverseGeocoder] | None = None,
    postal_sources: list[ReverseGeocoder] | None = None,
    budget: float = DEFAULT_BUDGET_S,
) -> LocationCandidate:
    """Read the location sensor, then reverse geocode the best fix."""
    fix = await acquire_fix(sensor, budget=budget)
    return await resolve_precise(
        client, fix.latitude, fix.longitude, providers, postal_sources, accuracy=fix.accuracy
    )


def format_display_label(candidate: LocationCandidate) -> str:
    """Most specific first: street, village-level area, locality, city, district, state, PIN."""
    parts: list[str] = []
    if candidate.house_number and candidate.street:
        parts.append(f"{candidate.house_number} {candidate.street}")
    elif candidate.street:
        parts.append(candidate.street)

    area = candidate.village or candidate.hamlet or candidate.neighborhood or candidate.suburb
    if area:
        parts.append(area)

    if candidate.locality and candidate.locality not in parts:
        parts.append(candidate.locality)
    if candidate.city and not any(candidate.city.lower() in p.lower() for p in parts):
        parts.append(candidate.city)
    if candidate.district and candidate.district not in parts:
        parts.append(candidate.district)
    if candidate.state and candidate.state not in parts:
        parts.append(candidate.state)
    if candidate.postcode and candidate.postcode not in parts:
        parts.append(f"PIN {candidate.postcode}")

    return ", ".join(parts[:5]) or candidate.full_address or "Location detected"


def accuracy_report(candidate: LocationCandidate) -> str:
    accuracy = candidate.accuracy
    if accuracy <= 5:
        level = "Building-level accuracy (±5m)"
    elif accuracy <= 10:
        level = "Street-level accuracy (±10m)"
    elif accuracy <= 50:
        level = "Neighborhood accuracy (±50m)"
    elif accuracy <= 100:
        level = "Area-level accuracy (±100m)"
    else:
        level = "General area accuracy"
    return f"{level} • {candidate.confidence}% confident • Source: {candidate.source}"


def _osm_candidate(
    payload: OsmReverseResponse, latitude: float, longitude: float, source: str, confidence: int
) -> LocationCandidate:
    addr = payload.address
    return LocationCandidate(
        latitude=latitude,
        longitude=longitude,
        village=_first(addr, "village", "hamlet", "neighbourhood"),
        hamlet=_first(addr, "hamlet"),
        neighborhood=_first(addr, "neighbourhood", "suburb"),
        suburb=_first(addr, "suburb"),
        locality=_first(addr, "locality", "city_district"),
        sub_locality=_first(addr, "city_district"),
        street=_first(addr, "road", "street"),
        house_number=_first(addr, "house_number"),
        postcode=_first(addr, "postcode", "postal_code", "zipcode"),
        city=_first(addr, "city", "town", "municipality", "village") or "",
        district=_first(addr, "state_district", "county"),
        state=_first(addr, "state") or "",
        country=_first(addr, "country") or "",
        country_code=(_first(addr, "country_code") or "").upper(),
        full_address=payload.display_name,
        confidence=confidence,
        source=source,
    )


def _bigdatacloud_address(d: BigDataCloudResponse) -> str:
    parts = [d.locality]
    if d.city != d.locality:
        parts.append(d.city)
    parts += [d.principal_subdivision, d.country_name, d.postcode]
    return ", ".join(p for p in parts if p) or "Address not available"


def _first(mapping: dict, *keys: str) -> str | None:
    for key in keys:
        value = _clean(mapping.get(key))
        if value:
            return value
    return None


def _clean(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _confidence(value: float) -> int:
    return max(0, min(100, round_half_up(value)))
