# ABOUTME: Typed failures raised by the weather and location resolution pipeline.
# ABOUTME: Provider-level errors become SourceUnavailable; only exhaustion reaches callers.

import httpx


class SkyWatchError(Exception):
    """Base class for every failure this package reports to its callers."""


class SourceUnavailable(SkyWatchError):
    """A single provider failed. Resolvers catch this and move on to the next provider."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class LocationNotFound(SkyWatchError):
    """No geocoding provider could turn the query or coordinates into a place."""


class LocationUnavailable(SkyWatchError):
    """The device location sensor failed, was denied, or ran out of time."""


class AllSourcesExhausted(SkyWatchError):
    """Every weather provider failed for the requested coordinates."""


class ConfigurationError(SkyWatchError):
    """An environment setting could not be parsed or is outside its allowed values."""


def failure_reason(exc: Exception) -> str:
    """Short description of a provider failure that never echoes the request URL.

    Authenticated providers carry their key in the query string, so the
    default httpx messages must not end up in logs.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, httpx.HTTPError):
        return type(exc).__name__
    return f"malformed payload ({type(exc).__name__})"
