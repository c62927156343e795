# ABOUTME: Dependency container for the dashboard using Pydantic BaseModel.
# ABOUTME: Holds the shared httpx.AsyncClient and Settings used by every provider call.

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception_type, stop_after_attempt

from src.config import Settings

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


class WeatherDeps(BaseModel):
    """Dependencies shared by the dashboard flows."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    settings: Settings


def _raise_for_retryable(response: httpx.Response) -> None:
    if response.status_code in RETRY_STATUSES:
        response.raise_for_status()


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create an httpx client with tenacity retry on transient HTTP errors.

    Retries connection errors, timeouts, and 429/5xx responses with exponential backoff.
    Other error statuses are returned to the caller untouched so provider fallback
    can move on immediately.
    """
    transport = AsyncTenacityTransport(
        RetryConfig(
            retry=retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout, httpx.HTTPStatusError)),
            wait=wait_retry_after(max_wait=30),
            stop=stop_after_attempt(3),
            reraise=True,
        ),
        validate_response=_raise_for_retryable,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=settings.http_timeout,
        headers={"User-Agent": settings.user_agent},
    )


def create_deps(settings: Settings) -> WeatherDeps:
    return WeatherDeps(http_client=create_http_client(settings), settings=settings)
