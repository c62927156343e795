# ABOUTME: Shared test fixtures for the SkyWatch test suite.
# ABOUTME: Provides a mock httpx.AsyncClient that answers requests by URL prefix.

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from src.models import Condition, CurrentWeather, WeatherSnapshot


@pytest.fixture
def routed_client():
    """Factory for a mock AsyncClient whose GET answers come from a prefix -> outcome map.

    An outcome is a JSON payload (HTTP 200), a ``(status, payload)`` tuple, or an
    exception instance to raise. Unrouted URLs raise httpx.ConnectError.
    """

    def build(routes: dict) -> AsyncMock:
        mock = AsyncMock(spec=httpx.AsyncClient)

        async def get(url, **kwargs):
            request = httpx.Request("GET", url)
            for prefix, outcome in routes.items():
                if not url.startswith(prefix):
                    continue
                if isinstance(outcome, Exception):
                    raise outcome
                status, payload = outcome if isinstance(outcome, tuple) else (200, outcome)
                return httpx.Response(status_code=status, json=payload, request=request)
            raise httpx.ConnectError("no route", request=request)

        mock.get.side_effect = get
        return mock

    return build


@pytest.fixture
def snapshot_factory():
    """Factory for a minimal valid WeatherSnapshot with overridable current readings."""

    def build(**current) -> WeatherSnapshot:
        fields = {
            "timestamp": datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc),
            "temperature": 22.0,
            "humidity": 50.0,
            "pressure": 1013.0,
            "wind_speed": 3.0,
            "uv_index": 2.0,
            "conditions": Condition(description="Clear sky", icon="01d"),
        }
        fields.update(current)
        units = fields.pop("units", "metric")
        hourly = fields.pop("hourly", [])
        daily = fields.pop("daily", [])
        return WeatherSnapshot(units=units, current=CurrentWeather(**fields), hourly=hourly, daily=daily)

    return build
