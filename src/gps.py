# ABOUTME: Location sensor interface and the GPS accuracy refinement loop.
# ABOUTME: Also provides an IP-based sensor for machines without positioning hardware.

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from typing import Protocol

import httpx

from src.errors import LocationUnavailable
from src.models import GpsFix

logger = logging.getLogger(__name__)

MAX_SAMPLES = 5
TARGET_ACCURACY_M = 20.0
DEFAULT_BUDGET_S = 30.0


class LocationSensor(Protocol):
    """A source of position samples.

    ``watch`` is an async generator yielding successive fixes. It raises
    LocationUnavailable when the sensor reports an error, and is closed as
    soon as sampling stops. ``read_once`` performs a single best-effort read.
    """

    def watch(self) -> AsyncGenerator[GpsFix, None]: ...

    async def read_once(self) -> GpsFix: ...


async def acquire_fix(
    sensor: LocationSensor,
    budget: float = DEFAULT_BUDGET_S,
    max_samples: int = MAX_SAMPLES,
    target_accuracy: float = TARGET_ACCURACY_M,
) -> GpsFix:
    """Sample ``sensor`` until a fix is accurate enough, ``max_samples`` arrive, or ``budget`` runs out.

    The most accurate sample seen wins. If the sensor errors before producing
    any sample, one fallback ``read_once`` is attempted within the same budget.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + budget
    best: GpsFix | None = None

    async def refine() -> GpsFix | None:
        nonlocal best
        samples = 0
        async with contextlib.aclosing(sensor.watch()) as fixes:
            async for fix in fixes:
                samples += 1
                if best is None or fix.accuracy < best.accuracy:
                    best = fix
                    if best.accuracy <= target_accuracy:
                        return best
                if samples >= max_samples:
                    return best
        return best

    try:
        result = await asyncio.wait_for(refine(), timeout=budget)
    except asyncio.TimeoutError:
        if best is not None:
            return best
        raise LocationUnavailable("GPS timeout: unable to get accurate position") from None
    except LocationUnavailable as e:
        if best is not None:
            return best
        logger.warning("Location sensor error, trying a single read: %s", e)
        return await _fallback_read(sensor, deadline - loop.time(), e)

    if result is None:
        return await _fallback_read(sensor, deadline - loop.time(), None)
    logger.info("GPS fix accurate to %.0f m", result.accuracy)
    return result


async def _fallback_read(sensor: LocationSensor, remaining: float, cause: Exception | None) -> GpsFix:
    if remaining <= 0:
        raise LocationUnavailable("GPS timeout: unable to get accurate position")
    try:
        return await asyncio.wait_for(sensor.read_once(), timeout=remaining)
    except asyncio.TimeoutError:
        raise LocationUnavailable("GPS timeout: unable to get accurate position") from None
    except LocationUnavailable as e:
        raise LocationUnavailable(f"GPS Error: {cause or e}") from e


class IpLocationSensor:
    """Coarse position from the public IP address; reports a single city-level fix."""

    SERVICES = ("https://ipapi.co/json/", "http://ip-api.com/json/")
    ACCURACY_M = 5000.0

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def watch(self) -> AsyncGenerator[GpsFix, None]:
        yield await self.read_once()

    async def read_once(self) -> GpsFix:
        for url in self.SERVICES:
            try:
                resp = await self.client.get(url)
                resp.raise_for_status()
                data = resp.json()
                lat = float(data.get("latitude", data.get("lat")) or 0)
                lon = float(data.get("longitude", data.get("lon")) or 0)
            except (httpx.HTTPError, ValueError, TypeError, AttributeError) as e:
                logger.warning("IP location service %s failed: %s", url, type(e).__name__)
                continue
            if lat and lon:
                return GpsFix(latitude=lat, longitude=lon, accuracy=self.ACCURACY_M)
        raise LocationUnavailable("Location information unavailable")
