# ABOUTME: Environment-driven settings for provider credentials, timeouts and defaults.
# ABOUTME: Loads a .env file once via python-dotenv, then reads os.environ.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from src.errors import ConfigurationError
from src.models import UnitSystem

load_dotenv()

PLACEHOLDER_CREDENTIALS = frozenset({"your_api_key_here", "YOUR_API_KEY"})


class Settings(BaseModel):
    """Runtime configuration. Optional keys unlock the authenticated providers."""

    openweather_api_key: str | None = None
    mapbox_token: str | None = None
    locationiq_key: str | None = None
    opencage_key: str | None = None
    units: UnitSystem = "metric"
    http_timeout: float = 12.0
    gps_budget: float = 30.0
    user_agent: str = "SkyWatch-Weather-App/1.0"


def has_credential(value: str | None) -> bool:
    """True when a credential is set and is not one of the template placeholders."""
    return bool(value) and value.strip() not in PLACEHOLDER_CREDENTIALS


def load_settings() -> Settings:
    """Build Settings from the process environment.

    Raises ConfigurationError naming the offending variable when a value cannot be parsed.
    """
    units = os.environ.get("SKYWATCH_UNITS", "metric")
    try:
        return Settings(
            openweather_api_key=os.environ.get("OPENWEATHER_API_KEY") or None,
            mapbox_token=os.environ.get("MAPBOX_ACCESS_TOKEN") or None,
            locationiq_key=os.environ.get("LOCATIONIQ_API_KEY") or None,
            opencage_key=os.environ.get("OPENCAGE_API_KEY") or None,
            units=units,
            http_timeout=_env_float("SKYWATCH_HTTP_TIMEOUT", 12.0),
            gps_budget=_env_float("SKYWATCH_GPS_BUDGET", 30.0),
            user_agent=os.environ.get("SKYWATCH_USER_AGENT", "SkyWatch-Weather-App/1.0"),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid SKYWATCH_UNITS {units!r}: expected 'metric' or 'imperial'") from e


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name} {raw!r}: expected a number of seconds") from e
    if value <= 0:
        raise ConfigurationError(f"Invalid {name} {raw!r}: must be greater than zero")
    return value
