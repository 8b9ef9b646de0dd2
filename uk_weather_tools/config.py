"""
Runtime configuration for the UK weather tools.

Values come from the process environment. The MCP server calls
``load_dotenv()`` before ``load_settings()`` so a local ``.env`` file works
the same way as exported variables.
"""

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "UK-City-Geocoder/1.0"
DEFAULT_COUNTRY_CODE = "gb"
METOFFICE_BASE_URL = "https://data.hub.api.metoffice.gov.uk/sitespecific/v0/point"
OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5/weather"

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    """Configuration shared by the geocoding and weather tools."""

    nominatim_url: str = NOMINATIM_SEARCH_URL
    user_agent: str = DEFAULT_USER_AGENT
    country_code: str = DEFAULT_COUNTRY_CODE
    min_interval_seconds: float = 1.0
    request_timeout_seconds: float = 10.0
    metoffice_url: str = METOFFICE_BASE_URL
    metoffice_api_key: Optional[str] = None
    openweather_url: str = OPENWEATHER_BASE_URL
    openweather_api_key: Optional[str] = None
    log_level: str = "INFO"


def _read_float(
    env: Mapping[str, str], name: str, default: float, allow_zero: bool = True
) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be a finite number, got {raw!r}")
    if value < 0 or (value == 0 and not allow_zero):
        bound = "zero or more" if allow_zero else "greater than zero"
        raise ConfigurationError(f"{name} must be {bound}, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read from. Defaults to ``os.environ``.

    Returns:
        Settings with defaults applied for every unset variable.

    Raises:
        ConfigurationError: If a numeric variable cannot be parsed.
    """
    if env is None:
        env = os.environ

    settings = Settings(
        nominatim_url=env.get("NOMINATIM_URL") or NOMINATIM_SEARCH_URL,
        user_agent=env.get("NOMINATIM_USER_AGENT") or DEFAULT_USER_AGENT,
        country_code=(env.get("GEOCODER_COUNTRY_CODE") or DEFAULT_COUNTRY_CODE).lower(),
        min_interval_seconds=_read_float(env, "NOMINATIM_MIN_INTERVAL", 1.0),
        request_timeout_seconds=_read_float(env, "HTTP_TIMEOUT_SECONDS", 10.0, allow_zero=False),
        metoffice_url=env.get("METOFFICE_URL") or METOFFICE_BASE_URL,
        metoffice_api_key=env.get("METOFFICE_API_KEY") or None,
        openweather_url=env.get("OPENWEATHER_URL") or OPENWEATHER_BASE_URL,
        openweather_api_key=env.get("OPENWEATHER_API_KEY") or None,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )

    if settings.user_agent == DEFAULT_USER_AGENT:
        logger.warning(
            "NOMINATIM_USER_AGENT not set; using the generic default. "
            "Nominatim asks clients to identify themselves."
        )
    return settings


def configure_logging(settings: Settings) -> None:
    """Send log records to stderr; stdout is reserved for the MCP stream."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
