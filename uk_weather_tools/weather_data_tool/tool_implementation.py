"""
Weather Data Tool Implementation

Forwards coordinates to the weather APIs used by the UK weather MCP server:
the Met Office Weather DataHub (national, site-specific point forecasts) and
OpenWeatherMap (commercial, current conditions).

Methods of WeatherDataRetrieval:
    - get_uk_forecast: Met Office hourly, three-hourly or daily point forecast
    - get_current_weather: OpenWeatherMap current conditions
"""

import logging
from typing import Any, Dict, Optional

import aiohttp

from ..config import Settings

logger = logging.getLogger(__name__)

FORECAST_TIMESTEPS = ("hourly", "three-hourly", "daily")
UNITS = ("metric", "imperial", "standard")


def _validate_coordinates(latitude: float, longitude: float) -> None:
    if not -90 <= latitude <= 90:
        raise ValueError(f"Latitude must be between -90 and 90, got {latitude}")
    if not -180 <= longitude <= 180:
        raise ValueError(f"Longitude must be between -180 and 180, got {longitude}")


def _not_configured(service: str, variable: str) -> Dict[str, Any]:
    logger.warning(f"{service} request skipped: {variable} is not set")
    return {
        "status": "not_configured",
        "message": f"{service} API key is not configured",
        "next_steps": [f"Set {variable} in the environment or in a .env file"],
    }


class WeatherDataRetrieval:
    """
    Main class for weather data retrieval operations.
    """

    def __init__(self, settings: Settings, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the WeatherDataRetrieval client.

        Args:
            settings: Loaded configuration holding API URLs and keys.
            session: Shared aiohttp session. If None, a session is opened per request.
        """
        self.settings = settings
        self._session = session

    async def _get_json(
        self, url: str, params: Dict[str, Any], headers: Dict[str, str]
    ) -> Any:
        """
        Execute a GET request and return the decoded JSON body.

        Raises:
            aiohttp.ClientResponseError: On a non-success HTTP status
            asyncio.TimeoutError: When the configured deadline passes
        """
        timeout = aiohttp.ClientTimeout(total=self.settings.request_timeout_seconds)
        try:
            logger.info(f"Requesting {url}")
            if self._session is not None:
                return await self._fetch(self._session, url, params, headers, timeout)
            async with aiohttp.ClientSession() as session:
                return await self._fetch(session, url, params, headers, timeout)
        except Exception as e:
            logger.error(f"Request to {url} failed: {e!r}")
            raise

    @staticmethod
    async def _fetch(session, url, params, headers, timeout) -> Any:
        async with session.get(url, params=params, headers=headers, timeout=timeout) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def get_uk_forecast(
        self,
        latitude: float,
        longitude: float,
        timesteps: str = "hourly",
        limit: int = 12,
    ) -> Dict[str, Any]:
        """
        Gets the Met Office point forecast for a UK latitude and longitude.

        Args:
            latitude: Latitude in decimal degrees (e.g., 51.5074)
            longitude: Longitude in decimal degrees (e.g., -0.1278)
            timesteps: One of "hourly", "three-hourly" or "daily" (default: "hourly")
            limit: Maximum number of forecast time steps to return (default: 12)

        Returns:
            Dictionary with the nearest forecast site name, model run date and
            the first ``limit`` entries of the forecast time series.

        Example:
            >>> forecast = await retrieval.get_uk_forecast(53.48, -2.24, "daily", 3)
            >>> forecast["location"]
            'Manchester'
        """
        _validate_coordinates(latitude, longitude)
        if timesteps not in FORECAST_TIMESTEPS:
            raise ValueError(f"timesteps must be one of {', '.join(FORECAST_TIMESTEPS)}, got {timesteps!r}")
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        if not self.settings.metoffice_api_key:
            return _not_configured("Met Office", "METOFFICE_API_KEY")

        data = await self._get_json(
            f"{self.settings.metoffice_url}/{timesteps}",
            params={
                "latitude": latitude,
                "longitude": longitude,
                "includeLocationName": "true",
                "excludeParameterMetadata": "true",
            },
            headers={
                "apikey": self.settings.metoffice_api_key,
                "accept": "application/json",
            },
        )

        features = (data or {}).get("features") or []
        if not features:
            return {
                "status": "no_data",
                "message": f"No Met Office forecast found near ({latitude}, {longitude})",
                "time_series": [],
            }

        properties = features[0].get("properties", {})
        time_series = properties.get("timeSeries") or []
        return {
            "status": "success",
            "location": (properties.get("location") or {}).get("name"),
            "coordinates": {"latitude": latitude, "longitude": longitude},
            "model_run_date": properties.get("modelRunDate"),
            "timesteps": timesteps,
            "time_series": time_series[:limit],
        }

    async def get_current_weather(
        self, latitude: float, longitude: float, units: str = "metric"
    ) -> Dict[str, Any]:
        """
        Gets current weather conditions from OpenWeatherMap.

        Args:
            latitude: Latitude in decimal degrees
            longitude: Longitude in decimal degrees
            units: "metric", "imperial" or "standard" (default: "metric")

        Returns:
            Dictionary with conditions, temperature, humidity and wind.
        """
        _validate_coordinates(latitude, longitude)
        if units not in UNITS:
            raise ValueError(f"units must be one of {', '.join(UNITS)}, got {units!r}")
        if not self.settings.openweather_api_key:
            return _not_configured("OpenWeatherMap", "OPENWEATHER_API_KEY")

        data = await self._get_json(
            self.settings.openweather_url,
            params={
                "lat": latitude,
                "lon": longitude,
                "units": units,
                "appid": self.settings.openweather_api_key,
            },
            headers={"accept": "application/json"},
        )

        main = data.get("main") or {}
        wind = data.get("wind") or {}
        weather = (data.get("weather") or [{}])[0]
        return {
            "status": "success",
            "location": data.get("name"),
            "coordinates": {"latitude": latitude, "longitude": longitude},
            "units": units,
            "conditions": weather.get("description") or weather.get("main"),
            "temperature": main.get("temp"),
            "feels_like": main.get("feels_like"),
            "humidity_percent": main.get("humidity"),
            "pressure_hpa": main.get("pressure"),
            "wind": {
                "speed": wind.get("speed"),
                "direction_degrees": wind.get("deg"),
                "gust": wind.get("gust"),
            },
            "cloud_cover_percent": (data.get("clouds") or {}).get("all"),
            "observed_at": data.get("dt"),
        }


__all__ = ["WeatherDataRetrieval", "FORECAST_TIMESTEPS", "UNITS"]
