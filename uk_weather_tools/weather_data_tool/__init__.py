"""
Weather Data Tool for the UK Weather MCP Server

Fetches forecasts and current conditions for coordinates, usually ones the
geocoding tool has just resolved.

Modules:
    - tool_implementation: Met Office and OpenWeatherMap request helpers
"""

from .tool_implementation import (
    FORECAST_TIMESTEPS,
    UNITS,
    WeatherDataRetrieval,
)

__all__ = [
    "FORECAST_TIMESTEPS",
    "UNITS",
    "WeatherDataRetrieval",
]
