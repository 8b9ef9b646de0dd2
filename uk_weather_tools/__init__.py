"""
UK Weather Tools

Weather and geocoding tools for AI-assistant hosts, served over the Model
Context Protocol.

Packages and modules:
    - geocoding_tool: rate-limited Nominatim geocoding for UK place names
    - weather_data_tool: Met Office forecasts and OpenWeatherMap conditions
    - weather_server: MCP stdio server exposing the tools
    - config: environment based settings
"""

__version__ = "0.1.0"
