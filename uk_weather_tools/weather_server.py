"""
MCP Server for UK Weather Tools

Exposes the geocoding and weather data tools via Model Context Protocol (MCP)
so that an AI-assistant host can resolve UK place names and fetch forecasts.

Each tool coroutine is wrapped as an ADK FunctionTool; the ADK declaration is
converted into the MCP tool schema advertised to clients.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# MCP Server Imports
from mcp import types as mcp_types
from mcp.server.lowlevel import Server, NotificationOptions
from mcp.server.models import InitializationOptions
import mcp.server.stdio

# ADK Tool Imports
from google.adk.tools.function_tool import FunctionTool
from google.adk.tools.mcp_tool.conversion_utils import adk_to_mcp_tool_type

from . import __version__
from .config import ConfigurationError, Settings, configure_logging, load_settings
from .geocoding_tool import GeocodingClient, RateLimitedGeocoder, UKGeocodingTools
from .weather_data_tool import WeatherDataRetrieval

SERVER_NAME = "uk-weather-mcp-server"

logger = logging.getLogger(__name__)


def build_weather_tools(settings: Settings) -> Dict[str, FunctionTool]:
    """
    Wrap every tool coroutine as an ADK FunctionTool, keyed by tool name.

    All geocoding tools share one RateLimitedGeocoder, so the Nominatim
    spacing holds across single and batch calls for the life of the server.
    """
    client = GeocodingClient(
        base_url=settings.nominatim_url,
        user_agent=settings.user_agent,
        timeout_seconds=settings.request_timeout_seconds,
    )
    geocoder = RateLimitedGeocoder(client, min_interval=settings.min_interval_seconds)
    geocoding = UKGeocodingTools(geocoder, country_code=settings.country_code)
    weather = WeatherDataRetrieval(settings)

    tools = [
        FunctionTool(geocoding.geocode_uk_city),
        FunctionTool(geocoding.batch_geocode_uk_cities),
        FunctionTool(weather.get_uk_forecast),
        FunctionTool(weather.get_current_weather),
    ]
    return {tool.name: tool for tool in tools}


async def list_mcp_tools(weather_tools: Dict[str, Any]) -> list[mcp_types.Tool]:
    """
    List all available tools as MCP Tool schemas.

    Args:
        weather_tools: Tool table from build_weather_tools

    Returns:
        List of MCP Tool schemas
    """
    logger.info("MCP Server: Received list_tools request.")

    mcp_tool_schemas = []
    for adk_tool in weather_tools.values():
        mcp_schema = adk_to_mcp_tool_type(adk_tool)
        mcp_tool_schemas.append(mcp_schema)
        logger.debug(f"MCP Server: Advertising tool: {mcp_schema.name}")

    return mcp_tool_schemas


async def call_mcp_tool(
    weather_tools: Dict[str, Any], name: str, arguments: Optional[dict]
) -> list[mcp_types.TextContent]:
    """
    Execute a tool call and wrap the result as MCP text content.

    Args:
        weather_tools: Tool table from build_weather_tools
        name: Tool name to execute
        arguments: Dictionary of arguments for the tool

    Returns:
        A single TextContent holding the JSON encoded result or error
    """
    arguments = arguments or {}
    logger.info(f"MCP Server: Received call_tool request for '{name}'")
    logger.debug(f"MCP Server: Arguments: {json.dumps(arguments, default=str)}")

    if name not in weather_tools:
        error_msg = {
            "error": f"Tool '{name}' not found",
            "available_tools": list(weather_tools.keys()),
        }
        logger.warning(f"MCP Server: Tool '{name}' not found")
        return [mcp_types.TextContent(type="text", text=json.dumps(error_msg, indent=2))]

    try:
        adk_tool = weather_tools[name]

        # tool_context is None because we're running outside a full ADK Runner
        adk_tool_response = await adk_tool.run_async(
            args=arguments,
            tool_context=None,
        )
        logger.info(f"MCP Server: Tool '{name}' executed successfully")

        response_text = json.dumps(adk_tool_response, indent=2, default=str)
        return [mcp_types.TextContent(type="text", text=response_text)]

    except Exception as e:
        error_msg = {
            "error": f"Failed to execute tool '{name}'",
            "error_type": type(e).__name__,
            "error_message": str(e),
            "tool_name": name,
            "arguments": arguments,
        }
        logger.exception(f"MCP Server: Error executing tool '{name}'")
        return [mcp_types.TextContent(type="text", text=json.dumps(error_msg, indent=2, default=str))]


def create_app(weather_tools: Dict[str, Any]) -> Server:
    """Create the low-level MCP Server with list_tools and call_tool handlers."""
    app = Server(SERVER_NAME)

    @app.list_tools()
    async def handle_list_tools() -> list[mcp_types.Tool]:
        return await list_mcp_tools(weather_tools)

    @app.call_tool()
    async def handle_call_tool(name: str, arguments: dict) -> list[mcp_types.TextContent]:
        return await call_mcp_tool(weather_tools, name, arguments)

    return app


# --- MCP Server Runner ---
async def run_mcp_stdio_server(settings: Settings) -> None:
    """
    Runs the MCP server, listening for connections over standard input/output.
    """
    weather_tools = build_weather_tools(settings)
    app = create_app(weather_tools)
    logger.info(f"Exposing {len(weather_tools)} tools via MCP: {', '.join(weather_tools)}")

    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("MCP Stdio Server: Starting handshake with client...")
        await app.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=app.name,
                server_version=__version__,
                capabilities=app.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )
        logger.info("MCP Stdio Server: Run loop finished or client disconnected.")


def main() -> None:
    """
    Main entry point for the UK Weather MCP Server.
    """
    load_dotenv()
    try:
        settings = load_settings()
    except ConfigurationError as e:
        raise SystemExit(f"Invalid configuration: {e}")
    configure_logging(settings)

    logger.info("Launching UK Weather MCP Server via stdio...")
    try:
        asyncio.run(run_mcp_stdio_server(settings))
    except KeyboardInterrupt:
        logger.info("UK Weather MCP Server stopped by user.")
    finally:
        logger.info("UK Weather MCP Server process exiting.")


if __name__ == "__main__":
    main()
