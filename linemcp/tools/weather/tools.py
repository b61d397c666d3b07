"""Weather provider tools, resources and resource reader."""

import json
import logging
from typing import Any

from linemcp.config.loader import get_settings
from linemcp.mcp.errors import INTERNAL_ERROR, INVALID_REQUEST, MCPError
from linemcp.mcp.models import ResourceContent, TextContent
from linemcp.mcp.registry import Registry
from linemcp.tools.base import register_decorated, tool
from linemcp.tools.weather.client import WeatherClientError, get_client

logger = logging.getLogger(__name__)

MIME_TYPE = "application/json"
CURRENT_WEATHER_TEMPLATE = "weather://{city}/current"
MIN_DAYS = 1
MAX_DAYS = 5
DEFAULT_DAYS = 3


def _error(message: str) -> list[TextContent]:
    return [TextContent(text=f"Error: {message}", is_error=True)]


@tool(
    name="get_forecast",
    description="Get weather forecast for a city",
    input_schema={
        "type": "object",
        "properties": {
            "city": {
                "type": "string",
                "description": "City name",
            },
            "days": {
                "type": "number",
                "description": "Number of days (1-5)",
                "minimum": MIN_DAYS,
                "maximum": MAX_DAYS,
            },
        },
        "required": ["city"],
    },
)
def forecast_handler(arguments: dict[str, Any]) -> list[TextContent]:
    """Handle get_forecast tool call."""
    city = arguments.get("city", "")
    if not city:
        return _error("'city' argument is required")

    try:
        days = int(arguments.get("days") or DEFAULT_DAYS)
    except (TypeError, ValueError):
        return _error("'days' must be a number")
    days = max(MIN_DAYS, min(MAX_DAYS, days))

    client = get_client()
    if not client.configured:
        return _error("OPENWEATHER_API_KEY environment variable is not set")

    try:
        forecast = client.forecast(city, days)
    except WeatherClientError as e:
        logger.warning(f"Forecast lookup failed for {city}: {e}")
        return _error(f"fetching weather data failed: {e}")

    return [TextContent(text=json.dumps(forecast, indent=2, ensure_ascii=False))]


@tool(
    name="get_current_weather",
    description="Get current weather for a city",
    input_schema={
        "type": "object",
        "properties": {
            "city": {
                "type": "string",
                "description": "City name",
            },
        },
        "required": ["city"],
    },
)
def current_weather_handler(arguments: dict[str, Any]) -> list[TextContent]:
    """Handle get_current_weather tool call."""
    city = arguments.get("city", "")
    if not city:
        return _error("'city' argument is required")

    client = get_client()
    if not client.configured:
        return _error("OPENWEATHER_API_KEY environment variable is not set")

    try:
        weather = client.current(city)
    except WeatherClientError as e:
        logger.warning(f"Current weather lookup failed for {city}: {e}")
        return _error(f"fetching weather data failed: {e}")

    return [TextContent(text=json.dumps(weather, indent=2, ensure_ascii=False))]


def make_resource_reader(registry: Registry):
    """Build the reader serving weather://<city>/current URIs."""

    def read_weather(uri: str) -> list[ResourceContent]:
        match = registry.match_template(uri)
        if match is None or match[0].uri_template != CURRENT_WEATHER_TEMPLATE:
            raise MCPError(INVALID_REQUEST, f"Invalid URI format: {uri}")
        city = match[1]["city"]

        client = get_client()
        if not client.configured:
            raise MCPError(
                INTERNAL_ERROR, "OPENWEATHER_API_KEY environment variable is not set"
            )
        try:
            weather = client.current(city)
        except WeatherClientError as e:
            raise MCPError(INTERNAL_ERROR, f"Error fetching weather data: {e}") from e

        return [
            ResourceContent(
                uri=uri,
                mime_type=MIME_TYPE,
                text=json.dumps(weather, indent=2, ensure_ascii=False),
            )
        ]

    return read_weather


def register_tools(registry: Registry) -> None:
    """Register weather tools, resources and the resource reader."""
    if not get_settings().weather_enabled:
        logger.warning("OPENWEATHER_API_KEY is not set, weather requests will fail")

    register_decorated(registry, forecast_handler, current_weather_handler)

    registry.register_resource(
        "weather://Tokyo/current",
        "Current weather in Tokyo",
        MIME_TYPE,
        "Real-time weather data for Tokyo",
    )
    registry.register_resource_template(
        CURRENT_WEATHER_TEMPLATE,
        "Current weather for a given city",
        MIME_TYPE,
        "Real-time weather data for a specified city",
    )
    registry.set_resource_reader(make_resource_reader(registry))
