"""Hello world provider tools - greeting and clock."""

import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from linemcp.mcp.models import TextContent
from linemcp.mcp.registry import Registry
from linemcp.tools.base import register_decorated, tool

logger = logging.getLogger(__name__)

GREETINGS = {
    "en": "Hello, {name}!",
    "es": "¡Hola, {name}!",
    "fr": "Bonjour, {name}!",
    "de": "Hallo, {name}!",
    "ja": "こんにちは、{name}さん!",
}

# Common abbreviations mapped to IANA zones
TIMEZONE_ALIASES = {
    "UTC": "UTC",
    "GMT": "Etc/GMT",
    "JST": "Asia/Tokyo",
    "KST": "Asia/Seoul",
    "CET": "Europe/Paris",
    "EST": "America/New_York",
    "CST": "America/Chicago",
    "MST": "America/Denver",
    "PST": "America/Los_Angeles",
}


@tool(
    name="hello_world",
    description="Say hello to someone",
    input_schema={
        "type": "object",
        "properties": {
            "name": {
                "type": "string",
                "description": "Name to greet",
            },
            "language": {
                "type": "string",
                "description": "Language to use for greeting",
                "enum": list(GREETINGS),
            },
        },
        "required": ["name"],
    },
)
def hello_world_handler(arguments: dict[str, Any]) -> list[TextContent]:
    """Handle the hello_world tool call."""
    name = arguments.get("name", "")
    language = arguments.get("language") or "en"
    template = GREETINGS.get(language, GREETINGS["en"])
    return [TextContent(text=template.format(name=name))]


def resolve_timezone(name: str) -> tuple[str, ZoneInfo | timezone]:
    """Resolve a zone name or abbreviation, falling back to UTC."""
    key = TIMEZONE_ALIASES.get(name.upper(), name)
    try:
        return name, ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        logger.info(f"Unknown timezone '{name}', using UTC")
        return "UTC", timezone.utc


@tool(
    name="get_time",
    description="Get the current time",
    input_schema={
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": "Timezone (e.g., UTC, JST, PST, Europe/Oslo)",
            },
        },
    },
)
def get_time_handler(arguments: dict[str, Any]) -> list[TextContent]:
    """Handle the get_time tool call."""
    requested = arguments.get("timezone") or "UTC"
    label, tz = resolve_timezone(requested)
    now = datetime.now(tz).strftime("%Y-%m-%d %H:%M:%S %z")

    text = f"Current time ({label}): {now}"
    if label != requested:
        text += f" (unknown timezone '{requested}')"
    return [TextContent(text=text)]


def register_tools(registry: Registry) -> None:
    """Register all hello world provider tools with the registry."""
    register_decorated(registry, hello_world_handler, get_time_handler)
