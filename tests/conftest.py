"""Pytest configuration and fixtures."""

import io
import json

import pytest

from linemcp.config.loader import get_settings
from linemcp.mcp.models import TextContent
from linemcp.mcp.registry import Registry
from linemcp.mcp.server import MCPServer
from linemcp.tools.weather.client import reset_client


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Start every test without an API key and with fresh cached settings."""
    monkeypatch.delenv("OPENWEATHER_API_KEY", raising=False)
    get_settings.cache_clear()
    reset_client()
    yield
    get_settings.cache_clear()
    reset_client()


@pytest.fixture
def registry():
    """Get a fresh registry."""
    return Registry()


@pytest.fixture
def errors():
    """Failures reported to the server's error observer."""
    return []


@pytest.fixture
def server(errors):
    """A server named X with an echo tool and the hello world provider."""
    server = MCPServer({"name": "X", "version": "0.1.0"}, on_error=errors.append)

    @server.tool(
        "echo",
        "Echo text back",
        {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        },
    )
    def echo(arguments):
        return [TextContent(text=arguments["text"])]

    server.load_providers(["hello_world"])
    return server


@pytest.fixture
def serve_lines():
    """Run a server over the given input lines and return decoded responses."""
    def _serve(server: MCPServer, *lines: str) -> list[dict]:
        input_stream = io.StringIO("".join(line + "\n" for line in lines))
        output_stream = io.StringIO()
        server.serve(input_stream, output_stream)
        return [json.loads(line) for line in output_stream.getvalue().splitlines()]
    return _serve


@pytest.fixture
def sample_jsonrpc_request():
    """Sample JSON-RPC request line factory."""
    def _make_request(method: str, params: dict = None, id: int = 1) -> str:
        return json.dumps({
            "jsonrpc": "2.0",
            "id": id,
            "method": method,
            "params": params or {},
        })
    return _make_request
