"""linemcp - a minimal MCP server runtime over line-delimited JSON-RPC."""

__version__ = "0.1.0"
