"""MCP (Model Context Protocol) runtime: JSON-RPC 2.0 over a line-delimited stream."""

from linemcp.mcp.models import (
    JsonRpcRequest,
    JsonRpcResponse,
    JsonRpcError,
    ServerInfo,
    Tool,
    Resource,
    ResourceTemplate,
    TextContent,
    ResourceContent,
)
from linemcp.mcp.registry import Registry
from linemcp.mcp.handlers import Dispatcher
from linemcp.mcp.jsonrpc import JsonRpcProcessor, decode_response
from linemcp.mcp.server import MCPServer
from linemcp.mcp.errors import (
    MCPError,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
)

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "ServerInfo",
    "Tool",
    "Resource",
    "ResourceTemplate",
    "TextContent",
    "ResourceContent",
    "Registry",
    "Dispatcher",
    "JsonRpcProcessor",
    "decode_response",
    "MCPServer",
    "MCPError",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
]
