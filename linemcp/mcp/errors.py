"""JSON-RPC 2.0 error codes, the protocol error type and error object helpers."""

from typing import Any

from pydantic import ValidationError

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700  # Invalid JSON was received
INVALID_REQUEST = -32600  # The JSON sent is not a valid Request object
METHOD_NOT_FOUND = -32601  # The method does not exist / is not available
INVALID_PARAMS = -32602  # Invalid method parameter(s)
INTERNAL_ERROR = -32603  # Internal JSON-RPC error


def error_message(code: int) -> str:
    """Get the standard message for a JSON-RPC error code."""
    messages = {
        PARSE_ERROR: "Parse error",
        INVALID_REQUEST: "Invalid Request",
        METHOD_NOT_FOUND: "Method not found",
        INVALID_PARAMS: "Invalid params",
        INTERNAL_ERROR: "Internal error",
    }
    return messages.get(code, "Unknown error")


def make_error_data(code: int, message: str | None = None, data: Any = None) -> dict[str, Any]:
    """Create an error object for JSON-RPC response."""
    error: dict[str, Any] = {
        "code": code,
        "message": message or error_message(code),
    }
    if data is not None:
        error["data"] = data
    return error


class MCPError(Exception):
    """
    A protocol error raised by handlers and resource readers.

    The dispatcher forwards code, message and data to the client unchanged.
    """

    def __init__(self, code: int, message: str | None = None, data: Any = None):
        self.code = code
        self.message = message or error_message(code)
        self.data = data
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-RPC error object."""
        return make_error_data(self.code, self.message, self.data)

    def __repr__(self) -> str:
        return f"MCPError(code={self.code}, message={self.message!r})"


def summarize_validation_error(error: ValidationError) -> str:
    """Condense a pydantic validation error into a one-line message."""
    details = error.errors()
    if not details:
        return "validation failed"
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]
