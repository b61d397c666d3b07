"""JSON-RPC 2.0 message decoding and encoding for the line protocol."""

import json
import logging
import math
from typing import Any

from pydantic import ValidationError

from linemcp.mcp.errors import (
    INVALID_REQUEST,
    PARSE_ERROR,
    make_error_data,
    summarize_validation_error,
)
from linemcp.mcp.handlers import Dispatcher
from linemcp.mcp.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse, RequestId
from linemcp.utils.logging import set_request_id

logger = logging.getLogger(__name__)


def recover_request_id(data: dict[str, Any]) -> RequestId:
    """Pick the id out of an envelope that failed validation, if it is usable."""
    request_id = data.get("id")
    if isinstance(request_id, bool):
        return None
    if isinstance(request_id, float) and not math.isfinite(request_id):
        return None
    if isinstance(request_id, (int, float, str)):
        return request_id
    return None


class JsonRpcProcessor:
    """Process JSON-RPC 2.0 messages, one line at a time."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    def parse_request(
        self, raw_data: str | bytes
    ) -> tuple[JsonRpcRequest | None, dict | None, RequestId]:
        """
        Parse a JSON-RPC request from one line of input.

        Returns (request, error, request_id). One of request and error will be
        None; request_id is the id to answer with.
        """
        try:
            if isinstance(raw_data, bytes):
                raw_data = raw_data.decode("utf-8")
            data = json.loads(raw_data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return None, make_error_data(PARSE_ERROR, f"Parse error: {e}"), None

        if not isinstance(data, dict):
            return None, make_error_data(
                INVALID_REQUEST, "Invalid JSON-RPC request: expected an object"
            ), None

        try:
            request = JsonRpcRequest(**data)
            return request, None, request.id
        except ValidationError as e:
            return None, make_error_data(
                INVALID_REQUEST, f"Invalid JSON-RPC request: {summarize_validation_error(e)}"
            ), recover_request_id(data)

    def process_request(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """
        Process a validated JSON-RPC request.

        Every request gets a response, including those without an id.
        """
        set_request_id(request.id)
        try:
            result, error = self.dispatcher.dispatch(request.method, request.params)
        finally:
            set_request_id(None)

        if error is not None:
            return JsonRpcResponse(
                id=request.id,
                error=JsonRpcError(**error),
            )
        return JsonRpcResponse(
            id=request.id,
            result=result,
        )

    def handle_line(self, raw_data: str | bytes) -> JsonRpcResponse:
        """Handle one line end-to-end, returning its response."""
        request, parse_error, request_id = self.parse_request(raw_data)

        if parse_error is not None:
            logger.warning(f"Rejected message: {parse_error['message']}")
            return JsonRpcResponse(
                id=request_id,
                error=JsonRpcError(**parse_error),
            )

        return self.process_request(request)  # type: ignore

    def serialize_response(self, response: JsonRpcResponse) -> str:
        """Serialize a JSON-RPC response to a single-line JSON string."""
        return json.dumps(
            response.model_dump(),
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )


def decode_response(raw_data: str | bytes) -> JsonRpcResponse:
    """Decode a response line on the peer side."""
    data = json.loads(raw_data)
    return JsonRpcResponse(**data)
