"""Tests for MCP JSON-RPC protocol handling over the line transport."""

import io
import json

import pytest
from pydantic import ValidationError

from linemcp.mcp.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    MCPError,
)
from linemcp.mcp.jsonrpc import decode_response
from linemcp.mcp.models import JsonRpcError, JsonRpcResponse


class TestJsonRpcParsing:
    """Tests for decoding input lines."""

    def test_invalid_json_returns_parse_error(self, server, serve_lines):
        """Test that a malformed line yields a parse error without an id."""
        [response] = serve_lines(server, "not json")

        assert response["jsonrpc"] == "2.0"
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR
        assert "result" not in response

    def test_parse_error_does_not_stop_the_loop(
        self, server, serve_lines, sample_jsonrpc_request
    ):
        """Test that the line after a malformed one is still processed."""
        responses = serve_lines(
            server, "{broken", sample_jsonrpc_request("get_server_info", id=7)
        )

        assert len(responses) == 2
        assert responses[0]["error"]["code"] == PARSE_ERROR
        assert responses[1]["id"] == 7
        assert responses[1]["result"]["name"] == "X"

    def test_invalid_utf8_returns_parse_error(self, server):
        """Test that undecodable bytes are a parse error."""
        response = server.processor.handle_line(b"\xff\xfe{}")
        assert response.error.code == PARSE_ERROR

    def test_non_object_returns_invalid_request(self, server, serve_lines):
        """Test that a JSON array is not a request."""
        [response] = serve_lines(server, "[1, 2, 3]")
        assert response["error"]["code"] == INVALID_REQUEST

    def test_missing_method_returns_invalid_request(self, server, serve_lines):
        """Test that a request without a method is invalid."""
        [response] = serve_lines(server, json.dumps({"id": 3}))
        assert response["error"]["code"] == INVALID_REQUEST
        assert response["id"] == 3

    def test_invalid_envelope_keeps_its_id(self, server, serve_lines):
        """Test that a known id is echoed on an invalid request, with a one-line message."""
        [response] = serve_lines(server, '{"jsonrpc":"2.0","id":9,"method":5}')

        assert response["id"] == 9
        assert response["error"]["code"] == INVALID_REQUEST
        message = response["error"]["message"]
        assert message.startswith("Invalid JSON-RPC request: method")
        assert "\n" not in message
        assert "errors.pydantic.dev" not in message

    @pytest.mark.parametrize("raw_id", ["true", "NaN", "[1]"])
    def test_unusable_id_is_not_coerced(self, server, serve_lines, raw_id):
        """Test that booleans, non-finite numbers and arrays are not valid ids."""
        [response] = serve_lines(server, f'{{"id":{raw_id},"method":"list_tools"}}')

        assert response["error"]["code"] == INVALID_REQUEST
        assert response["id"] is None

    def test_float_id_is_echoed(self, server, serve_lines):
        """Test that a fractional id comes back unchanged."""
        [response] = serve_lines(server, '{"id":1.5,"method":"get_server_info"}')
        assert response["id"] == 1.5

    def test_wrong_jsonrpc_version_returns_invalid_request(self, server, serve_lines):
        """Test that wrong jsonrpc version returns invalid request."""
        [response] = serve_lines(
            server, json.dumps({"jsonrpc": "1.0", "id": 1, "method": "list_tools"})
        )
        assert response["error"]["code"] == INVALID_REQUEST

    def test_lenient_request_without_jsonrpc_and_params(self, server, serve_lines):
        """Test that jsonrpc and params may be omitted."""
        [response] = serve_lines(server, json.dumps({"id": 1, "method": "get_server_info"}))
        assert response["result"]["name"] == "X"

    def test_null_params_defaults_to_empty(self, server, serve_lines):
        """Test that params: null behaves like an empty mapping."""
        [response] = serve_lines(
            server, json.dumps({"id": 1, "method": "list_tools", "params": None})
        )
        assert "tools" in response["result"]

    def test_blank_lines_are_skipped(self, server, serve_lines, sample_jsonrpc_request):
        """Test that blank lines get no reply."""
        responses = serve_lines(server, "", "   ", sample_jsonrpc_request("list_tools"))
        assert len(responses) == 1

    def test_bytes_input_is_accepted(self, server):
        """Test that a UTF-8 encoded line is decoded."""
        response = server.processor.handle_line(b'{"id": 5, "method": "get_server_info"}')
        assert response.id == 5
        assert response.error is None


class TestMcpMethods:
    """Tests for the built-in MCP methods."""

    def test_get_server_info(self, server, serve_lines):
        """Test the get_server_info scenario."""
        [response] = serve_lines(server, '{"id":1,"method":"get_server_info"}')

        assert response == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "name": "X",
                "version": "0.1.0",
                "capabilities": {"tools": {}, "resources": {}},
            },
        }

    def test_custom_capabilities_are_reported(self, serve_lines):
        """Test that capabilities are passed through unchanged."""
        from linemcp.mcp.server import MCPServer

        server = MCPServer({"name": "Y", "version": "2.0"}, capabilities={"tools": {"listChanged": False}})
        [response] = serve_lines(server, '{"id":"a","method":"get_server_info"}')
        assert response["result"]["capabilities"] == {"tools": {"listChanged": False}}

    def test_unknown_method_returns_not_found(
        self, server, serve_lines, sample_jsonrpc_request
    ):
        """Test that an unknown method names itself in the error."""
        [response] = serve_lines(server, sample_jsonrpc_request("no_such_method"))

        assert response["error"]["code"] == METHOD_NOT_FOUND
        assert "no_such_method" in response["error"]["message"]
        assert response["error"]["message"] == "Method not found: no_such_method"

    def test_list_tools_in_registration_order(
        self, server, serve_lines, sample_jsonrpc_request
    ):
        """Test that list_tools reports every tool, in registration order."""
        [response] = serve_lines(server, sample_jsonrpc_request("list_tools"))

        tools = response["result"]["tools"]
        assert [t["name"] for t in tools] == ["echo", "hello_world", "get_time"]
        for tool in tools:
            assert set(tool) == {"name", "description", "input_schema"}

    def test_call_tool_echo(self, server, serve_lines, sample_jsonrpc_request):
        """Test the echo scenario."""
        [response] = serve_lines(
            server,
            sample_jsonrpc_request("call_tool", {"name": "echo", "arguments": {"text": "hi"}}),
        )
        assert response["result"] == {"content": [{"type": "text", "text": "hi"}]}

    def test_call_tool_unknown_tool(self, server, serve_lines):
        """Test the missing tool scenario."""
        [response] = serve_lines(
            server, '{"id":2,"method":"call_tool","params":{"name":"missing"}}'
        )
        assert response == {
            "jsonrpc": "2.0",
            "id": 2,
            "error": {"code": METHOD_NOT_FOUND, "message": "Unknown tool: missing"},
        }

    def test_call_tool_invokes_handler_once_with_arguments(self, server, serve_lines):
        """Test that exactly the named tool runs, once, with the given mapping."""
        calls = []

        @server.tool("record", "Record arguments", {"type": "object"})
        def record(arguments):
            calls.append(arguments)
            return []

        serve_lines(
            server,
            json.dumps({"id": 1, "method": "call_tool",
                        "params": {"name": "record", "arguments": {"a": 1, "b": [2]}}}),
        )
        assert calls == [{"a": 1, "b": [2]}]

    def test_call_tool_preserves_content_order(self, server, serve_lines):
        """Test that multiple content items keep their order."""
        server.register_tool(
            "multi",
            "Several items",
            {"type": "object"},
            lambda args: [{"type": "text", "text": str(i)} for i in range(3)],
        )
        [response] = serve_lines(
            server, json.dumps({"id": 1, "method": "call_tool", "params": {"name": "multi"}})
        )
        assert [c["text"] for c in response["result"]["content"]] == ["0", "1", "2"]

    def test_call_tool_invalid_params(self, server, serve_lines):
        """Test that a non-mapping arguments value is rejected."""
        [response] = serve_lines(
            server,
            json.dumps({"id": 1, "method": "call_tool",
                        "params": {"name": "echo", "arguments": [1]}}),
        )
        assert response["error"]["code"] == INVALID_PARAMS

    def test_request_without_id_still_gets_reply(self, server, serve_lines):
        """Test that requests lacking an id are answered, not treated as notifications."""
        [response] = serve_lines(server, json.dumps({"method": "get_server_info"}))

        assert response["id"] is None
        assert response["result"]["name"] == "X"

    def test_string_id_is_echoed(self, server, serve_lines, sample_jsonrpc_request):
        """Test that string ids come back verbatim."""
        [response] = serve_lines(server, sample_jsonrpc_request("list_tools", id="req-9"))
        assert response["id"] == "req-9"


class TestErrorPropagation:
    """Tests for translating handler failures into responses."""

    def test_protocol_error_is_forwarded_verbatim(self, server, serve_lines, errors):
        """Test that MCPError code, message and data reach the client."""
        def reject(params):
            raise MCPError(INVALID_PARAMS, "bad city", data={"field": "city"})

        server.register_handler("reject", reject)
        [response] = serve_lines(server, '{"id":4,"method":"reject"}')

        assert response["error"] == {
            "code": INVALID_PARAMS,
            "message": "bad city",
            "data": {"field": "city"},
        }
        assert errors == []

    def test_error_without_data_omits_data(self, server, serve_lines):
        """Test that data is left out when absent."""
        [response] = serve_lines(server, '{"id":1,"method":"nope"}')
        assert "data" not in response["error"]

    def test_uncaught_failure_becomes_internal_error(self, server, serve_lines, errors):
        """Test that other failures yield one InternalError and one observer call."""
        failure = RuntimeError("disk on fire")

        def explode(params):
            raise failure

        server.register_handler("explode", explode)
        responses = serve_lines(server, '{"id":5,"method":"explode"}')

        assert len(responses) == 1
        assert responses[0]["error"] == {
            "code": INTERNAL_ERROR,
            "message": "Internal error: disk on fire",
        }
        assert errors == [failure]

    def test_failing_tool_becomes_internal_error(self, server, serve_lines, errors):
        """Test that a raising tool handler goes through the same path."""
        server.register_tool("boom", "Fails", {"type": "object"}, lambda args: 1 / 0)
        [response] = serve_lines(
            server, json.dumps({"id": 1, "method": "call_tool", "params": {"name": "boom"}})
        )

        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"].startswith("Internal error: ")
        assert len(errors) == 1
        assert isinstance(errors[0], ZeroDivisionError)

    def test_missing_tool_argument_becomes_internal_error(self, server, serve_lines, errors):
        """Test that the core does not validate input_schema."""
        [response] = serve_lines(
            server, json.dumps({"id": 1, "method": "call_tool", "params": {"name": "echo"}})
        )
        assert response["error"]["code"] == INTERNAL_ERROR
        assert len(errors) == 1

    def test_unserializable_result_becomes_internal_error(self, server, serve_lines, errors):
        """Test that a result that cannot be encoded still gets a reply."""
        server.register_handler("weird", lambda params: {"value": object()})
        [response] = serve_lines(server, '{"id":6,"method":"weird"}')

        assert response["id"] == 6
        assert response["error"]["code"] == INTERNAL_ERROR
        assert len(errors) == 1

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_result_becomes_internal_error(self, server, errors, value):
        """Test that NaN and infinity never reach the wire as bare words."""
        server.register_handler("measure", lambda params: {"value": value})
        input_stream = io.StringIO('{"id":7,"method":"measure"}\n')
        output_stream = io.StringIO()
        server.serve(input_stream, output_stream)

        line = output_stream.getvalue().strip()
        assert "NaN" not in line
        assert "Infinity" not in line
        response = json.loads(line)
        assert response["id"] == 7
        assert response["error"]["code"] == INTERNAL_ERROR
        assert len(errors) == 1


class TestServeLoop:
    """Tests for the serve loop lifecycle."""

    def test_end_of_input_stops_cleanly(self, server, serve_lines):
        """Test that empty input produces no output."""
        assert serve_lines(server) == []
        assert server.running is False

    def test_one_response_line_per_request(self, server, sample_jsonrpc_request):
        """Test that each response is a single newline-terminated line."""
        input_stream = io.StringIO(
            sample_jsonrpc_request("list_tools", id=1) + "\n"
            + sample_jsonrpc_request("get_server_info", id=2) + "\n"
        )
        output_stream = io.StringIO()
        server.serve(input_stream, output_stream)

        output = output_stream.getvalue()
        assert output.endswith("\n")
        lines = output.splitlines()
        assert [json.loads(line)["id"] for line in lines] == [1, 2]

    def test_non_ascii_is_preserved(self, server, serve_lines):
        """Test that UTF-8 text passes through unescaped."""
        input_stream = io.StringIO(
            json.dumps({"id": 1, "method": "call_tool",
                        "params": {"name": "hello_world",
                                   "arguments": {"name": "Ana", "language": "ja"}}}) + "\n"
        )
        output_stream = io.StringIO()
        server.serve(input_stream, output_stream)
        assert "こんにちは、Anaさん!" in output_stream.getvalue()

    def test_stop_ends_loop_before_next_line(self, server, serve_lines):
        """Test that stop() lets the current reply out and reads nothing more."""
        def halt(params):
            server.stop()
            return {"stopping": True}

        server.register_handler("halt", halt)
        responses = serve_lines(
            server, '{"id":1,"method":"halt"}', '{"id":2,"method":"get_server_info"}'
        )
        assert [r["id"] for r in responses] == [1]
        assert responses[0]["result"] == {"stopping": True}

    def test_binary_input_with_invalid_utf8(self, server):
        """Test that an undecodable line is answered and the next line still served."""
        input_stream = io.BytesIO(b'\xff\xfe{}\n{"id":2,"method":"get_server_info"}\n')
        output_stream = io.StringIO()
        server.serve(input_stream, output_stream)

        first, second = [json.loads(line) for line in output_stream.getvalue().splitlines()]
        assert first["id"] is None
        assert first["error"]["code"] == PARSE_ERROR
        assert second["id"] == 2
        assert second["result"]["name"] == "X"

    def test_serves_binary_stdin_by_default(self, server, monkeypatch):
        """Test that standard input is read through its byte buffer."""
        stdin = io.TextIOWrapper(io.BytesIO(b'\xff\n{"id":1,"method":"list_tools"}\n'), encoding="utf-8")
        stdout = io.StringIO()
        monkeypatch.setattr("sys.stdin", stdin)
        monkeypatch.setattr("sys.stdout", stdout)

        server.serve()

        codes = [json.loads(line).get("error", {}).get("code") for line in stdout.getvalue().splitlines()]
        assert codes == [PARSE_ERROR, None]

    def test_keyboard_interrupt_exits_without_output(self, server):
        """Test that an interrupt during the read ends the loop cleanly."""
        class InterruptingStream:
            def readline(self):
                raise KeyboardInterrupt

        output_stream = io.StringIO()
        server.serve(InterruptingStream(), output_stream)
        assert output_stream.getvalue() == ""
        assert server.running is False

    def test_registration_during_loop_is_visible(self, server, serve_lines):
        """Test that a tool registered by a handler shows up for the next request."""
        def add_tool(params):
            server.register_tool("late", "Added late", {"type": "object"}, lambda args: [])
            return {}

        server.register_handler("add_tool", add_tool)
        responses = serve_lines(
            server, '{"id":1,"method":"add_tool"}', '{"id":2,"method":"list_tools"}'
        )
        assert "late" in [t["name"] for t in responses[1]["result"]["tools"]]


class TestResponseFormat:
    """Tests for JSON-RPC response format compliance."""

    def test_round_trip_success(self, server):
        """Test that a success response decodes with its id and result only."""
        response = JsonRpcResponse(id=3, result={"ok": True})
        decoded = decode_response(server.processor.serialize_response(response))

        assert decoded.id == 3
        assert decoded.result == {"ok": True}
        assert decoded.error is None

    def test_round_trip_error(self, server):
        """Test that an error response decodes with its id and error only."""
        response = JsonRpcResponse(id="x", error=JsonRpcError(code=PARSE_ERROR, message="Parse error"))
        line = server.processor.serialize_response(response)
        decoded = decode_response(line)

        assert decoded.id == "x"
        assert decoded.error.code == PARSE_ERROR
        assert "result" not in json.loads(line)

    def test_response_cannot_carry_both(self):
        """Test that result and error are mutually exclusive."""
        with pytest.raises(ValidationError):
            JsonRpcResponse(id=1, result=1, error=JsonRpcError(code=INTERNAL_ERROR, message="x"))

    def test_null_result_is_a_success(self, server, serve_lines):
        """Test that a handler returning None still produces a result key."""
        server.register_handler("nothing", lambda params: None)
        [response] = serve_lines(server, '{"id":1,"method":"nothing"}')
        assert "result" in response
        assert response["result"] is None
        assert "error" not in response
