"""Interactive test client that exercises an MCP server over the line protocol.

Usage:
    linemcp-client -- linemcp-hello
    linemcp-client -- python -m linemcp.main --provider weather
"""

import argparse
import json
import re
import subprocess
import sys
from typing import Any, TextIO

from linemcp.mcp.jsonrpc import decode_response
from linemcp.mcp.models import JsonRpcRequest, JsonRpcResponse
from linemcp.utils.logging import get_logger, setup_logging

_TEMPLATE_PARAM = re.compile(r"\{[^{}]+\}")


def sample_value(schema: dict[str, Any]) -> Any:
    """Generate a sample argument value from a JSON Schema property."""
    kind = schema.get("type")
    if kind == "string":
        enum = schema.get("enum")
        return enum[0] if enum else "test"
    if kind in ("number", "integer"):
        return 42
    if kind == "boolean":
        return True
    if kind == "array":
        return []
    if kind == "object":
        return {}
    return None


def sample_arguments(input_schema: dict[str, Any] | None) -> dict[str, Any]:
    """Build sample arguments for every property of a tool's input schema."""
    properties = (input_schema or {}).get("properties") or {}
    return {name: sample_value(schema) for name, schema in properties.items()}


def sample_uri(uri_template: str) -> str:
    """Fill every {param} of a URI template with a test value."""
    return _TEMPLATE_PARAM.sub("test", uri_template)


class McpTestClient:
    """Send requests to an MCP server and print each exchange."""

    def __init__(self, reader: TextIO, writer: TextIO, out: TextIO | None = None):
        self.reader = reader
        self.writer = writer
        self.out = out or sys.stdout
        self._request_id = 0

    def _print(self, title: str, payload: dict[str, Any]) -> None:
        print(f"\n=== {title} ===", file=self.out)
        print(json.dumps(payload, indent=2, ensure_ascii=False), file=self.out)

    def send_request(self, method: str, params: dict[str, Any] | None = None) -> JsonRpcResponse | None:
        """Send one request and wait for its response line."""
        request = JsonRpcRequest(id=self._request_id, method=method, params=params or {})
        self._request_id += 1

        payload = request.model_dump()
        self._print("Sending Request", payload)
        self.writer.write(json.dumps(payload, ensure_ascii=False) + "\n")
        self.writer.flush()

        line = self.reader.readline()
        if not line:
            print("\nNo response received", file=self.out)
            return None

        response = decode_response(line)
        self._print("Received Response", response.model_dump())
        return response

    def _result(self, response: JsonRpcResponse | None, key: str) -> list[dict[str, Any]]:
        if response is None or response.is_error or not isinstance(response.result, dict):
            return []
        return response.result.get(key) or []

    def run_tests(self) -> int:
        """Exercise server info, every tool, every resource and every template."""
        print("\n=== Testing get_server_info ===", file=self.out)
        self.send_request("get_server_info")

        print("\n=== Testing list_tools ===", file=self.out)
        for tool in self._result(self.send_request("list_tools"), "tools"):
            print(f"\n=== Testing tool: {tool['name']} ===", file=self.out)
            arguments = sample_arguments(tool.get("input_schema"))
            self.send_request("call_tool", {"name": tool["name"], "arguments": arguments})

        print("\n=== Testing list_resources ===", file=self.out)
        for resource in self._result(self.send_request("list_resources"), "resources"):
            print(f"\n=== Testing resource: {resource['uri']} ===", file=self.out)
            self.send_request("read_resource", {"uri": resource["uri"]})

        print("\n=== Testing list_resource_templates ===", file=self.out)
        templates = self._result(self.send_request("list_resource_templates"), "resource_templates")
        for template in templates:
            print(f"\n=== Testing resource template: {template['uri_template']} ===", file=self.out)
            self.send_request("read_resource", {"uri": sample_uri(template["uri_template"])})

        print("\nAll tests completed!", file=self.out)
        return self._request_id


def main(argv: list[str] | None = None) -> int:
    """Spawn a server command and run the test sequence against it."""
    parser = argparse.ArgumentParser(
        prog="linemcp-client",
        description="Round-trip test requests through an MCP server's stdin/stdout.",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Server command to run")
    args = parser.parse_args(argv)

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        parser.error("a server command is required, e.g. linemcp-client -- linemcp-hello")

    setup_logging()
    log = get_logger("client")
    log.info("Starting server", command=command)

    process = subprocess.Popen(
        command,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        bufsize=1,
    )
    try:
        client = McpTestClient(process.stdout, process.stdin)  # type: ignore[arg-type]
        client.run_tests()
    except KeyboardInterrupt:
        log.info("Interrupted")
    finally:
        if process.stdin:
            process.stdin.close()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    return 0


if __name__ == "__main__":
    sys.exit(main())
