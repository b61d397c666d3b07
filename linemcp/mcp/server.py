"""MCP server lifecycle: registration surface and the line-oriented serve loop."""

import logging
import sys
from typing import IO, Any, Callable, TextIO

from linemcp.mcp.errors import INTERNAL_ERROR, make_error_data
from linemcp.mcp.handlers import Dispatcher, ErrorObserver
from linemcp.mcp.jsonrpc import JsonRpcProcessor
from linemcp.mcp.models import JsonRpcError, JsonRpcResponse, ServerInfo
from linemcp.mcp.registry import MethodHandler, Registry, ResourceReader, ToolHandler

logger = logging.getLogger(__name__)

DEFAULT_CAPABILITIES: dict[str, Any] = {"tools": {}, "resources": {}}


class MCPServer:
    """
    A minimal MCP server speaking JSON-RPC over a line-delimited stream.

    Requests are processed strictly one at a time: each line is decoded,
    dispatched and answered before the next line is read.
    """

    def __init__(
        self,
        info: ServerInfo | dict[str, str],
        capabilities: dict[str, Any] | None = None,
        on_error: ErrorObserver | None = None,
    ):
        self.info = info if isinstance(info, ServerInfo) else ServerInfo(**info)
        if capabilities is None:
            capabilities = {key: dict(value) for key, value in DEFAULT_CAPABILITIES.items()}
        self.capabilities = capabilities
        self.registry = Registry()
        self.dispatcher = Dispatcher(self.registry, on_error)
        self.processor = JsonRpcProcessor(self.dispatcher)
        self.dispatcher.install_server_info(self.info, self.capabilities)
        self._running = False

    @property
    def on_error(self) -> ErrorObserver:
        return self.dispatcher.on_error

    @on_error.setter
    def on_error(self, observer: ErrorObserver) -> None:
        self.dispatcher.on_error = observer

    @property
    def running(self) -> bool:
        return self._running

    # =========================================================================
    # Registration
    # =========================================================================

    def register_handler(self, method: str, handler: MethodHandler) -> None:
        self.registry.register_handler(method, handler)

    def register_tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: ToolHandler,
    ) -> None:
        self.registry.register_tool(name, description, input_schema, handler)

    def register_resource(
        self,
        uri: str,
        name: str,
        mime_type: str | None = None,
        description: str | None = None,
    ) -> None:
        self.registry.register_resource(uri, name, mime_type, description)

    def register_resource_template(
        self,
        uri_template: str,
        name: str,
        mime_type: str | None = None,
        description: str | None = None,
    ) -> None:
        self.registry.register_resource_template(uri_template, name, mime_type, description)

    def set_resource_reader(self, reader: ResourceReader) -> ResourceReader:
        """Set the resource reader. Returns it, so this also works as a decorator."""
        self.registry.set_resource_reader(reader)
        return reader

    def tool(
        self, name: str, description: str, input_schema: dict[str, Any]
    ) -> Callable[[ToolHandler], ToolHandler]:
        """
        Decorator registering a function as a tool.

        Usage:
            @server.tool("echo", "Echo text back", {"type": "object"})
            def echo(arguments):
                return [TextContent(text=arguments["text"])]
        """
        def decorator(func: ToolHandler) -> ToolHandler:
            self.register_tool(name, description, input_schema, func)
            return func

        return decorator

    def load_providers(self, provider_names: list[str]) -> dict[str, bool]:
        return self.registry.load_providers(provider_names)

    # =========================================================================
    # Serving
    # =========================================================================

    def handle_line(self, line: str | bytes) -> str | None:
        """
        Process one input line and return the encoded response line.

        Blank lines produce no response.
        """
        if not line.strip():
            return None

        response = self.processor.handle_line(line)
        try:
            return self.processor.serialize_response(response)
        except (TypeError, ValueError) as e:
            # The handler returned something that is not JSON serializable
            self.on_error(e)
            fallback = JsonRpcResponse(
                id=response.id,
                error=JsonRpcError(**make_error_data(INTERNAL_ERROR, f"Internal error: {e}")),
            )
            return self.processor.serialize_response(fallback)

    def serve(
        self,
        input_stream: IO[Any] | None = None,
        output_stream: TextIO | None = None,
    ) -> None:
        """
        Read requests line by line until end of input or stop().

        The input may be a text or a binary stream. Standard input is read as
        bytes, so a line that is not valid UTF-8 gets a parse error reply
        instead of ending the loop.
        """
        if input_stream is None:
            input_stream = getattr(sys.stdin, "buffer", sys.stdin)
        if output_stream is None:
            output_stream = sys.stdout

        self._running = True
        logger.info(
            f"MCP server starting: {self.info.name} {self.info.version} "
            f"({self.registry.tool_count} tools, {self.registry.resource_count} resources)"
        )

        try:
            while self._running:
                line = input_stream.readline()
                if not line:
                    logger.info("End of input reached")
                    break

                output = self.handle_line(line)
                if output is None:
                    continue
                output_stream.write(output + "\n")
                output_stream.flush()
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down MCP server")
        finally:
            self._running = False
            logger.info("MCP server stopped")

    def stop(self) -> None:
        """Request termination; the loop exits before reading the next line."""
        self._running = False
