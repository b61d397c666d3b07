"""Dispatch of MCP method calls to registered handlers."""

import logging
from typing import Any, Callable

from linemcp.mcp.errors import INTERNAL_ERROR, METHOD_NOT_FOUND, MCPError, make_error_data
from linemcp.mcp.models import ServerInfo, ServerInfoResult
from linemcp.mcp.registry import Registry

logger = logging.getLogger(__name__)

ErrorObserver = Callable[[BaseException], None]


def log_error(error: BaseException) -> None:
    """Default error observer: log the failure with its traceback."""
    logger.error(f"[MCP Error] {error}", exc_info=error)


class Dispatcher:
    """Look up and synchronously invoke the handler for a method."""

    def __init__(self, registry: Registry, on_error: ErrorObserver | None = None):
        self.registry = registry
        self.on_error = on_error or log_error

    def install_server_info(
        self, info: ServerInfo, capabilities: dict[str, Any]
    ) -> None:
        """Install the built-in get_server_info handler."""

        def handle_get_server_info(params: dict[str, Any]) -> dict[str, Any]:
            return ServerInfoResult(
                name=info.name,
                version=info.version,
                capabilities=capabilities,
            ).model_dump()

        self.registry.register_handler("get_server_info", handle_get_server_info)

    def dispatch(
        self, method: str, params: dict[str, Any]
    ) -> tuple[Any | None, dict[str, Any] | None]:
        """
        Dispatch a method call to the appropriate handler.

        Returns (result, error) tuple. One will be None.
        """
        handler = self.registry.get_handler(method)
        if handler is None:
            return None, make_error_data(
                METHOD_NOT_FOUND, f"Method not found: {method}"
            )

        try:
            result = handler(params)
            return result, None
        except MCPError as e:
            logger.info(f"Method {method} failed with code {e.code}: {e.message}")
            return None, e.to_dict()
        except Exception as e:
            self.on_error(e)
            return None, make_error_data(INTERNAL_ERROR, f"Internal error: {e}")
