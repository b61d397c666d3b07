"""linemcp server - command line entrypoint serving MCP over stdin/stdout."""

import argparse
import signal
import sys
from types import FrameType

from linemcp.config.loader import (
    get_enabled_providers,
    get_server_identity,
    load_server_config,
)
from linemcp.mcp.server import MCPServer
from linemcp.utils.logging import get_logger, setup_logging


def build_server(
    providers: list[str],
    name: str,
    version: str,
) -> MCPServer:
    """Create a server and load the given providers into it."""
    log = get_logger("startup")

    def report_error(error: BaseException) -> None:
        log.error("MCP error", error=str(error), exc_info=error)

    server = MCPServer({"name": name, "version": version}, on_error=report_error)

    log.info("Loading providers", providers=providers)
    results = server.load_providers(providers)
    for provider, success in results.items():
        if success:
            log.info("Loaded provider", provider=provider)
        else:
            log.warning("Failed to load provider", provider=provider)

    log.info(
        "Registry ready",
        tool_count=server.registry.tool_count,
        resource_count=server.registry.resource_count,
        provider_count=server.registry.provider_count,
    )
    return server


def install_signal_handlers() -> None:
    """Exit cleanly on SIGINT/SIGTERM without writing a partial response."""
    log = get_logger("shutdown")

    def shutdown(signum: int, frame: FrameType | None) -> None:
        log.info("Shutting down MCP server", signal=signal.Signals(signum).name)
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="linemcp",
        description="Serve MCP tools and resources as line-delimited JSON-RPC on stdin/stdout.",
    )
    parser.add_argument(
        "--provider",
        action="append",
        dest="providers",
        help="Provider to load (repeatable); overrides the config file",
    )
    parser.add_argument("--config", help="Path to a YAML server config file")
    parser.add_argument("--name", help="Server name reported by get_server_info")
    parser.add_argument("--version", dest="server_version", help="Server version")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the server until end of input or a termination signal."""
    args = parse_args(argv)

    setup_logging()
    config = load_server_config(args.config)
    providers = args.providers or get_enabled_providers(config)
    name, version = get_server_identity(config)

    server = build_server(
        providers,
        name=args.name or name,
        version=args.server_version or version,
    )
    install_signal_handlers()
    server.serve()
    return 0


def hello_world_main() -> int:
    """Serve the bundled hello world tools."""
    return main(["--provider", "hello_world", "--name", "linemcp-hello-world-server"])


def weather_main() -> int:
    """Serve the bundled weather tools and resources."""
    return main(["--provider", "weather", "--name", "linemcp-weather-server"])


if __name__ == "__main__":
    sys.exit(main())
