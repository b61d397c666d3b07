"""Utility modules: logging, HTTP client."""

from linemcp.utils.logging import setup_logging, get_logger
from linemcp.utils.http import create_http_client

__all__ = [
    "setup_logging",
    "get_logger",
    "create_http_client",
]
