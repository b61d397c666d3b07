"""HTTP client utilities with retry and timeout handling."""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from linemcp.config.loader import get_settings

logger = logging.getLogger(__name__)


def create_http_client(
    timeout: float | None = None,
    base_url: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """
    Create an HTTP client with sensible defaults.

    Handlers run synchronously inside the serve loop, so this is a blocking
    client.

    Args:
        timeout: Request timeout in seconds. Uses default from settings if None.
        base_url: Optional base URL for all requests.
        transport: Optional transport override (tests pass httpx.MockTransport).

    Returns:
        Configured httpx.Client instance.
    """
    settings = get_settings()

    if timeout is None:
        timeout = float(settings.weather_timeout)

    return httpx.Client(
        base_url=base_url or "",
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={
            "User-Agent": f"{settings.server_name}/{settings.server_version}",
        },
        transport=transport,
    )


# Retry decorator for HTTP requests
http_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


@http_retry
def fetch_json(
    client: httpx.Client,
    url: str,
    params: dict[str, Any] | None = None,
) -> Any:
    """
    Fetch JSON from a URL with retries.

    Args:
        client: The client to send the request with.
        url: The URL to fetch, relative to the client's base URL.
        params: Optional query parameters.

    Returns:
        Parsed JSON response.

    Raises:
        httpx.HTTPStatusError: On HTTP error status.
        httpx.TimeoutException: On timeout.
        ValueError: If response is not valid JSON.
    """
    logger.debug(f"GET {url}")
    response = client.get(url, params=params)
    response.raise_for_status()
    return response.json()
