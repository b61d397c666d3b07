"""OpenWeather API client."""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any

import httpx

from linemcp.config.loader import get_settings
from linemcp.utils.http import create_http_client, fetch_json

logger = logging.getLogger(__name__)

# The forecast endpoint returns one entry every three hours
ENTRIES_PER_DAY = 8


class WeatherClientError(Exception):
    """Raised when weather data cannot be obtained."""


class WeatherClient:
    """Client for the OpenWeather current weather and forecast APIs."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self.configured:
            raise WeatherClientError("OPENWEATHER_API_KEY environment variable is not set")

        query = {**params, "appid": self.api_key, "units": "metric"}
        try:
            with create_http_client(
                timeout=self.timeout, base_url=self.base_url, transport=self.transport
            ) as client:
                return fetch_json(client, path, params=query)
        except httpx.HTTPStatusError as e:
            raise WeatherClientError(
                f"API request failed with status: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise WeatherClientError(f"API request failed: {e}") from e

    def current(self, city: str) -> dict[str, Any]:
        """
        Get current weather for a city.

        Args:
            city: City name, e.g. "Tokyo"

        Returns:
            Dict with city, temperature, conditions, humidity, wind_speed, timestamp
        """
        data = self._get("/weather", {"q": city})
        main = data.get("main", {})
        weather = data.get("weather") or [{}]
        observed = data.get("dt")
        timestamp = (
            datetime.fromtimestamp(observed, tz=timezone.utc)
            if observed is not None
            else datetime.now(timezone.utc)
        )

        return {
            "city": data.get("name", city),
            "temperature": main.get("temp"),
            "conditions": weather[0].get("main", "Unknown"),
            "humidity": main.get("humidity"),
            "wind_speed": data.get("wind", {}).get("speed"),
            "timestamp": timestamp.isoformat(),
        }

    def forecast(self, city: str, days: int = 3) -> list[dict[str, Any]]:
        """
        Get a daily forecast for a city.

        The three-hourly entries are grouped by date into daily min/max
        temperature, the most frequent conditions, mean humidity and peak wind.
        """
        data = self._get("/forecast", {"q": city, "cnt": days * ENTRIES_PER_DAY})
        city_name = data.get("city", {}).get("name", city)

        by_date: dict[str, list[dict[str, Any]]] = {}
        for entry in data.get("list", []):
            date = entry.get("dt_txt", "")[:10]
            if not date:
                date = datetime.fromtimestamp(entry["dt"], tz=timezone.utc).strftime("%Y-%m-%d")
            by_date.setdefault(date, []).append(entry)

        forecast = []
        for date, entries in list(by_date.items())[:days]:
            mains = [e.get("main", {}) for e in entries]
            humidity = [m["humidity"] for m in mains if "humidity" in m]
            wind = [e.get("wind", {}).get("speed", 0) for e in entries]
            conditions = Counter(
                (e.get("weather") or [{}])[0].get("main", "Unknown") for e in entries
            )
            forecast.append({
                "city": city_name,
                "date": date,
                "temperature": {
                    "min": min(m.get("temp_min", m.get("temp")) for m in mains),
                    "max": max(m.get("temp_max", m.get("temp")) for m in mains),
                },
                "conditions": conditions.most_common(1)[0][0],
                "humidity": round(sum(humidity) / len(humidity)) if humidity else None,
                "wind_speed": max(wind),
            })

        return forecast


# Singleton client
_client: WeatherClient | None = None


def get_client() -> WeatherClient:
    """Get the weather client instance configured from settings."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = WeatherClient(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout=float(settings.weather_timeout),
        )
    return _client


def reset_client() -> None:
    """Drop the cached client (useful for testing)."""
    global _client
    _client = None
