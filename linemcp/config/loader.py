"""Configuration loading from environment and YAML files."""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROVIDERS = ["hello_world"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server info
    server_name: str = "linemcp-server"
    server_version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    # Optional YAML file listing providers and server info
    config_path: str = ""

    # OpenWeather API (weather provider)
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_timeout: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def weather_enabled(self) -> bool:
        """Check if an OpenWeather API key is configured."""
        return bool(self.openweather_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_server_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """
    Load server configuration from a YAML file.

    Args:
        config_path: Path to the config file. If None, uses the configured
            path or config/server.yaml when it exists.

    Returns:
        Dictionary with configuration data.
    """
    if config_path is None:
        config_path = get_settings().config_path or Path("config/server.yaml")

    config_path = Path(config_path)
    if not config_path.exists():
        return {"enabled_providers": list(DEFAULT_PROVIDERS)}

    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    return config


def get_enabled_providers(config: dict[str, Any] | None = None) -> list[str]:
    """Get list of enabled provider names."""
    if config is None:
        config = load_server_config()
    return config.get("enabled_providers", list(DEFAULT_PROVIDERS))


def get_server_identity(config: dict[str, Any] | None = None) -> tuple[str, str]:
    """Get (name, version), preferring the YAML file over the environment."""
    if config is None:
        config = load_server_config()
    settings = get_settings()
    server = config.get("server") or {}
    return (
        str(server.get("name", settings.server_name)),
        str(server.get("version", settings.server_version)),
    )
