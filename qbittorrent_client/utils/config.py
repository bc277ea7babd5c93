"""Configuration management using pydantic-settings."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings."""

    model_config = SettingsConfigDict(
        env_prefix="QBITTORRENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # qBittorrent Web UI
    url: str = "http://localhost:8080"
    username: str = "admin"
    password: str = "adminadmin"

    # HTTP
    timeout: float = 30.0
    max_connections: int = 10

    # Pin the Web API version (e.g. "2.8.3") instead of probing the daemon
    api_version: Optional[str] = None

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


settings = Settings()
