"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    bridge_url: str
    bridge_token: str | None = None
    bridge_poll_interval: float = 1.0
    browser_name: str = "WA Pairing"
    sessions_dir: Path = Path("sessions")
    session_id_prefix: str = "PAIR_"
    min_phone_digits: int = 7
    pairing_settle_seconds: float = 3.0
    credentials_settle_seconds: float = 3.0
    pending_timeout_seconds: float = 5 * 60
    connected_ttl_seconds: float = 15 * 60
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def browser_identity(name: str) -> list[str]:
    """Return the browser triple announced to the messaging network."""
    return [name, "Chrome", "120.0.0"]
