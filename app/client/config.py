"""
Client configuration: where the API lives.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings loaded from BGREMOVER_* environment variables."""

    # Explicit override, wins over everything else
    API_URL: Optional[str] = None

    # Development talks to the local server, production to the same origin
    DEV: bool = True
    DEV_API_URL: str = "http://localhost:3001/api"
    PUBLIC_ORIGIN: str = "http://localhost:3001"

    # Whole-request timeout; the server gives up on inference after 30s
    REQUEST_TIMEOUT_SECONDS: float = 60.0

    model_config = SettingsConfigDict(env_prefix="BGREMOVER_", env_file=".env", extra="ignore")


def get_api_base_url(settings: Optional[ClientSettings] = None) -> str:
    """
    Resolve the API base URL.

    In development: the local server on port 3001.
    In production: the '/api' path on the public origin.
    """
    settings = settings or ClientSettings()
    if settings.API_URL:
        return settings.API_URL.rstrip("/")
    if settings.DEV:
        return settings.DEV_API_URL.rstrip("/")
    return settings.PUBLIC_ORIGIN.rstrip("/") + "/api"
