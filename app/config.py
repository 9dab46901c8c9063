"""
Application configuration using Pydantic Settings.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    WORKERS: int = 1  # Single worker keeps one model instance in memory

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Upload settings
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_MIME_TYPES: List[str] = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

    # Load the background removal model on startup instead of on first request
    PRELOAD_MODEL: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Create global settings instance
settings = Settings()
