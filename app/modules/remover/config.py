# app/modules/remover/config.py
"""
Configuration for the rembg background removal step.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class RemoverSettings(BaseSettings):
    """Configuration for the background extractor."""

    # Lightweight model variant keeps request latency acceptable on CPU
    MODEL_NAME: str = "u2netp"

    # Hard cutoff for a single inference call, not retried
    TIMEOUT_SECONDS: float = 30.0

    # How long a request waits for another process to release the model
    LOCK_TIMEOUT_SECONDS: float = 120.0

    # --- rembg post-processing ---
    ALPHA_MATTING: bool = False
    POST_PROCESS_MASK: bool = False

    model_config = SettingsConfigDict(env_prefix="REMOVER_", env_file=".env", extra="ignore")


settings = RemoverSettings()
