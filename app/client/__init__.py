# app/client/__init__.py
"""Async client: API calls, simulated progress and the editing session."""
from .api import ApiError, BackgroundRemoverClient
from .config import ClientSettings, get_api_base_url
from .progress import ProgressInfo, ProgressSimulator
from .session import Session, SessionStatus

__all__ = [
    "ApiError",
    "BackgroundRemoverClient",
    "ClientSettings",
    "get_api_base_url",
    "ProgressInfo",
    "ProgressSimulator",
    "Session",
    "SessionStatus",
]
