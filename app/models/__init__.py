"""Data models shared by the API and the client."""
from .background import BackgroundSpec, PresetColor, PRESET_COLORS, TRANSPARENT
from .payload import ImagePayload
from .response import ErrorResponse, HealthResponse

__all__ = [
    "BackgroundSpec",
    "PresetColor",
    "PRESET_COLORS",
    "TRANSPARENT",
    "ImagePayload",
    "ErrorResponse",
    "HealthResponse",
]
