# app/modules/remover/__init__.py
"""rembg background removal."""
from . import process
from .config import settings

__all__ = ["process", "settings"]
