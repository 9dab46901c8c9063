# app/modules/compositor/__init__.py
"""Solid color background compositing."""
from . import process
from .utils import parse_hex_color, to_hex

__all__ = ["process", "parse_hex_color", "to_hex"]
