# app/services/__init__.py
"""Business logic and service layer."""
from .pipeline import ImageProcessingPipeline
from .uploads import read_upload

__all__ = ["ImageProcessingPipeline", "read_upload"]
