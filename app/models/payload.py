"""Uploaded image payload."""
from typing import Optional

from pydantic import BaseModel


class ImagePayload(BaseModel):
    """Raw encoded image bytes plus the declared MIME type."""

    data: bytes
    content_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)
