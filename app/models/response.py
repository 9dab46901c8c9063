"""API response bodies."""
from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    message: str = "Server is running"
    model_loaded: bool = False


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
