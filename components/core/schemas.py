"""Core schemas for the application."""

from typing import Optional
from pydantic import BaseModel


class HealthCheck(BaseModel):
    """Schema for health check response."""
    service_name: str
    status: str


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str
    message: Optional[str] = None
