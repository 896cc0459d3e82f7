"""Response schemas shared across route modules."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Shape of every error body produced by the global exception handlers.

    Example:
        {
            "error": "not_found",
            "message": "Dataset with ID '...' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional context (client errors only)",
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for load balancer and container probes."""
    status: str = Field(description="Overall: healthy, degraded, unhealthy")
    version: str = Field(description="Backend version string")
    database: str = Field(description="Database status: connected, disconnected")
    storage: str = Field(description="Blob storage status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
