"""Response DTOs for API endpoints."""

from pydantic import BaseModel, Field


class ChatResponse(BaseModel):
    """Response DTO for the chat endpoints."""

    reply: str = Field(..., description="The bot reply")


class ErrorResponse(BaseModel):
    """Error envelope for 4xx/5xx responses.

    Never carries provider or stack-trace text.
    """

    error: str = Field(..., description="Human-readable error reason")


class ReadyResponse(BaseModel):
    """Response DTO for the readiness check."""

    ready: bool = Field(..., description="True when every dependency is reachable")


class HealthCheckResponse(BaseModel):
    """Response DTO for the liveness check."""

    status: str = Field("ok", description="Liveness status")
