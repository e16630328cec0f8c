"""Request DTOs for API endpoints."""

from pydantic import BaseModel, Field, StrictStr, field_validator


class ChatRequest(BaseModel):
    """Request DTO for the chat endpoints.

    The message is trimmed before it reaches the router. The length bound
    depends on the app's settings and is checked by the handler.
    """

    message: StrictStr = Field(..., description="The user message")

    @field_validator("message")
    @classmethod
    def trim(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("message cannot be empty")
        return value
