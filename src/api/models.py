"""
API request and response models.

Pydantic models for OpenAPI schema generation and response serialization.
Request bodies are validated by the domain pipeline, not by these models,
so that validation order and error envelopes stay under domain control.
"""

from typing import Any

from pydantic import BaseModel, Field


class RegisterUserRequest(BaseModel):
    """Documented shape of the POST /users body."""

    username: str = Field(..., description="Lowercase letters, digits and underscores")
    password: str = Field(
        ...,
        min_length=8,
        description="At least 8 characters with upper, lower, digit and one of !@#$%^&*",
    )
    role: str
    user_data: dict[str, Any] = Field(
        ..., description="Opaque user document; must contain contact.email"
    )


class ResponseEnvelope(BaseModel):
    """Standard response envelope for every endpoint."""

    status: int = Field(..., description="0 success, -1 rejected input, -2 system failure")
    status_message: str
    response: str | dict[str, Any]
