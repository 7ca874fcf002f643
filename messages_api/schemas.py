"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for incoming data validation
- Response models for API responses
- Problem detail models for error bodies
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError


# =============================================================================
# Pydantic Request Models
# =============================================================================

class CreateMessageRequest(BaseModel):
    """
    Body of POST /messages.

    content must contain at least one non-whitespace character. The value is
    stored as given, without trimming.
    """
    content: str = Field(..., description="Message text")

    @field_validator("content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise PydanticCustomError("blank", "must not be blank")
        return v

    model_config = {
        "json_schema_extra": {
            "examples": [{"content": "Hello"}]
        }
    }


# =============================================================================
# Pydantic Response Models
# =============================================================================

class MessageResponse(BaseModel):
    """
    A stored message as returned by the API.

    Instances are frozen because the same object is shared through the cache.
    """
    id: int = Field(..., description="Message identifier")
    content: str = Field(..., description="Message text")
    created_at: datetime = Field(
        ...,
        validation_alias=AliasChoices("created_at", "createdAt"),
        serialization_alias="createdAt",
        description="Creation timestamp (UTC)"
    )

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """SQLite drops the offset on read; stored values are always UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    model_config = {
        "from_attributes": True,  # Allow creating from ORM objects
        "frozen": True,
    }


class ProblemDetail(BaseModel):
    """Error body returned for failed requests."""
    status: int = Field(..., description="HTTP status code")
    title: str = Field(..., description="Short summary of the problem type")
    detail: Optional[str] = Field(None, description="Explanation of this occurrence")


class ValidationProblemDetail(ProblemDetail):
    """Error body for rejected request content."""
    errors: str = Field(..., description="Comma-separated '<field>: <message>' pairs")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
