"""Uniform response envelope shared by every route."""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """Successful response envelope."""

    success: bool = Field(default=True)
    data: Any = Field(default=None, description="Route payload")
    message: Optional[str] = Field(default=None, description="Human-readable note")


class ErrorResponse(BaseModel):
    """Failure envelope; ``document_id`` is set for uploads that got that far."""

    success: bool = Field(default=False)
    error: str = Field(..., description="Short error description")
    message: Optional[str] = Field(default=None, description="Underlying cause")
    document_id: Optional[UUID] = Field(default=None)
