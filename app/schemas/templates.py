"""Template request/response schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TemplateResponse(BaseModel):
    """Template as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    json_schema: Optional[Dict[str, Any]] = None
    message_template: Optional[str] = None
    level_of_details: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[UUID] = None
    is_public: bool = False
    created_at: datetime


class TemplateCreate(BaseModel):
    """Body of ``POST /templates``."""

    name: str = Field(..., max_length=100, description="Template name")
    description: str = Field(..., max_length=500, description="What the template extracts")
    level_of_details: str = Field(..., max_length=100, description="Level-of-detail descriptor")

    @field_validator("name", "description", "level_of_details")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name.replace('_', ' ').capitalize()} is required")
        return value


class TemplateListResponse(BaseModel):
    templates: List[TemplateResponse]


class TemplateDetailResponse(BaseModel):
    template: TemplateResponse
