"""Document and result schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.templates import TemplateResponse

MAX_PAGE_SIZE = 100


class ResultResponse(BaseModel):
    """Extraction result attached to a document."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    extracted_json: Optional[Any] = None
    generated_message: Optional[str] = None
    raw_text: Optional[str] = None
    confidence: Optional[float] = None
    warnings: Optional[Any] = None
    created_at: datetime


class DocumentResponse(BaseModel):
    """Document row without relations."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    filename: str
    file_path: str
    upload_date: datetime
    template_id: Optional[UUID] = None
    status: str
    processing_started_at: Optional[datetime] = None
    processing_completed_at: Optional[datetime] = None
    created_at: datetime


class DocumentWithTemplate(DocumentResponse):
    template: Optional[TemplateResponse] = None


class DocumentWithResult(DocumentWithTemplate):
    result: Optional[ResultResponse] = None


class PaginationParams(BaseModel):
    """Validated ``page``/``limit`` query parameters."""

    page: int = Field(default=1, gt=0)
    limit: int = Field(default=10, gt=0)

    @field_validator("limit")
    @classmethod
    def cap_limit(cls, value: int) -> int:
        return min(value, MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class DocumentListResponse(BaseModel):
    documents: List[DocumentWithTemplate]
    total: int
    page: int
    limit: int


class DocumentDetailResponse(BaseModel):
    document: DocumentWithResult
