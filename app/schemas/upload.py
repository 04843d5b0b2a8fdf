"""Schemas for the upload pipeline and the extraction workflow contract."""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NewTemplateSpec(BaseModel):
    """Template the workflow should create on the fly."""

    name: str = Field(..., max_length=100)
    description: str = Field(..., max_length=500)
    level_of_details: str = Field(..., max_length=100)


class TemplateSelection(BaseModel):
    """Either an existing template, a new one, or neither."""

    template_id: Optional[UUID] = None
    new_template: Optional[NewTemplateSpec] = None


class WorkflowPayload(BaseModel):
    """Request body sent to the extraction workflow."""

    document_id: UUID
    file_path: str
    filename: str
    template_id: Optional[UUID] = None
    new_template: Optional[NewTemplateSpec] = None


class WorkflowOutcome(BaseModel):
    """Response body of the extraction workflow."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    document_id: Optional[UUID] = None
    extracted_json: Optional[Any] = None
    generated_message: Optional[str] = None
    raw_text: Optional[str] = None
    confidence: Optional[float] = None
    warnings: Optional[Any] = None
    template_id: Optional[UUID] = None
    error: Optional[str] = None


class ExtractionResult(BaseModel):
    """Result fields echoed back to the uploader."""

    extracted_json: Optional[Any] = None
    generated_message: Optional[str] = None
    raw_text: Optional[str] = None
    confidence: Optional[float] = None
    warnings: Optional[Any] = None


class IngestResult(BaseModel):
    """Outcome of one upload.

    ``success`` is False when the document row exists but processing failed;
    ``document_id`` is then still set so clients can open the failed document.
    """

    success: bool
    document_id: UUID
    status: str
    result: Optional[ExtractionResult] = None
    template_id: Optional[UUID] = None
    error: Optional[str] = None
    message: Optional[str] = None


class UploadedFile(BaseModel):
    """File part of an upload request, read fully into memory."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
