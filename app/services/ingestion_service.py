"""Document ingestion pipeline.

One upload goes through: validate -> store object -> create document row ->
run the extraction workflow -> settle the document status. The object and the
row are created as a pair; if the row cannot be written the object is removed
again. Once the row exists, workflow problems only mark the document failed.
"""

import re
import secrets
import time
from typing import Optional
from uuid import UUID

from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    APIClientError,
    AppError,
    ConfigurationError,
    DatabaseError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.database.models import Document, DocumentStatus, User
from app.repositories.document_repository import DocumentRepository
from app.repositories.result_repository import ResultRepository
from app.repositories.template_repository import TemplateRepository
from app.schemas.upload import (
    ExtractionResult,
    IngestResult,
    NewTemplateSpec,
    TemplateSelection,
    UploadedFile,
    WorkflowOutcome,
    WorkflowPayload,
)
from app.services.base_service import BaseService
from app.services.storage_service import StorageService
from app.services.workflow_client import ExtractionWorkflow
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

TEST_MODE_MESSAGE = "TEST MODE: File uploaded successfully! Configure N8N_WEBHOOK_URL for real processing."

_EXTENSIONS_BY_MIME = {
    "application/pdf": "pdf",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
}
_SAFE_EXTENSION = re.compile(r"[A-Za-z0-9]{1,8}")


def build_template_selection(
    template_id: Optional[str] = None,
    new_template_name: Optional[str] = None,
    new_template_description: Optional[str] = None,
    new_template_level_of_details: Optional[str] = None,
) -> TemplateSelection:
    """Turn the upload form's template fields into a ``TemplateSelection``.

    An existing ``template_id`` wins over new-template fields. New-template
    fields must come as a complete triple.

    Raises:
        ValidationError: On a malformed id, a partial triple or oversized values
    """
    if template_id:
        try:
            return TemplateSelection(template_id=UUID(template_id))
        except ValueError as e:
            raise ValidationError("Invalid template_id", original_error=e) from e

    fields = [new_template_name, new_template_description, new_template_level_of_details]
    provided = [bool(value and value.strip()) for value in fields]
    if not any(provided):
        return TemplateSelection()
    if not all(provided):
        raise ValidationError(
            "New template requires name, description and level of details"
        )

    try:
        spec = NewTemplateSpec(
            name=new_template_name.strip(),
            description=new_template_description.strip(),
            level_of_details=new_template_level_of_details.strip(),
        )
    except PydanticValidationError as e:
        raise ValidationError("New template fields are too long", original_error=e) from e
    return TemplateSelection(new_template=spec)


def build_storage_path(user_id: UUID, upload: UploadedFile) -> str:
    """``<user id>/<epoch millis>-<random>.<ext>`` inside the bucket."""
    extension = upload.filename.rsplit(".", 1)[-1] if "." in upload.filename else ""
    if _SAFE_EXTENSION.fullmatch(extension):
        extension = extension.lower()
    else:
        extension = _EXTENSIONS_BY_MIME.get(upload.content_type, "bin")
    return f"{user_id}/{int(time.time() * 1000)}-{secrets.token_hex(4)}.{extension}"


def _file_too_large(max_bytes: int) -> ValidationError:
    return ValidationError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")


async def read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Read a multipart file into an ``UploadedFile`` without buffering past the limit.

    A declared size over the limit is rejected before anything is read;
    otherwise at most one byte more than the limit is read so that
    ``IngestionService.validate`` still sees the overflow.

    Raises:
        ValidationError: If the declared size exceeds the upload limit
    """
    if file is None or not file.filename:
        return None

    max_bytes = settings.max_upload_bytes
    if file.size is not None and file.size > max_bytes:
        raise _file_too_large(max_bytes)

    return UploadedFile(
        filename=file.filename,
        content_type=file.content_type or "",
        content=await file.read(max_bytes + 1),
    )


class IngestionService(BaseService):
    """Runs uploads through storage, the document table and the workflow.

    With ``test_mode`` set the document is created completed and the
    outcome of the (synthetic) workflow is persisted here as its result.
    Without it the external workflow writes the result row itself.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: StorageService,
        workflow: Optional[ExtractionWorkflow],
        test_mode: bool = False,
    ):
        self.documents = DocumentRepository(session)
        self.results = ResultRepository(session)
        self.templates = TemplateRepository(session)
        self.storage = storage
        self.workflow = workflow
        self.test_mode = test_mode

    def validate(
        self,
        user: User,
        upload: Optional[UploadedFile],
        selection: TemplateSelection,
    ) -> None:
        if upload is None or not upload.filename:
            raise ValidationError("File is required")

        max_bytes = settings.max_upload_bytes
        if upload.size > max_bytes:
            raise _file_too_large(max_bytes)

        if upload.content_type not in settings.accepted_mime_types:
            raise ValidationError("File must be PDF, JPEG, or PNG")

        if self.workflow is None:
            raise ConfigurationError("n8n webhook URL not configured")

    async def run(
        self,
        user: User,
        upload: UploadedFile,
        selection: TemplateSelection,
    ) -> IngestResult:
        if selection.template_id is not None:
            template = await self.templates.get_visible(selection.template_id, user.id)
            if template is None:
                raise NotFoundError("Template not found")

        document = await self._store(user, upload, selection)

        payload = WorkflowPayload(
            document_id=document.id,
            file_path=document.file_path,
            filename=upload.filename,
            template_id=selection.template_id,
            new_template=selection.new_template,
        )

        if self.test_mode:
            return await self._complete_test_upload(document, payload)
        return await self._process(document, payload, selection)

    async def _store(
        self, user: User, upload: UploadedFile, selection: TemplateSelection
    ) -> Document:
        """Upload the object, then create its document row."""
        path = build_storage_path(user.id, upload)
        await self.storage.upload_bytes(path, upload.content, upload.content_type)

        initial_status = DocumentStatus.COMPLETED if self.test_mode else DocumentStatus.PROCESSING
        try:
            return await self.documents.create_document(
                user_id=user.id,
                filename=upload.filename,
                file_path=path,
                template_id=selection.template_id,
                status=initial_status,
            )
        except DatabaseError as e:
            LOGGER.error(
                "Document creation failed, removing stored object",
                exc_info=True,
                extra={"user_id": str(user.id), "path": path},
            )
            try:
                await self.storage.remove_files([path])
            except StorageError:
                LOGGER.error("Failed to remove orphaned object", exc_info=True, extra={"path": path})
            raise DatabaseError("Failed to create document record", original_error=e) from e

    async def _process(
        self,
        document: Document,
        payload: WorkflowPayload,
        selection: TemplateSelection,
    ) -> IngestResult:
        try:
            outcome = await self.workflow.invoke(payload)
        except APIClientError as e:
            LOGGER.error(
                f"Extraction workflow error: {e.message}",
                exc_info=True,
                extra={"document_id": str(document.id)},
            )
            await self._mark(document.id, DocumentStatus.FAILED)
            return IngestResult(
                success=False,
                document_id=document.id,
                status=DocumentStatus.FAILED.value,
                error="Failed to process document",
                message=e.message,
            )

        if not outcome.success:
            LOGGER.warning(
                "Extraction workflow reported failure",
                extra={"document_id": str(document.id), "workflow_error": outcome.error},
            )
            await self._mark(document.id, DocumentStatus.FAILED)
            return IngestResult(
                success=False,
                document_id=document.id,
                status=DocumentStatus.FAILED.value,
                error=outcome.error or "Processing failed",
            )

        # The workflow may already have completed the row itself
        await self._mark(document.id, DocumentStatus.COMPLETED)
        return IngestResult(
            success=True,
            document_id=document.id,
            status=DocumentStatus.COMPLETED.value,
            result=_extraction_result(outcome),
            template_id=outcome.template_id or selection.template_id,
        )

    async def _complete_test_upload(
        self, document: Document, payload: WorkflowPayload
    ) -> IngestResult:
        outcome = await self.workflow.invoke(payload)

        try:
            await self.results.create_result(
                document_id=document.id,
                extracted_json=outcome.extracted_json,
                generated_message=outcome.generated_message,
                raw_text=outcome.raw_text,
                confidence=outcome.confidence,
                warnings=outcome.warnings,
            )
        except AppError:
            LOGGER.error(
                "Failed to persist test-mode result",
                exc_info=True,
                extra={"document_id": str(document.id)},
            )

        return IngestResult(
            success=True,
            document_id=document.id,
            status=DocumentStatus.COMPLETED.value,
            result=_extraction_result(outcome),
            template_id=outcome.template_id,
            message=TEST_MODE_MESSAGE,
        )

    async def _mark(self, document_id: UUID, status: DocumentStatus) -> None:
        try:
            await self.documents.finish_processing(document_id, status)
        except DatabaseError:
            LOGGER.error(
                f"Failed to mark document {status.value}",
                exc_info=True,
                extra={"document_id": str(document_id)},
            )


def _extraction_result(outcome: WorkflowOutcome) -> ExtractionResult:
    return ExtractionResult(
        extracted_json=outcome.extracted_json,
        generated_message=outcome.generated_message,
        raw_text=outcome.raw_text,
        confidence=outcome.confidence,
        warnings=outcome.warnings,
    )
