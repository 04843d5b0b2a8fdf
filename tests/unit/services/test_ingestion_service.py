import pytest
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from app.core.exceptions import (
    APITimeoutError,
    ConfigurationError,
    DatabaseError,
    NotFoundError,
    StorageError,
    ValidationError,
    WorkflowError,
)
from app.database.models import DocumentStatus
from app.schemas.upload import TemplateSelection, UploadedFile, WorkflowOutcome
from app.services.ingestion_service import (
    IngestionService,
    build_storage_path,
    build_template_selection,
    read_upload,
)
from app.services.storage_service import StorageService
from app.services.workflow_client import TestModeExtractionWorkflow


@pytest.fixture
def storage():
    return AsyncMock(spec=StorageService)


@pytest.fixture
def workflow():
    workflow = AsyncMock()
    workflow.invoke.return_value = WorkflowOutcome(
        success=True,
        extracted_json={"vendor": "ACME"},
        generated_message="Invoice from ACME",
        raw_text="ACME invoice",
        confidence=0.93,
    )
    return workflow


@pytest.fixture
def document():
    document = MagicMock()
    document.id = uuid4()
    document.file_path = "user/1-abc.pdf"
    return document


def _wire(service, document):
    service.documents = AsyncMock()
    service.documents.create_document.return_value = document
    service.documents.finish_processing.return_value = True
    service.results = AsyncMock()
    service.templates = AsyncMock()
    return service


@pytest.fixture
def service(mock_session, storage, workflow, document):
    return _wire(IngestionService(mock_session, storage, workflow), document)


@pytest.fixture
def upload(sample_pdf_content):
    return UploadedFile(filename="invoice.pdf", content_type="application/pdf", content=sample_pdf_content)


@pytest.mark.asyncio
async def test_successful_upload_completes_document(service, storage, workflow, document, db_user, upload):
    template_id = uuid4()
    service.templates.get_visible.return_value = MagicMock(id=template_id)

    result = await service.execute(db_user, upload, TemplateSelection(template_id=template_id))

    assert result.success is True
    assert result.status == "completed"
    assert result.document_id == document.id
    assert result.result.extracted_json == {"vendor": "ACME"}
    assert result.template_id == template_id

    path = storage.upload_bytes.call_args.args[0]
    assert path.startswith(f"{db_user.id}/")
    assert path.endswith(".pdf")

    create_kwargs = service.documents.create_document.call_args.kwargs
    assert create_kwargs["status"] == DocumentStatus.PROCESSING
    assert create_kwargs["template_id"] == template_id

    payload = workflow.invoke.call_args.args[0]
    assert payload.document_id == document.id
    assert payload.template_id == template_id
    service.documents.finish_processing.assert_awaited_once_with(document.id, DocumentStatus.COMPLETED)
    # The workflow writes the result row itself
    service.results.create_result.assert_not_called()


@pytest.mark.asyncio
async def test_oversized_file_rejected_before_side_effects(service, storage, db_user):
    big = UploadedFile(filename="big.pdf", content_type="application/pdf", content=b"0" * (15 * 1024 * 1024))

    with pytest.raises(ValidationError, match="File size must be less than 10MB"):
        await service.execute(db_user, big, TemplateSelection())

    storage.upload_bytes.assert_not_called()
    service.documents.create_document.assert_not_called()


@pytest.mark.asyncio
async def test_unsupported_type_rejected_before_storage(service, storage, db_user):
    docx = UploadedFile(
        filename="notes.docx",
        content_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        content=b"PK",
    )

    with pytest.raises(ValidationError, match="File must be PDF, JPEG, or PNG"):
        await service.execute(db_user, docx, TemplateSelection())

    storage.upload_bytes.assert_not_called()


@pytest.mark.asyncio
async def test_missing_file_rejected(service, db_user):
    with pytest.raises(ValidationError, match="File is required"):
        await service.execute(db_user, None, TemplateSelection())


@pytest.mark.asyncio
async def test_missing_workflow_is_configuration_error(mock_session, storage, document, db_user, upload):
    service = _wire(IngestionService(mock_session, storage, None), document)

    with pytest.raises(ConfigurationError, match="n8n webhook URL not configured"):
        await service.execute(db_user, upload, TemplateSelection())

    storage.upload_bytes.assert_not_called()


@pytest.mark.asyncio
async def test_invisible_template_is_not_found_before_storage(service, storage, db_user, upload):
    service.templates.get_visible.return_value = None

    with pytest.raises(NotFoundError):
        await service.execute(db_user, upload, TemplateSelection(template_id=uuid4()))

    storage.upload_bytes.assert_not_called()


@pytest.mark.asyncio
async def test_storage_failure_creates_no_document(service, storage, db_user, upload):
    storage.upload_bytes.side_effect = StorageError("Failed to upload file")

    with pytest.raises(StorageError):
        await service.execute(db_user, upload, TemplateSelection())

    service.documents.create_document.assert_not_called()


@pytest.mark.asyncio
async def test_document_row_failure_removes_stored_object(service, storage, workflow, db_user, upload):
    service.documents.create_document.side_effect = DatabaseError("insert failed")

    with pytest.raises(DatabaseError, match="Failed to create document record"):
        await service.execute(db_user, upload, TemplateSelection())

    stored_path = storage.upload_bytes.call_args.args[0]
    storage.remove_files.assert_awaited_once_with([stored_path])
    workflow.invoke.assert_not_called()


@pytest.mark.asyncio
async def test_cleanup_failure_still_surfaces_record_error(service, storage, db_user, upload):
    service.documents.create_document.side_effect = DatabaseError("insert failed")
    storage.remove_files.side_effect = StorageError("Failed to remove files")

    with pytest.raises(DatabaseError, match="Failed to create document record"):
        await service.execute(db_user, upload, TemplateSelection())


@pytest.mark.asyncio
async def test_workflow_timeout_marks_document_failed(service, workflow, document, db_user, upload):
    workflow.invoke.side_effect = APITimeoutError("Extraction workflow timed out after 120s")

    result = await service.execute(db_user, upload, TemplateSelection())

    assert result.success is False
    assert result.document_id == document.id
    assert result.status == "failed"
    assert result.error == "Failed to process document"
    assert "timed out" in result.message
    service.documents.finish_processing.assert_awaited_once_with(document.id, DocumentStatus.FAILED)


@pytest.mark.asyncio
async def test_workflow_reported_failure_marks_document_failed(service, workflow, document, db_user, upload):
    workflow.invoke.return_value = WorkflowOutcome(success=False, error="Unreadable scan")

    result = await service.execute(db_user, upload, TemplateSelection())

    assert result.success is False
    assert result.error == "Unreadable scan"
    assert result.document_id == document.id
    service.documents.finish_processing.assert_awaited_once_with(document.id, DocumentStatus.FAILED)


@pytest.mark.asyncio
async def test_workflow_failure_without_reason(service, workflow, db_user, upload):
    workflow.invoke.return_value = WorkflowOutcome(success=False)

    result = await service.execute(db_user, upload, TemplateSelection())

    assert result.error == "Processing failed"


@pytest.mark.asyncio
async def test_status_update_failure_does_not_hide_document_id(service, workflow, document, db_user, upload):
    workflow.invoke.side_effect = WorkflowError("Extraction workflow unreachable")
    service.documents.finish_processing.side_effect = DatabaseError("update failed")

    result = await service.execute(db_user, upload, TemplateSelection())

    assert result.success is False
    assert result.document_id == document.id


@pytest.mark.asyncio
async def test_workflow_template_id_wins_over_requested(service, workflow, db_user, upload):
    created = uuid4()
    workflow.invoke.return_value = WorkflowOutcome(success=True, template_id=created)

    result = await service.execute(db_user, upload, build_template_selection(
        new_template_name="Lease",
        new_template_description="Lease terms",
        new_template_level_of_details="high",
    ))

    assert result.template_id == created
    assert workflow.invoke.call_args.args[0].new_template.name == "Lease"


@pytest.mark.asyncio
async def test_test_mode_creates_completed_document_and_result(mock_session, storage, document, db_user, upload):
    service = _wire(
        IngestionService(mock_session, storage, TestModeExtractionWorkflow(), test_mode=True),
        document,
    )

    result = await service.execute(db_user, upload, TemplateSelection())

    assert result.success is True
    assert result.status == "completed"
    assert result.result.confidence == 1.0
    assert result.result.extracted_json["test"] is True
    assert "TEST MODE" in result.message
    assert service.documents.create_document.call_args.kwargs["status"] == DocumentStatus.COMPLETED
    service.results.create_result.assert_awaited_once()
    assert service.results.create_result.call_args.kwargs["document_id"] == document.id
    service.documents.finish_processing.assert_not_called()


@pytest.mark.asyncio
async def test_test_mode_result_failure_keeps_completed(mock_session, storage, document, db_user, upload):
    service = _wire(
        IngestionService(mock_session, storage, TestModeExtractionWorkflow(), test_mode=True),
        document,
    )
    service.results.create_result.side_effect = DatabaseError("insert failed")

    result = await service.execute(db_user, upload, TemplateSelection())

    assert result.success is True
    assert result.status == "completed"


def test_template_selection_prefers_existing_id():
    template_id = uuid4()

    selection = build_template_selection(str(template_id), "Name", None, None)

    assert selection.template_id == template_id
    assert selection.new_template is None


def test_template_selection_partial_triple_rejected():
    with pytest.raises(ValidationError, match="New template requires"):
        build_template_selection(None, "Lease", "Lease terms", "")


def test_template_selection_malformed_id_rejected():
    with pytest.raises(ValidationError, match="Invalid template_id"):
        build_template_selection("not-a-uuid")


def test_template_selection_too_long_rejected():
    with pytest.raises(ValidationError):
        build_template_selection(None, "x" * 101, "desc", "high")


def test_template_selection_empty():
    assert build_template_selection() == TemplateSelection()


def test_storage_path_namespaced_and_unique(db_user):
    upload = UploadedFile(filename="Scan.PNG", content_type="image/png", content=b"x")

    first = build_storage_path(db_user.id, upload)
    second = build_storage_path(db_user.id, upload)

    assert first.startswith(f"{db_user.id}/")
    assert first.endswith(".png")
    assert first != second


def test_storage_path_extension_from_mime(db_user):
    upload = UploadedFile(filename="scan", content_type="image/jpeg", content=b"x")

    assert build_storage_path(db_user.id, upload).endswith(".jpg")


@pytest.mark.parametrize("filename", ["x./../victim/evil", "report.p df", "archive.", "note.toolongextension"])
def test_storage_path_ignores_unsafe_extension(db_user, filename):
    upload = UploadedFile(filename=filename, content_type="application/pdf", content=b"x")

    path = build_storage_path(db_user.id, upload)

    assert path.endswith(".pdf")
    assert path.count("/") == 1


def _multipart_file(filename="invoice.pdf", size=None, content=b"%PDF-1.4"):
    file = MagicMock()
    file.filename = filename
    file.content_type = "application/pdf"
    file.size = size
    file.read = AsyncMock(return_value=content)
    return file


@pytest.mark.asyncio
async def test_read_upload_rejects_declared_oversize_without_reading():
    file = _multipart_file(size=3 * 1024 * 1024 * 1024)

    with pytest.raises(ValidationError, match="File size must be less than 10MB"):
        await read_upload(file)

    file.read.assert_not_called()


@pytest.mark.asyncio
async def test_read_upload_bounds_read_when_size_unknown(service, db_user):
    limit = 10 * 1024 * 1024
    file = _multipart_file(size=None, content=b"0" * (limit + 1))

    upload = await read_upload(file)

    file.read.assert_awaited_once_with(limit + 1)
    with pytest.raises(ValidationError, match="File size must be less than 10MB"):
        await service.execute(db_user, upload, TemplateSelection())


@pytest.mark.asyncio
async def test_read_upload_without_file():
    assert await read_upload(None) is None
    assert await read_upload(_multipart_file(filename="")) is None
