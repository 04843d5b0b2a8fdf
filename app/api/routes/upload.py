"""Upload endpoints.

``/upload`` hands the stored file to the n8n extraction workflow and waits
for it. ``/upload-test`` skips the workflow and completes immediately with
mock data.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.database.models import User
from app.dependencies import (
    get_current_db_user,
    get_ingestion_service,
    get_test_ingestion_service,
)
from app.schemas.upload import IngestResult
from app.services.ingestion_service import (
    IngestionService,
    build_template_selection,
    read_upload,
)
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, create_error_response

LOGGER = get_logger(__name__)

router = APIRouter()


async def _ingest(
    service: IngestionService,
    user: User,
    file: Optional[UploadFile],
    template_id: Optional[str],
    new_template_name: Optional[str],
    new_template_description: Optional[str],
    new_template_level_of_details: Optional[str],
):
    upload = await read_upload(file)
    selection = build_template_selection(
        template_id,
        new_template_name,
        new_template_description,
        new_template_level_of_details,
    )
    result: IngestResult = await service.execute(user, upload, selection)

    if not result.success:
        return create_error_response(
            500,
            result.error or "Processing failed",
            message=result.message,
            document_id=result.document_id,
        )

    LOGGER.info(
        "Upload completed",
        extra={"document_id": str(result.document_id), "user_id": str(user.id)},
    )
    return create_api_response(
        result.model_dump(include={"document_id", "status", "result", "template_id"}),
        message=result.message,
    )


@router.post(
    "/upload",
    summary="Upload and process a document",
    operation_id="upload_document",
)
async def upload_document(
    file: Optional[UploadFile] = File(None),
    template_id: Optional[str] = Form(None),
    new_template_name: Optional[str] = Form(None),
    new_template_description: Optional[str] = Form(None),
    new_template_level_of_details: Optional[str] = Form(None),
    user: Annotated[User, Depends(get_current_db_user)] = None,
    service: Annotated[IngestionService, Depends(get_ingestion_service)] = None,
):
    return await _ingest(
        service,
        user,
        file,
        template_id,
        new_template_name,
        new_template_description,
        new_template_level_of_details,
    )


@router.post(
    "/upload-test",
    summary="Upload a document without the extraction workflow",
    operation_id="upload_document_test",
)
async def upload_document_test(
    file: Optional[UploadFile] = File(None),
    template_id: Optional[str] = Form(None),
    new_template_name: Optional[str] = Form(None),
    new_template_description: Optional[str] = Form(None),
    new_template_level_of_details: Optional[str] = Form(None),
    user: Annotated[User, Depends(get_current_db_user)] = None,
    service: Annotated[IngestionService, Depends(get_test_ingestion_service)] = None,
):
    return await _ingest(
        service,
        user,
        file,
        template_id,
        new_template_name,
        new_template_description,
        new_template_level_of_details,
    )
