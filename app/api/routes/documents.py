"""Document listing, detail and file download endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from app.database.models import User
from app.dependencies import get_current_db_user, get_document_service
from app.schemas.documents import DocumentDetailResponse, PaginationParams
from app.services.document_service import DocumentService
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "",
    summary="List documents",
    operation_id="list_documents",
)
async def list_documents(
    page: int = Query(1, gt=0),
    limit: int = Query(10, gt=0),
    user: Annotated[User, Depends(get_current_db_user)] = None,
    document_service: Annotated[DocumentService, Depends(get_document_service)] = None,
):
    """List the caller's documents, newest first.

    ``limit`` is capped at 100; pages past the end come back empty with the
    correct ``total``.
    """
    pagination = PaginationParams(page=page, limit=limit)
    documents = await document_service.list_documents(user.id, pagination)
    return create_api_response(documents)


@router.get(
    "/{document_id}",
    summary="Get document details",
    operation_id="get_document",
)
async def get_document(
    document_id: UUID,
    user: Annotated[User, Depends(get_current_db_user)] = None,
    document_service: Annotated[DocumentService, Depends(get_document_service)] = None,
):
    """Retrieve a document with its template and result."""
    document = await document_service.get_document(document_id, user.id)
    return create_api_response(DocumentDetailResponse(document=document))


@router.get(
    "/{document_id}/file",
    summary="Download document file",
    operation_id="download_document_file",
    response_class=Response,
)
async def download_document_file(
    document_id: UUID,
    user: Annotated[User, Depends(get_current_db_user)] = None,
    document_service: Annotated[DocumentService, Depends(get_document_service)] = None,
) -> Response:
    content, content_type, filename = await document_service.get_document_file(document_id, user.id)
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
