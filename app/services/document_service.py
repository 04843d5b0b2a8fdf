"""Read access to a user's documents, their results and stored files."""

from typing import Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.repositories.document_repository import DocumentRepository
from app.schemas.documents import (
    DocumentListResponse,
    DocumentWithResult,
    DocumentWithTemplate,
    PaginationParams,
)
from app.services.storage_service import StorageService
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(filename: str) -> str:
    """MIME type derived from the filename's extension."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return CONTENT_TYPES.get(extension, DEFAULT_CONTENT_TYPE)


class DocumentService:
    """Service for document queries."""

    def __init__(self, db_session: AsyncSession, storage: StorageService):
        self.repository = DocumentRepository(db_session)
        self.storage = storage

    async def list_documents(self, user_id: UUID, pagination: PaginationParams) -> DocumentListResponse:
        """Return one page of the user's documents plus the overall total."""
        documents, total = await self.repository.list_for_user(
            user_id, offset=pagination.offset, limit=pagination.limit
        )
        return DocumentListResponse(
            documents=[DocumentWithTemplate.model_validate(doc) for doc in documents],
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

    async def get_document(self, document_id: UUID, user_id: UUID) -> DocumentWithResult:
        """Get a document with its template and result.

        Raises:
            NotFoundError: If the document does not exist or belongs to another user
        """
        document = await self.repository.get_owned(document_id, user_id, with_details=True)
        if document is None:
            raise NotFoundError("Document not found")
        return DocumentWithResult.model_validate(document)

    async def get_document_file(self, document_id: UUID, user_id: UUID) -> Tuple[bytes, str, str]:
        """Get the stored file of a document.

        Ownership is checked before storage is touched.

        Returns:
            Tuple of (content, content type, original filename)

        Raises:
            NotFoundError: If the document does not exist or belongs to another user
            StorageError: If the object cannot be downloaded
        """
        document = await self.repository.get_owned(document_id, user_id)
        if document is None:
            raise NotFoundError("Document not found")

        content = await self.storage.download_file(document.file_path)
        LOGGER.info(
            "Serving document file",
            extra={"document_id": str(document_id), "size_bytes": len(content)},
        )
        return content, content_type_for(document.filename), document.filename
