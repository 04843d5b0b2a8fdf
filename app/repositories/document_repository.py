from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import DatabaseError
from app.database.models import Document, DocumentStatus, Result
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentRepository(BaseRepository[Document]):
    """Repository for managing Document records.

    Lookups always filter on ``user_id`` in the same statement that finds the
    row, so another user's document is indistinguishable from a missing one.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Document)

    async def create_document(
        self,
        user_id: UUID,
        filename: str,
        file_path: str,
        template_id: Optional[UUID] = None,
        status: DocumentStatus = DocumentStatus.PROCESSING,
    ) -> Document:
        """Create a new document record.

        Args:
            user_id: Owning user
            filename: Original client filename
            file_path: Object path inside the storage bucket
            template_id: Selected template, if any
            status: Initial status

        Returns:
            Created Document record
        """
        # Only documents handed to the workflow get a measured processing window
        now = datetime.now(timezone.utc)
        processing = status == DocumentStatus.PROCESSING
        return await self.create(
            user_id=user_id,
            filename=filename,
            file_path=file_path,
            template_id=template_id,
            status=status.value,
            upload_date=now,
            created_at=now,
            processing_started_at=now if processing else None,
        )

    async def finish_processing(self, document_id: UUID, status: DocumentStatus) -> bool:
        """Move a document out of ``processing`` into a terminal status.

        The update only matches rows still in ``processing``; terminal states
        are never left.

        Returns:
            True if a row transitioned, False if it was already terminal or missing
        """
        stmt = (
            update(Document)
            .where(
                Document.id == document_id,
                Document.status == DocumentStatus.PROCESSING.value,
            )
            .values(status=status.value, processing_completed_at=datetime.now(timezone.utc))
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Error updating status of document {document_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to update document status", original_error=e) from e

        transitioned = result.rowcount > 0
        if not transitioned:
            LOGGER.warning(
                "Document was not in processing state",
                extra={"document_id": str(document_id), "requested_status": status.value},
            )
        return transitioned

    async def list_for_user(
        self, user_id: UUID, offset: int, limit: int
    ) -> Tuple[List[Document], int]:
        """Page through a user's documents, newest first.

        Returns:
            The page of documents (template joined) and the user's total count
        """
        stmt = (
            select(Document)
            .where(Document.user_id == user_id)
            .options(selectinload(Document.template))
            .order_by(Document.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        try:
            total = await self.count(filters={"user_id": user_id})
            result = await self.session.execute(stmt)
            return list(result.scalars().all()), total
        except SQLAlchemyError as e:
            LOGGER.error(f"Error listing documents for user {user_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch documents", original_error=e) from e

    async def get_owned(
        self, document_id: UUID, user_id: UUID, with_details: bool = False
    ) -> Optional[Document]:
        """Fetch a document only if ``user_id`` owns it.

        Args:
            document_id: Document ID
            user_id: Requesting user
            with_details: Eager-load template and results

        Returns:
            The document, or None when missing or owned by someone else
        """
        stmt = select(Document).where(Document.id == document_id, Document.user_id == user_id)
        if with_details:
            stmt = stmt.options(
                selectinload(Document.template), selectinload(Document.results)
            )
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(f"Error fetching document {document_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch document", original_error=e) from e

    async def list_all_for_user(self, user_id: UUID) -> List[Document]:
        """Every document of a user, newest first, template joined."""
        stmt = (
            select(Document)
            .where(Document.user_id == user_id)
            .options(selectinload(Document.template))
            .order_by(Document.created_at.desc())
        )
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(f"Error loading documents for user {user_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch documents", original_error=e) from e

    async def list_confidences_for_user(self, user_id: UUID) -> List[Optional[float]]:
        """Confidence of every result attached to the user's documents."""
        stmt = (
            select(Result.confidence)
            .join(Document, Result.document_id == Document.id)
            .where(Document.user_id == user_id)
        )
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(f"Error loading confidences for user {user_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch results", original_error=e) from e

