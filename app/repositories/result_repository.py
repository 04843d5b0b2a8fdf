"""Repository for extraction results."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Result
from app.repositories.base_repository import BaseRepository


class ResultRepository(BaseRepository[Result]):
    """Results are written once per document and never updated."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Result)

    async def create_result(
        self,
        document_id: UUID,
        extracted_json: Any,
        generated_message: Optional[str],
        raw_text: Optional[str],
        confidence: Optional[float],
        warnings: Optional[Any] = None,
    ) -> Result:
        return await self.create(
            document_id=document_id,
            extracted_json=extracted_json,
            generated_message=generated_message,
            raw_text=raw_text,
            confidence=confidence,
            warnings=warnings,
        )
