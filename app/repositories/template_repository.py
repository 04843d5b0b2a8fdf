"""Repository for extraction templates."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.database.models import Template
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def visible_to(user_id: UUID):
    """Visibility predicate: public templates plus the caller's own."""
    return or_(Template.is_public.is_(True), Template.created_by == user_id)


class TemplateRepository(BaseRepository[Template]):
    """Repository for Template entity operations.

    Every read goes through ``visible_to`` so a private template owned by
    someone else looks exactly like a missing one.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Template)

    async def list_visible(self, user_id: UUID) -> List[Template]:
        """Public templates first, then newest first within each group."""
        stmt = (
            select(Template)
            .where(visible_to(user_id))
            .order_by(Template.is_public.desc(), Template.created_at.desc())
        )
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            LOGGER.error(f"Error listing templates for user {user_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch templates", original_error=e) from e

    async def get_visible(self, template_id: UUID, user_id: UUID) -> Optional[Template]:
        stmt = select(Template).where(Template.id == template_id, visible_to(user_id))
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(f"Error fetching template {template_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to fetch template", original_error=e) from e

    async def create_private(
        self,
        user_id: UUID,
        name: str,
        description: str,
        level_of_details: str,
    ) -> Template:
        """Create a template owned by ``user_id`` and hidden from everyone else."""
        template = await self.create(
            name=name,
            description=description,
            level_of_details=level_of_details,
            created_by=user_id,
            is_public=False,
        )
        LOGGER.info(f"Created template {template.id} for user {user_id}")
        return template
