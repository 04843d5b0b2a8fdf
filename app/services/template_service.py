"""Template registry operations."""

from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.database.models import Template
from app.repositories.template_repository import TemplateRepository
from app.schemas.templates import TemplateCreate
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class TemplateService:
    """Lists, reads and creates templates on behalf of a user."""

    def __init__(self, db_session: AsyncSession):
        self.repository = TemplateRepository(db_session)

    async def list_visible(self, user_id: UUID) -> List[Template]:
        return await self.repository.list_visible(user_id)

    async def get_template(self, template_id: UUID, user_id: UUID) -> Template:
        """Get a template the user may see.

        Raises:
            NotFoundError: If the template is missing or private to someone else
        """
        template = await self.repository.get_visible(template_id, user_id)
        if template is None:
            raise NotFoundError("Template not found")
        return template

    async def create_template(self, user_id: UUID, data: TemplateCreate) -> Template:
        """Create a private template owned by ``user_id``."""
        return await self.repository.create_private(
            user_id=user_id,
            name=data.name,
            description=data.description,
            level_of_details=data.level_of_details,
        )
