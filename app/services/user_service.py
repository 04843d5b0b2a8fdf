"""User service: maps an authenticated Supabase subject to a local user row."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppError
from app.database.models import User
from app.repositories.user_repository import UserRepository
from app.schemas.auth import CurrentUser
from app.services.identity_provider import IdentityProvider
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserService:
    """Service for user business logic operations."""

    def __init__(
        self,
        db_session: AsyncSession,
        identity_provider: Optional[IdentityProvider] = None,
    ):
        """Initialize service with database session.

        Args:
            db_session: SQLAlchemy async session
            identity_provider: Source of the primary email for new users
        """
        self.repository = UserRepository(db_session)
        self.identity_provider = identity_provider or IdentityProvider()

    async def resolve_current_user(self, current_user: Optional[CurrentUser]) -> Optional[User]:
        """Return the local user for the authenticated subject.

        Unknown subjects are provisioned on first sight with the email held by
        the identity provider. Concurrent first requests end up with the same
        row.

        Args:
            current_user: Subject from the verified token, or None

        Returns:
            The User, or None when there is no subject or provisioning failed
        """
        if current_user is None:
            return None

        try:
            user = await self.repository.get_by_supabase_id(current_user.id)
            if user is not None:
                return user

            email = await self.identity_provider.get_primary_email(current_user.id)
            return await self.repository.insert_or_get(current_user.id, email)

        except AppError as e:
            LOGGER.error(
                f"Failed to resolve user: {e.message}",
                exc_info=True,
                extra={"supabase_user_id": current_user.id},
            )
            return None
