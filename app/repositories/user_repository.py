"""Repository for user data access operations."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DatabaseError
from app.database.models import User
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for User entity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def get_by_supabase_id(self, supabase_user_id: str) -> Optional[User]:
        """Get user by Supabase user ID.

        Args:
            supabase_user_id: Supabase user ID (JWT ``sub``)

        Returns:
            User instance or None if not found
        """
        try:
            stmt = select(User).where(User.supabase_user_id == supabase_user_id)
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(f"Error fetching user {supabase_user_id}: {e}", exc_info=True)
            raise DatabaseError("Failed to load user", original_error=e) from e

    async def insert_or_get(self, supabase_user_id: str, email: str) -> User:
        """Insert a user row, or return the existing one on a duplicate key.

        The unique constraint on ``supabase_user_id`` decides concurrent
        first-sight inserts: the loser rolls back and re-reads the winner's row.

        Args:
            supabase_user_id: Supabase user ID
            email: Primary email from the identity provider

        Returns:
            The newly created or already existing User

        Raises:
            DatabaseError: If the insert fails for any other reason
        """
        user = User(supabase_user_id=supabase_user_id, email=email)
        self.session.add(user)
        try:
            await self.session.flush()
            await self.session.commit()
            LOGGER.info(f"Created user: {user.id} ({user.email})")
            return user
        except IntegrityError as e:
            await self.session.rollback()
            existing = await self.get_by_supabase_id(supabase_user_id)
            if existing is None:
                # Constraint violation that wasn't the subject id
                raise DatabaseError("Failed to create user", original_error=e) from e
            LOGGER.info(
                "User already provisioned by a concurrent request",
                extra={"supabase_user_id": supabase_user_id},
            )
            return existing
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("Failed to create user", original_error=e) from e
