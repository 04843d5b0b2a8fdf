"""Centralized dependency injection for FastAPI application.

Factories for services and collaborators; routes depend on these so tests can
swap any of them through ``app.dependency_overrides``.
"""

from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.database import get_async_session
from app.core.exceptions import UpstreamError
from app.database.models import User
from app.schemas.auth import CurrentUser
from app.services.document_service import DocumentService
from app.services.identity_provider import IdentityProvider
from app.services.ingestion_service import IngestionService
from app.services.stats_service import StatsService
from app.services.storage_service import StorageService
from app.services.template_service import TemplateService
from app.services.user_service import UserService
from app.services.workflow_client import TestModeExtractionWorkflow, WebhookExtractionWorkflow


def get_storage_service() -> StorageService:
    return StorageService()


def get_identity_provider() -> IdentityProvider:
    return IdentityProvider()


def get_webhook_workflow() -> Optional[WebhookExtractionWorkflow]:
    """Webhook client, or None while ``N8N_WEBHOOK_URL`` is unset."""
    if not settings.workflow_webhook_url:
        return None
    return WebhookExtractionWorkflow(
        webhook_url=settings.workflow_webhook_url,
        secret=settings.workflow_webhook_secret,
        timeout=settings.workflow_timeout,
    )


async def get_user_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    identity_provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> UserService:
    return UserService(db_session, identity_provider)


async def get_current_db_user(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    """Local user row for the authenticated subject, provisioned on first sight.

    Raises:
        UpstreamError: If the user could not be resolved or provisioned
    """
    user = await user_service.resolve_current_user(current_user)
    if user is None:
        raise UpstreamError("Failed to get user information")
    return user


async def get_template_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> TemplateService:
    return TemplateService(db_session)


async def get_document_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> DocumentService:
    return DocumentService(db_session, storage)


async def get_stats_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> StatsService:
    return StatsService(db_session)


async def get_ingestion_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
    workflow: Annotated[Optional[WebhookExtractionWorkflow], Depends(get_webhook_workflow)],
) -> IngestionService:
    return IngestionService(db_session, storage, workflow)


async def get_test_ingestion_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
    storage: Annotated[StorageService, Depends(get_storage_service)],
) -> IngestionService:
    return IngestionService(db_session, storage, TestModeExtractionWorkflow(), test_mode=True)
