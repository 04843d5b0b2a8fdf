"""Template registry endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from app.database.models import User
from app.dependencies import get_current_db_user, get_template_service
from app.schemas.templates import (
    TemplateCreate,
    TemplateDetailResponse,
    TemplateListResponse,
    TemplateResponse,
)
from app.services.template_service import TemplateService
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "",
    summary="List visible templates",
    operation_id="list_templates",
)
async def list_templates(
    user: Annotated[User, Depends(get_current_db_user)],
    template_service: Annotated[TemplateService, Depends(get_template_service)],
):
    """Public templates first, then the caller's own."""
    templates = await template_service.list_visible(user.id)
    return create_api_response(
        TemplateListResponse(templates=[TemplateResponse.model_validate(t) for t in templates])
    )


@router.get(
    "/{template_id}",
    summary="Get a template",
    operation_id="get_template",
)
async def get_template(
    template_id: UUID,
    user: Annotated[User, Depends(get_current_db_user)],
    template_service: Annotated[TemplateService, Depends(get_template_service)],
):
    template = await template_service.get_template(template_id, user.id)
    return create_api_response(
        TemplateDetailResponse(template=TemplateResponse.model_validate(template))
    )


@router.post(
    "",
    summary="Create a private template",
    operation_id="create_template",
)
async def create_template(
    body: TemplateCreate,
    user: Annotated[User, Depends(get_current_db_user)],
    template_service: Annotated[TemplateService, Depends(get_template_service)],
):
    template = await template_service.create_template(user.id, body)
    return create_api_response(
        TemplateDetailResponse(template=TemplateResponse.model_validate(template))
    )
