"""Dashboard statistics endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.database.models import User
from app.dependencies import get_current_db_user, get_stats_service
from app.services.stats_service import StatsService
from app.utils.responses import create_api_response

router = APIRouter()


@router.get(
    "",
    summary="Get usage statistics",
    operation_id="get_stats",
)
async def get_stats(
    user: Annotated[User, Depends(get_current_db_user)],
    stats_service: Annotated[StatsService, Depends(get_stats_service)],
):
    stats = await stats_service.get_stats(user.id)
    return create_api_response(stats)
