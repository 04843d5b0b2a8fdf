from fastapi import APIRouter

from app.api.routes import documents, stats, templates, upload

api_router = APIRouter()

api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(upload.router, prefix="", tags=["Upload"])
api_router.include_router(templates.router, prefix="/templates", tags=["Templates"])
api_router.include_router(stats.router, prefix="/stats", tags=["Stats"])
