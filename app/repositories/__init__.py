"""Repository layer modules."""

from app.repositories.document_repository import DocumentRepository
from app.repositories.result_repository import ResultRepository
from app.repositories.template_repository import TemplateRepository
from app.repositories.user_repository import UserRepository

__all__ = [
    "DocumentRepository",
    "ResultRepository",
    "TemplateRepository",
    "UserRepository",
]
