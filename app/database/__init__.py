"""Database module for SQLAlchemy models."""

from app.database.models import Document, DocumentStatus, Result, Template, User

__all__ = [
    "Document",
    "DocumentStatus",
    "Result",
    "Template",
    "User",
]
