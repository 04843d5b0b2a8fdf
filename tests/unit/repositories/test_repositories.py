import pytest
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.exceptions import DatabaseError
from app.database.models import DocumentStatus, Template, User
from app.repositories.document_repository import DocumentRepository
from app.repositories.result_repository import ResultRepository
from app.repositories.template_repository import TemplateRepository
from app.repositories.user_repository import UserRepository


def _sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


def _result(scalar=None, rows=None, rowcount=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalars.return_value.all.return_value = rows or []
    result.scalars.return_value.unique.return_value.all.return_value = rows or []
    result.rowcount = rowcount
    return result


class TestTemplateRepository:
    @pytest.mark.asyncio
    async def test_list_visible_filters_by_public_or_owner(self, mock_session):
        rows = [MagicMock(spec=Template)]
        mock_session.execute.return_value = _result(rows=rows)

        templates = await TemplateRepository(mock_session).list_visible(uuid4())

        assert templates == rows
        sql = _sql(mock_session.execute.call_args.args[0])
        assert "templates.is_public IS true OR templates.created_by =" in sql
        assert "ORDER BY templates.is_public DESC, templates.created_at DESC" in sql

    @pytest.mark.asyncio
    async def test_get_visible_checks_visibility_in_same_query(self, mock_session):
        mock_session.execute.return_value = _result(scalar=None)

        template = await TemplateRepository(mock_session).get_visible(uuid4(), uuid4())

        assert template is None
        sql = _sql(mock_session.execute.call_args.args[0])
        assert "templates.id =" in sql
        assert "templates.is_public IS true OR templates.created_by =" in sql

    @pytest.mark.asyncio
    async def test_create_private(self, mock_session):
        user_id = uuid4()

        template = await TemplateRepository(mock_session).create_private(user_id, "Lease", "Lease terms", "high")

        assert template.is_public is False
        assert template.created_by == user_id
        mock_session.add.assert_called_once_with(template)
        mock_session.commit.assert_awaited_once()


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_insert_new_user(self, mock_session):
        user = await UserRepository(mock_session).insert_or_get("sub-1", "a@b.c")

        assert user.supabase_user_id == "sub-1"
        assert user.email == "a@b.c"
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_insert_returns_existing_row(self, mock_session):
        existing = MagicMock(spec=User)
        mock_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        mock_session.execute.return_value = _result(scalar=existing)

        user = await UserRepository(mock_session).insert_or_get("sub-1", "a@b.c")

        assert user is existing
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_integrity_error_raises(self, mock_session):
        mock_session.flush.side_effect = IntegrityError("INSERT", {}, Exception("not null"))
        mock_session.execute.return_value = _result(scalar=None)

        with pytest.raises(DatabaseError, match="Failed to create user"):
            await UserRepository(mock_session).insert_or_get("sub-1", "a@b.c")

    @pytest.mark.asyncio
    async def test_connection_error_raises(self, mock_session):
        mock_session.flush.side_effect = OperationalError("INSERT", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await UserRepository(mock_session).insert_or_get("sub-1", "a@b.c")


class TestDocumentRepository:
    @pytest.mark.asyncio
    async def test_create_processing_document(self, mock_session):
        user_id = uuid4()

        document = await DocumentRepository(mock_session).create_document(user_id, "a.pdf", "u/1.pdf")

        assert document.status == "processing"
        assert document.processing_started_at is not None
        assert document.processing_completed_at is None

    @pytest.mark.asyncio
    async def test_create_completed_document_has_no_processing_window(self, mock_session):
        document = await DocumentRepository(mock_session).create_document(
            uuid4(), "a.pdf", "u/1.pdf", status=DocumentStatus.COMPLETED
        )

        assert document.status == "completed"
        assert document.processing_started_at is None
        assert document.processing_completed_at is None

    @pytest.mark.asyncio
    async def test_finish_processing_only_leaves_processing(self, mock_session):
        mock_session.execute.return_value = _result(rowcount=1)

        moved = await DocumentRepository(mock_session).finish_processing(uuid4(), DocumentStatus.FAILED)

        assert moved is True
        sql = _sql(mock_session.execute.call_args.args[0])
        assert sql.startswith("UPDATE documents SET status=")
        assert "documents.status = " in sql
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_finish_processing_terminal_row_is_untouched(self, mock_session):
        mock_session.execute.return_value = _result(rowcount=0)

        moved = await DocumentRepository(mock_session).finish_processing(uuid4(), DocumentStatus.COMPLETED)

        assert moved is False

    @pytest.mark.asyncio
    async def test_finish_processing_error(self, mock_session):
        mock_session.execute.side_effect = OperationalError("UPDATE", {}, Exception("gone"))

        with pytest.raises(DatabaseError):
            await DocumentRepository(mock_session).finish_processing(uuid4(), DocumentStatus.FAILED)
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_for_user_returns_page_and_total(self, mock_session):
        rows = [MagicMock(), MagicMock()]
        mock_session.execute.side_effect = [_result(scalar=12), _result(rows=rows)]

        documents, total = await DocumentRepository(mock_session).list_for_user(uuid4(), offset=10, limit=2)

        assert documents == rows
        assert total == 12
        page_sql = _sql(mock_session.execute.call_args_list[1].args[0])
        assert "WHERE documents.user_id =" in page_sql
        assert "ORDER BY documents.created_at DESC" in page_sql
        assert "LIMIT" in page_sql and "OFFSET" in page_sql

    @pytest.mark.asyncio
    async def test_get_owned_filters_on_owner(self, mock_session):
        mock_session.execute.return_value = _result(scalar=None)

        document = await DocumentRepository(mock_session).get_owned(uuid4(), uuid4())

        assert document is None
        sql = _sql(mock_session.execute.call_args.args[0])
        assert "documents.id =" in sql
        assert "documents.user_id =" in sql

    @pytest.mark.asyncio
    async def test_list_confidences_joins_owned_documents(self, mock_session):
        mock_session.execute.return_value = _result(rows=[0.5, None])

        confidences = await DocumentRepository(mock_session).list_confidences_for_user(uuid4())

        assert confidences == [0.5, None]
        sql = _sql(mock_session.execute.call_args.args[0])
        assert "JOIN documents ON results.document_id = documents.id" in sql


class TestBaseRepository:
    @pytest.mark.asyncio
    async def test_count_applies_known_filters(self, mock_session):
        mock_session.execute.return_value = _result(scalar=4)

        total = await DocumentRepository(mock_session).count(filters={"status": "failed", "unknown": 1})

        assert total == 4
        sql = _sql(mock_session.execute.call_args.args[0])
        assert "documents.status =" in sql
        assert "unknown" not in sql

    @pytest.mark.asyncio
    async def test_count_failure_is_database_error(self, mock_session):
        mock_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(DatabaseError, match="Failed to count Document"):
            await DocumentRepository(mock_session).count()

    @pytest.mark.asyncio
    async def test_create_failure_rolls_back(self, mock_session):
        mock_session.flush.side_effect = OperationalError("INSERT", {}, Exception("gone"))

        with pytest.raises(DatabaseError, match="Failed to create Result"):
            await ResultRepository(mock_session).create_result(uuid4(), {}, None, None, 0.5)
        mock_session.rollback.assert_awaited_once()
