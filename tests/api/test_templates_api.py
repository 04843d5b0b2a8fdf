import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

from fastapi import status

from app.core.exceptions import NotFoundError
from app.dependencies import get_current_db_user, get_template_service
from app.main import app
from app.services.template_service import TemplateService


def _template(**overrides):
    values = dict(
        id=uuid4(),
        name="Invoice",
        json_schema=None,
        message_template=None,
        level_of_details="detailed",
        description="Invoice fields",
        created_by=None,
        is_public=True,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def template_service(db_user):
    service = AsyncMock(spec=TemplateService)
    app.dependency_overrides[get_current_db_user] = lambda: db_user
    app.dependency_overrides[get_template_service] = lambda: service
    return service


def test_list_templates(test_client, template_service, db_user):
    own = _template(name="Lease", is_public=False, created_by=db_user.id)
    template_service.list_visible.return_value = [_template(), own]

    response = test_client.get("/api/templates")

    assert response.status_code == status.HTTP_200_OK
    names = [t["name"] for t in response.json()["data"]["templates"]]
    assert names == ["Invoice", "Lease"]
    template_service.list_visible.assert_awaited_once_with(db_user.id)


def test_get_template_hidden(test_client, template_service):
    template_service.get_template.side_effect = NotFoundError("Template not found")

    response = test_client.get(f"/api/templates/{uuid4()}")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "error": "Template not found"}


def test_create_template(test_client, template_service, db_user):
    template_service.create_template.return_value = _template(
        name="Lease", is_public=False, created_by=db_user.id
    )

    response = test_client.post(
        "/api/templates",
        json={"name": "Lease", "description": "Lease terms", "level_of_details": "high"},
    )

    assert response.status_code == status.HTTP_200_OK
    template = response.json()["data"]["template"]
    assert template["is_public"] is False
    assert template["created_by"] == str(db_user.id)


def test_create_template_blank_name(test_client, template_service):
    response = test_client.post(
        "/api/templates",
        json={"name": " ", "description": "Lease terms", "level_of_details": "high"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"success": False, "error": "Name is required"}
    template_service.create_template.assert_not_called()


def test_create_template_missing_field(test_client, template_service):
    response = test_client.post("/api/templates", json={"name": "Lease"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"].startswith("description")
