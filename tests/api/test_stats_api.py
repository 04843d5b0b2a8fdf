import random
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from fastapi import status

from app.dependencies import get_current_db_user, get_stats_service
from app.main import app
from app.services.stats_service import StatsAggregator, StatsService


def test_stats_payload_shape(test_client, db_user):
    aggregator = StatsAggregator(
        now=lambda: datetime(2026, 3, 10, tzinfo=timezone.utc), rng=random.Random(1)
    )
    service = StatsService(AsyncMock(), aggregator)
    service.repository = AsyncMock()
    service.repository.list_all_for_user.return_value = []
    service.repository.list_confidences_for_user.return_value = []
    app.dependency_overrides[get_current_db_user] = lambda: db_user
    app.dependency_overrides[get_stats_service] = lambda: service

    response = test_client.get("/api/stats")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["total_documents"] == 0
    assert data["average_confidence"] is None
    assert data["processing_metrics"]["source"] == "none"
    assert len(data["processing_metrics"]["processing_time_trend"]) == 7
    assert data["processing_metrics"]["processing_time_trend"][-1]["date"] == "2026-03-10"
    assert data["usage_quota"]["monthly_quota"] == 1000
    assert data["cost_analysis"]["cost_per_document_chatgpt"] == 0.08


def test_stats_requires_auth(test_client):
    response = test_client.get("/api/stats")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
