"""Usage statistics for the dashboard.

``StatsAggregator`` is pure computation over rows that were already loaded;
``StatsService`` does the loading. Processing durations come from the
recorded ``processing_started_at``/``processing_completed_at`` pair. Documents
that lack it get a simulated 2-15 s value, and ``processing_metrics.source``
says which of the two the numbers are built from.
"""

import calendar
import math
import random
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.database.models import Document, DocumentStatus
from app.repositories.document_repository import DocumentRepository
from app.schemas.documents import DocumentWithTemplate
from app.schemas.stats import (
    CostAnalysis,
    ProcessingMetrics,
    ProcessingTrendPoint,
    StatsResponse,
    StatusCount,
    TemplateCount,
    UsageQuota,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

NO_TEMPLATE_LABEL = "No Template"
RECENT_UPLOADS_LIMIT = 10
TREND_DAYS = 7

COST_PER_DOCUMENT_GRAND_PARSER = 0.01
COST_PER_DOCUMENT_CHATGPT = 0.08

SIMULATED_MIN_SECONDS = 2.0
SIMULATED_MAX_SECONDS = 15.0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _month_bounds(now: datetime):
    """First and last instant of ``now``'s calendar month."""
    start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    last_day = calendar.monthrange(now.year, now.month)[1]
    end = datetime.combine(date(now.year, now.month, last_day), time.max, tzinfo=timezone.utc)
    return start, end


class StatsAggregator:
    """Computes the stats payload from a user's documents and confidences."""

    def __init__(
        self,
        now: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        monthly_quota: Optional[int] = None,
    ):
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._rng = rng or random.Random()
        self.monthly_quota = monthly_quota if monthly_quota is not None else settings.monthly_quota

    def compute(
        self,
        documents: Sequence[Document],
        confidences: Sequence[Optional[float]],
    ) -> StatsResponse:
        """Build the full stats payload.

        Args:
            documents: All of the user's documents, newest first, template loaded
            confidences: Confidence of every result of those documents
        """
        now = _as_utc(self._now())
        total = len(documents)

        return StatsResponse(
            total_documents=total,
            documents_by_template=self.documents_by_template(documents),
            status_breakdown=self.status_breakdown(documents),
            average_confidence=self.average_confidence(confidences),
            recent_uploads=[
                DocumentWithTemplate.model_validate(doc)
                for doc in documents[:RECENT_UPLOADS_LIMIT]
            ],
            processing_metrics=self.processing_metrics(documents, now),
            cost_analysis=self.cost_analysis(total),
            usage_quota=self.usage_quota(documents, now),
        )

    @staticmethod
    def documents_by_template(documents: Sequence[Document]) -> List[TemplateCount]:
        counts: Dict[Optional[UUID], TemplateCount] = {}
        for doc in documents:
            bucket = counts.get(doc.template_id)
            if bucket is None:
                name = doc.template.name if doc.template is not None else NO_TEMPLATE_LABEL
                counts[doc.template_id] = TemplateCount(
                    template_id=doc.template_id, template_name=name, count=1
                )
            else:
                bucket.count += 1
        return list(counts.values())

    @staticmethod
    def status_breakdown(documents: Sequence[Document]) -> List[StatusCount]:
        counts: Dict[str, int] = {}
        for doc in documents:
            counts[doc.status] = counts.get(doc.status, 0) + 1
        return [StatusCount(status=status, count=count) for status, count in counts.items()]

    @staticmethod
    def average_confidence(confidences: Sequence[Optional[float]]) -> Optional[float]:
        values = [c for c in confidences if c is not None]
        if not values:
            return None
        return sum(values) / len(values)

    def processing_metrics(self, documents: Sequence[Document], now: datetime) -> ProcessingMetrics:
        completed = [doc for doc in documents if doc.status == DocumentStatus.COMPLETED.value]

        durations: Dict[UUID, float] = {}
        measured = simulated = 0
        for doc in completed:
            if doc.processing_started_at is not None and doc.processing_completed_at is not None:
                elapsed = _as_utc(doc.processing_completed_at) - _as_utc(doc.processing_started_at)
                durations[doc.id] = max(elapsed.total_seconds(), 0.0)
                measured += 1
            else:
                durations[doc.id] = self._simulated_duration()
                simulated += 1

        if measured and simulated:
            source = "mixed"
        elif measured:
            source = "measured"
        elif simulated:
            source = "simulated"
        else:
            source = "none"

        values = list(durations.values())
        return ProcessingMetrics(
            average_processing_time=sum(values) / len(values) if values else None,
            fastest_processing_time=min(values) if values else None,
            slowest_processing_time=max(values) if values else None,
            total_processing_time=sum(values),
            processing_time_trend=self._trend(completed, durations, now),
            source=source,
        )

    def _trend(
        self,
        completed: Sequence[Document],
        durations: Dict[UUID, float],
        now: datetime,
    ) -> List[ProcessingTrendPoint]:
        """Completed documents per day over the last seven days, today included."""
        today = now.date()
        points = []
        for offset in range(TREND_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            day_durations = [
                durations[doc.id]
                for doc in completed
                if _as_utc(doc.created_at).date() == day
            ]
            avg_time = sum(day_durations) / len(day_durations) if day_durations else 0.0
            points.append(
                ProcessingTrendPoint(date=day, avg_time=avg_time, document_count=len(day_durations))
            )
        return points

    def _simulated_duration(self) -> float:
        return SIMULATED_MIN_SECONDS + self._rng.random() * (SIMULATED_MAX_SECONDS - SIMULATED_MIN_SECONDS)

    @staticmethod
    def cost_analysis(total_documents: int) -> CostAnalysis:
        cost_grand_parser = total_documents * COST_PER_DOCUMENT_GRAND_PARSER
        cost_chatgpt = total_documents * COST_PER_DOCUMENT_CHATGPT
        savings = cost_chatgpt - cost_grand_parser
        return CostAnalysis(
            total_documents_processed=total_documents,
            estimated_cost_grand_parser=cost_grand_parser,
            estimated_cost_chatgpt=cost_chatgpt,
            total_savings=savings,
            savings_percentage=(savings / cost_chatgpt) * 100 if cost_chatgpt > 0 else 0.0,
            cost_per_document_grand_parser=COST_PER_DOCUMENT_GRAND_PARSER,
            cost_per_document_chatgpt=COST_PER_DOCUMENT_CHATGPT,
        )

    def usage_quota(self, documents: Sequence[Document], now: datetime) -> UsageQuota:
        period_start, period_end = _month_bounds(now)
        this_month = sum(
            1 for doc in documents if period_start <= _as_utc(doc.created_at) <= period_end
        )
        quota = self.monthly_quota
        seconds_left = (period_end - now).total_seconds()
        return UsageQuota(
            monthly_quota=quota,
            documents_processed_this_month=this_month,
            documents_remaining=max(0, quota - this_month),
            quota_percentage_used=(this_month / quota) * 100 if quota > 0 else 0.0,
            current_period_start=period_start,
            current_period_end=period_end,
            days_remaining=max(0, math.ceil(seconds_left / 86400)),
        )


class StatsService:
    """Loads a user's rows and hands them to the aggregator."""

    def __init__(self, db_session: AsyncSession, aggregator: Optional[StatsAggregator] = None):
        self.repository = DocumentRepository(db_session)
        self.aggregator = aggregator or StatsAggregator()

    async def get_stats(self, user_id: UUID) -> StatsResponse:
        documents = await self.repository.list_all_for_user(user_id)
        confidences = await self.repository.list_confidences_for_user(user_id)
        stats = self.aggregator.compute(documents, confidences)
        LOGGER.debug(
            "Computed stats",
            extra={"user_id": str(user_id), "total_documents": stats.total_documents},
        )
        return stats
