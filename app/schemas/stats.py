"""Schemas for the ``GET /stats`` payload."""

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel

from app.schemas.documents import DocumentWithTemplate


class TemplateCount(BaseModel):
    template_id: Optional[UUID] = None
    template_name: str
    count: int


class StatusCount(BaseModel):
    status: str
    count: int


class ProcessingTrendPoint(BaseModel):
    date: date
    avg_time: float
    document_count: int


class ProcessingMetrics(BaseModel):
    """Durations in seconds over completed documents.

    ``source`` tells whether the numbers come from recorded timestamps,
    the simulated 2-15 s placeholder, or both.
    """

    average_processing_time: Optional[float] = None
    fastest_processing_time: Optional[float] = None
    slowest_processing_time: Optional[float] = None
    total_processing_time: float = 0.0
    processing_time_trend: List[ProcessingTrendPoint]
    source: Literal["measured", "simulated", "mixed", "none"]


class CostAnalysis(BaseModel):
    total_documents_processed: int
    estimated_cost_grand_parser: float
    estimated_cost_chatgpt: float
    total_savings: float
    savings_percentage: float
    cost_per_document_grand_parser: float
    cost_per_document_chatgpt: float


class UsageQuota(BaseModel):
    monthly_quota: int
    documents_processed_this_month: int
    documents_remaining: int
    quota_percentage_used: float
    current_period_start: datetime
    current_period_end: datetime
    days_remaining: int


class StatsResponse(BaseModel):
    total_documents: int
    documents_by_template: List[TemplateCount]
    status_breakdown: List[StatusCount]
    average_confidence: Optional[float] = None
    recent_uploads: List[DocumentWithTemplate]
    processing_metrics: ProcessingMetrics
    cost_analysis: CostAnalysis
    usage_quota: UsageQuota
