"""
app/models/report.py

Report models for the moderation workflow
"""

from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator
from app.core.config import settings
from app.models.base import (
    ActionTaken,
    ContentType,
    Pagination,
    PyObjectId,
    ReportPriority,
    ReportReason,
    ReportStatus,
    SortOrder,
)

class ReportSortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    PRIORITY = "priority"
    STATUS = "status"

class StatsGroupBy(str, Enum):
    STATUS = "status"
    CONTENT_TYPE = "content_type"
    REASON = "reason"
    PRIORITY = "priority"
    DATE = "date"

class StatsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    ALL = "all"

def _strip_text(v):
    if isinstance(v, str):
        cleaned = v.strip()
        return cleaned if cleaned else None
    return v

class ReportCreate(BaseModel):
    """Request model for filing a report"""
    content_type: ContentType = Field(..., description="Kind of content being reported")
    content_id: str = Field(..., description="ID of the reported content")
    reason: ReportReason = Field(..., description="Primary reason for the report")
    description: str = Field(..., min_length=10, max_length=500, description="Details from the reporter")
    priority: ReportPriority = Field(default=ReportPriority.MEDIUM)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v):
        return _strip_text(v)

class ReportStatusUpdate(BaseModel):
    """Admin status transition for a single report"""
    status: ReportStatus
    admin_notes: Optional[str] = Field(None, max_length=1000, description="Internal admin notes")
    action_taken: Optional[ActionTaken] = None
    notify_reporter: bool = True

    @field_validator("admin_notes", mode="before")
    @classmethod
    def strip_notes(cls, v):
        return _strip_text(v)

class BulkReportUpdate(BaseModel):
    """Admin status transition for many reports at once"""
    report_ids: List[str] = Field(..., min_length=1, max_length=settings.BULK_UPDATE_MAX_REPORTS)
    status: ReportStatus
    admin_notes: Optional[str] = Field(None, max_length=500)
    notify_reporter: bool = True

    @field_validator("admin_notes", mode="before")
    @classmethod
    def strip_notes(cls, v):
        return _strip_text(v)

class ReportQuery(BaseModel):
    """Filter, sort and pagination options shared by the list endpoints"""
    page: int = 1
    limit: int = settings.REPORTS_DEFAULT_PAGE_SIZE
    status: Optional[ReportStatus] = None
    content_type: Optional[ContentType] = None
    reason: Optional[ReportReason] = None
    priority: Optional[ReportPriority] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    sort_by: ReportSortField = ReportSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

class ReportStatsQuery(BaseModel):
    group_by: StatsGroupBy = StatsGroupBy.STATUS
    period: StatsPeriod = StatsPeriod.ALL
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

class UserSummary(BaseModel):
    id: str
    display_name: Optional[str] = None
    email: Optional[str] = None

class ReportResponse(BaseModel):
    """Response model for report operations"""
    id: str
    reporter_id: PyObjectId
    reporter: Optional[UserSummary] = None
    content_type: ContentType
    content_id: PyObjectId
    content_title: Optional[str] = None
    target_user_id: Optional[PyObjectId] = None
    target_user: Optional[UserSummary] = None
    reason: ReportReason
    description: Optional[str] = None
    priority: ReportPriority = ReportPriority.MEDIUM
    status: ReportStatus
    admin_notes: Optional[str] = None
    action_taken: Optional[ActionTaken] = None
    reviewed_by: Optional[PyObjectId] = None
    reviewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    related_reports: Optional[List["ReportResponse"]] = None

class ReportStatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    investigating: int = 0
    resolved: int = 0
    rejected: int = 0
    escalated: int = 0

class ReportListResponse(BaseModel):
    reports: List[ReportResponse]
    pagination: Pagination
    stats: Optional[ReportStatusCounts] = None

class ContentReportSummary(BaseModel):
    content_type: ContentType
    content_id: str
    total_reports: int

class ContentReportsResponse(BaseModel):
    reports: List[ReportResponse]
    pagination: Pagination
    summary: ContentReportSummary

class StatsBucket(BaseModel):
    key: Optional[str] = None
    count: int

class DailyCount(BaseModel):
    date: str
    count: int

class ReportStatsResponse(BaseModel):
    total: int
    by_status: ReportStatusCounts
    group_by: StatsGroupBy
    groups: List[StatsBucket]
    top_reasons: List[StatsBucket]
    daily_activity: List[DailyCount]
    by_content_type: Dict[str, ReportStatusCounts]
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

class BulkUpdateResult(BaseModel):
    matched_count: int
    modified_count: int
    conflict_ids: List[str] = Field(default_factory=list, description="Reports left unchanged by a concurrent conflict")

class AdminDeleteResult(BaseModel):
    id: str
    deleted_at: datetime
