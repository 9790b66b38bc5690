"""
app/api/v1/reports.py

Report moderation API endpoints
"""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.database import get_database
from app.core.exceptions import BadRequestException
from app.core.messages import get_message
from app.api.deps import get_current_active_user
from app.models.base import (
    ApiResponse,
    ContentType,
    ReportPriority,
    ReportReason,
    ReportStatus,
    SortOrder,
)
from app.models.report import (
    AdminDeleteResult,
    BulkReportUpdate,
    BulkUpdateResult,
    ContentReportsResponse,
    ReportCreate,
    ReportListResponse,
    ReportQuery,
    ReportResponse,
    ReportSortField,
    ReportStatsQuery,
    ReportStatsResponse,
    ReportStatusUpdate,
    StatsGroupBy,
    StatsPeriod,
)
from app.models.user import CurrentUser
from app.services import report_service
from app.services.notification_service import NotificationDispatcher, get_notifier
from app.services.report_export import export_filename, rows_to_csv
from app.services.report_query import to_naive_utc

router = APIRouter()


def _check_date_range(date_from: Optional[datetime], date_to: Optional[datetime]):
    date_from, date_to = to_naive_utc(date_from), to_naive_utc(date_to)
    if date_from and date_to and date_to < date_from:
        raise BadRequestException(get_message("reports.invalid_date_range"))
    return date_from, date_to


def report_query_params(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.REPORTS_DEFAULT_PAGE_SIZE, ge=1, le=settings.REPORTS_MAX_PAGE_SIZE),
    status: Optional[ReportStatus] = Query(None, description="Filter by report status"),
    content_type: Optional[ContentType] = Query(None),
    reason: Optional[ReportReason] = Query(None),
    priority: Optional[ReportPriority] = Query(None),
    date_from: Optional[datetime] = Query(None, description="Created on or after (ISO 8601)"),
    date_to: Optional[datetime] = Query(None, description="Created on or before (ISO 8601)"),
    search: Optional[str] = Query(None, min_length=2, max_length=100),
    sort_by: ReportSortField = Query(ReportSortField.CREATED_AT),
    sort_order: SortOrder = Query(SortOrder.DESC),
) -> ReportQuery:
    date_from, date_to = _check_date_range(date_from, date_to)
    return ReportQuery(
        page=page,
        limit=limit,
        status=status,
        content_type=content_type,
        reason=reason,
        priority=priority,
        date_from=date_from,
        date_to=date_to,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


def stats_query_params(
    group_by: StatsGroupBy = Query(StatsGroupBy.STATUS),
    period: StatsPeriod = Query(StatsPeriod.ALL),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
) -> ReportStatsQuery:
    date_from, date_to = _check_date_range(date_from, date_to)
    return ReportStatsQuery(group_by=group_by, period=period, date_from=date_from, date_to=date_to)


@router.post("", response_model=ApiResponse[ReportResponse], status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    current_user: CurrentUser = Depends(get_current_active_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Report a piece of content

    - Requires authentication
    - Content must exist and must not be the caller's own
    - Rejects a second open report on the same content by the same user
    """
    db = get_database()
    report = await report_service.create_report(db, notifier, report_data, current_user)
    return ApiResponse(message=get_message("reports.created"), data=report)


@router.get("/my", response_model=ApiResponse[ReportListResponse])
async def get_my_reports(
    query: ReportQuery = Depends(report_query_params),
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """
    Get current user's submitted reports

    - Supports status filter, search and pagination
    - Includes per-status counts over all of the user's reports
    """
    db = get_database()
    result = await report_service.get_user_reports(db, current_user, query)
    return ApiResponse(message=get_message("reports.fetched"), data=result)


@router.get("/admin/all", response_model=ApiResponse[ReportListResponse])
async def get_all_reports(
    query: ReportQuery = Depends(report_query_params),
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """List every report (admin only)"""
    db = get_database()
    result = await report_service.get_all_reports(db, current_user, query)
    return ApiResponse(message=get_message("reports.fetched"), data=result)


@router.get("/admin/stats", response_model=ApiResponse[ReportStatsResponse])
async def get_report_stats(
    query: ReportStatsQuery = Depends(stats_query_params),
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """Report statistics for the moderation dashboard (admin only)"""
    db = get_database()
    stats = await report_service.get_report_stats(db, current_user, query)
    return ApiResponse(message=get_message("reports.stats_fetched"), data=stats)


@router.get("/admin/export")
async def export_reports(
    query: ReportQuery = Depends(report_query_params),
    export_format: str = Query("csv", alias="format", description="csv or json"),
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """
    Export every report matching the filters (admin only)

    - csv: file download, one row per report
    - json: bare array of the same rows
    """
    db = get_database()
    export_format, rows = await report_service.export_reports(db, current_user, query, export_format)

    if export_format == "json":
        return JSONResponse(content=rows)

    return Response(
        content=rows_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.patch("/admin/bulk-update", response_model=ApiResponse[BulkUpdateResult])
async def bulk_update_reports(
    update_data: BulkReportUpdate,
    current_user: CurrentUser = Depends(get_current_active_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """Set one status on many reports at once (admin only)"""
    db = get_database()
    result = await report_service.bulk_update_reports(db, notifier, current_user, update_data)
    return ApiResponse(message=get_message("reports.bulk_updated"), data=result)


@router.patch("/admin/{report_id}/status", response_model=ApiResponse[ReportResponse])
async def update_report_status(
    report_id: str,
    update_data: ReportStatusUpdate,
    current_user: CurrentUser = Depends(get_current_active_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Change a report's status (admin only)

    - Records the reviewing admin
    - Notifies the reporter unless notify_reporter is false
    """
    db = get_database()
    report = await report_service.update_report_status(db, notifier, current_user, report_id, update_data)
    return ApiResponse(message=get_message("reports.status_updated"), data=report)


@router.delete("/admin/{report_id}", response_model=ApiResponse[AdminDeleteResult])
async def admin_delete_report(
    report_id: str,
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """
    Permanently delete a report (admin only)

    - Works for any report whatever its status or reporter
    """
    db = get_database()
    result = await report_service.admin_delete_report(db, current_user, report_id)
    return ApiResponse(message=get_message("reports.deleted"), data=result)


@router.get("/content/{content_type}/{content_id}", response_model=ApiResponse[ContentReportsResponse])
async def get_content_reports(
    content_type: ContentType,
    content_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.REPORTS_DEFAULT_PAGE_SIZE, ge=1, le=settings.REPORTS_MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """All reports filed against one content item (admin only)"""
    db = get_database()
    result = await report_service.get_content_reports(db, current_user, content_type, content_id, page, limit)
    return ApiResponse(message=get_message("reports.content_fetched"), data=result)


@router.get("/{report_id}", response_model=ApiResponse[ReportResponse])
async def get_report_details(
    report_id: str,
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """
    Get details of a specific report

    - Visible to the reporter and to admins
    - Admins also get recent reports on the same content
    """
    db = get_database()
    report = await report_service.get_report_by_id(db, current_user, report_id)
    return ApiResponse(message=get_message("reports.details_fetched"), data=report)


@router.delete("/{report_id}", response_model=ApiResponse[dict])
async def delete_report(
    report_id: str,
    current_user: CurrentUser = Depends(get_current_active_user),
):
    """
    Delete a report

    - Only the reporter can delete their own report
    - Only pending reports can be deleted
    """
    db = get_database()
    deleted_id = await report_service.delete_report(db, current_user, report_id)
    return ApiResponse(message=get_message("reports.deleted"), data={"id": deleted_id})
