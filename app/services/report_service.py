"""
Report lifecycle and moderation

app/services/report_service.py

Creation, ownership-gated access, admin status transitions, listing,
statistics and export for user reports.
"""
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import datetime, timedelta
import asyncio
import logging
import re

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InternalServerErrorException,
    NotFoundException,
)
from app.core.messages import get_message
from app.models.base import (
    OPEN_REPORT_STATUSES,
    ContentType,
    NotificationType,
    ReportStatus,
    UserRole,
)
from app.models.report import (
    AdminDeleteResult,
    BulkReportUpdate,
    BulkUpdateResult,
    ContentReportSummary,
    ContentReportsResponse,
    DailyCount,
    ReportCreate,
    ReportListResponse,
    ReportQuery,
    ReportResponse,
    ReportStatsQuery,
    ReportStatsResponse,
    ReportStatusCounts,
    ReportStatusUpdate,
    StatsBucket,
    StatsGroupBy,
    StatsPeriod,
    UserSummary,
)
from app.models.user import CurrentUser
from app.services.content_registry import find_content, get_content_source
from app.services.notification_service import NotificationDispatcher
from app.services.report_export import flatten_report
from app.services.report_query import (
    build_date_filter,
    build_pagination,
    build_report_filter,
    build_sort,
    get_pagination_params,
)

logger = logging.getLogger(__name__)

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")

EXPORT_FORMATS = ("csv", "json")

PERIOD_DELTAS = {
    StatsPeriod.DAY: timedelta(days=1),
    StatsPeriod.WEEK: timedelta(weeks=1),
    StatsPeriod.MONTH: timedelta(days=30),
    StatsPeriod.QUARTER: timedelta(days=91),
    StatsPeriod.YEAR: timedelta(days=365),
}

USER_SUMMARY_PROJECTION = {"display_name": 1, "email": 1}


def is_valid_object_id(value) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_PATTERN.match(value))


def parse_object_id(value: str, message_key: str) -> ObjectId:
    if not is_valid_object_id(value):
        raise BadRequestException(get_message(message_key))
    return ObjectId(value)


def ensure_admin(caller: CurrentUser):
    if not caller.is_admin:
        raise ForbiddenException(get_message("reports.forbidden.admin"))


def _str_or_none(value) -> Optional[str]:
    return str(value) if value is not None else None


def _user_summary(users: Dict[ObjectId, dict], user_id) -> Optional[UserSummary]:
    user = users.get(user_id)
    if not user:
        return None
    return UserSummary(
        id=str(user["_id"]),
        display_name=user.get("display_name"),
        email=user.get("email"),
    )


def serialize_report(report: dict, users: Optional[Dict[ObjectId, dict]] = None) -> ReportResponse:
    """Convert a raw report document to its response model, resolving populated users"""
    users = users or {}
    return ReportResponse(
        id=str(report["_id"]),
        reporter_id=str(report["reporter_id"]),
        reporter=_user_summary(users, report.get("reporter_id")),
        content_type=report["content_type"],
        content_id=str(report["content_id"]),
        content_title=(report.get("metadata") or {}).get("content_title"),
        target_user_id=_str_or_none(report.get("target_user_id")),
        target_user=_user_summary(users, report.get("target_user_id")),
        reason=report["reason"],
        description=report.get("description"),
        priority=report.get("priority") or "medium",
        status=report["status"],
        admin_notes=report.get("admin_notes"),
        action_taken=report.get("action_taken"),
        reviewed_by=_str_or_none(report.get("reviewed_by")),
        reviewed_at=report.get("reviewed_at"),
        resolved_at=report.get("resolved_at"),
        created_at=report["created_at"],
        updated_at=report["updated_at"],
    )


async def load_users(db, reports: Iterable[dict]) -> Dict[ObjectId, dict]:
    """Fetch reporter and target user summaries for a batch of reports in one query"""
    user_ids = set()
    for report in reports:
        for field in ("reporter_id", "target_user_id"):
            if report.get(field) is not None:
                user_ids.add(report[field])

    if not user_ids:
        return {}

    cursor = db.users.find({"_id": {"$in": list(user_ids)}}, USER_SUMMARY_PROJECTION)
    return {user["_id"]: user async for user in cursor}


async def count_by_status(db, match: dict) -> ReportStatusCounts:
    """Per-status counts (all five statuses, zero-filled) plus the total"""
    pipeline = [
        {"$match": match},
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
    ]
    rows = await db.reports.aggregate(pipeline).to_list(length=None)

    counts = ReportStatusCounts()
    known = {status.value for status in ReportStatus}
    for row in rows:
        if row["_id"] in known:
            setattr(counts, row["_id"], row["count"])
        counts.total += row["count"]
    return counts


async def _find_page(db, mongo_filter: dict, sort, page: int, limit: int) -> Tuple[List[dict], int, int, int]:
    page, limit, skip = get_pagination_params(page, min(limit, settings.REPORTS_MAX_PAGE_SIZE))
    cursor = db.reports.find(mongo_filter).sort(sort).skip(skip).limit(limit)
    reports, total = await asyncio.gather(
        cursor.to_list(length=limit),
        db.reports.count_documents(mongo_filter),
    )
    return reports, total, page, limit


# ---------------------------------------------------------------------------
# Reporter operations
# ---------------------------------------------------------------------------

async def create_report(
    db,
    notifier: NotificationDispatcher,
    data: ReportCreate,
    caller: CurrentUser,
) -> ReportResponse:
    """
    File a report against a piece of content.

    - The content must exist and must not belong to the caller
    - Only one open report per reporter and content item
    - Every admin is notified (best effort)
    """
    content_id = parse_object_id(data.content_id, "reports.invalid_content_id")
    reporter_id = ObjectId(caller.id)
    source = get_content_source(data.content_type)

    try:
        content = await find_content(db, data.content_type, content_id)
        if not content:
            raise NotFoundException(get_message("reports.content_not_found"))
        target_user_id = source.owner_of(content)
    except (PyMongoError, InvalidId) as e:
        logger.error(f"Failed to resolve {data.content_type.value} {content_id}: {e}")
        raise InternalServerErrorException(get_message("reports.content_lookup_failed"))

    if target_user_id == reporter_id:
        raise BadRequestException(get_message("reports.self_report"))

    existing_report = await db.reports.find_one({
        "reporter_id": reporter_id,
        "content_type": data.content_type.value,
        "content_id": content_id,
        "status": {"$in": [status.value for status in OPEN_REPORT_STATUSES]},
    })
    if existing_report:
        raise ConflictException(get_message("reports.duplicate"))

    now = datetime.utcnow()
    report_doc = {
        "reporter_id": reporter_id,
        "content_type": data.content_type.value,
        "content_id": content_id,
        "target_user_id": target_user_id,
        "reason": data.reason.value,
        "description": data.description,
        "priority": data.priority.value,
        "status": ReportStatus.PENDING.value,
        "is_open": True,
        "admin_notes": None,
        "action_taken": None,
        "reviewed_by": None,
        "reviewed_at": None,
        "resolved_at": None,
        "metadata": {"content_title": source.title_of(content)},
        "created_at": now,
        "updated_at": now,
    }

    try:
        result = await db.reports.insert_one(report_doc)
    except DuplicateKeyError:
        # Lost the race against a concurrent identical report
        raise ConflictException(get_message("reports.duplicate"))

    report_doc["_id"] = result.inserted_id
    logger.info(f"Report {result.inserted_id} filed by {caller.id} on {data.content_type.value} {content_id}")

    notifier.dispatch_to_role(
        UserRole.ADMIN,
        NotificationType.REPORT_CREATED,
        {
            "report_id": str(result.inserted_id),
            "content_type": data.content_type.value,
            "reason": data.reason.value,
        },
    )

    users = await load_users(db, [report_doc])
    return serialize_report(report_doc, users)


async def get_user_reports(db, caller: CurrentUser, query: ReportQuery) -> ReportListResponse:
    """The caller's own reports, paginated, with status counts over all of them"""
    reporter_id = ObjectId(caller.id)
    mongo_filter = build_report_filter(query, reporter_id=reporter_id)

    (reports, total, page, limit), stats = await asyncio.gather(
        _find_page(db, mongo_filter, build_sort(query), query.page, query.limit),
        count_by_status(db, {"reporter_id": reporter_id}),
    )

    users = await load_users(db, reports)
    return ReportListResponse(
        reports=[serialize_report(report, users) for report in reports],
        pagination=build_pagination(page, limit, total),
        stats=stats,
    )


async def get_report_by_id(db, caller: CurrentUser, report_id: str) -> ReportResponse:
    oid = parse_object_id(report_id, "reports.invalid_id")

    report = await db.reports.find_one({"_id": oid})
    if not report:
        raise NotFoundException(get_message("reports.not_found"))

    if str(report["reporter_id"]) != caller.id and not caller.is_admin:
        raise ForbiddenException(get_message("reports.forbidden.view"))

    related = []
    if caller.is_admin:
        related = await db.reports.find({
            "content_type": report["content_type"],
            "content_id": report["content_id"],
            "_id": {"$ne": oid},
        }).sort("created_at", -1).limit(settings.RELATED_REPORTS_LIMIT).to_list(
            length=settings.RELATED_REPORTS_LIMIT
        )

    users = await load_users(db, [report, *related])
    response = serialize_report(report, users)
    if caller.is_admin:
        response.related_reports = [serialize_report(item, users) for item in related]
    return response


async def delete_report(db, caller: CurrentUser, report_id: str) -> str:
    """
    Hard-delete the caller's own pending report.

    Missing, foreign and non-pending reports all answer the same 404.
    """
    oid = parse_object_id(report_id, "reports.invalid_id")

    result = await db.reports.delete_one({
        "_id": oid,
        "reporter_id": ObjectId(caller.id),
        "status": ReportStatus.PENDING.value,
    })
    if result.deleted_count == 0:
        raise NotFoundException(get_message("reports.not_deletable"))

    logger.info(f"Report {report_id} deleted by its reporter {caller.id}")
    return report_id


# ---------------------------------------------------------------------------
# Admin operations
# ---------------------------------------------------------------------------

async def get_all_reports(db, caller: CurrentUser, query: ReportQuery) -> ReportListResponse:
    ensure_admin(caller)

    mongo_filter = build_report_filter(query)
    reports, total, page, limit = await _find_page(
        db, mongo_filter, build_sort(query), query.page, query.limit
    )

    users = await load_users(db, reports)
    return ReportListResponse(
        reports=[serialize_report(report, users) for report in reports],
        pagination=build_pagination(page, limit, total),
    )


def resolve_stats_range(query: ReportStatsQuery, now: Optional[datetime] = None):
    """Explicit dates win; otherwise ``period`` counts back from now"""
    if query.date_from or query.date_to:
        return query.date_from, query.date_to
    if query.period == StatsPeriod.ALL:
        return None, None
    now = now or datetime.utcnow()
    return now - PERIOD_DELTAS[query.period], None


async def _daily_activity(db, match: dict) -> List[DailyCount]:
    pipeline = [
        {"$match": match},
        {
            "$group": {
                "_id": {
                    "year": {"$year": "$created_at"},
                    "month": {"$month": "$created_at"},
                    "day": {"$dayOfMonth": "$created_at"},
                },
                "count": {"$sum": 1},
            }
        },
    ]
    rows = await db.reports.aggregate(pipeline).to_list(length=None)
    series = [
        DailyCount(
            date=f"{row['_id']['year']:04d}-{row['_id']['month']:02d}-{row['_id']['day']:02d}",
            count=row["count"],
        )
        for row in rows
    ]
    return sorted(series, key=lambda item: item.date)


async def _group_counts(db, match: dict, field: str) -> List[StatsBucket]:
    pipeline = [
        {"$match": match},
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
    ]
    rows = await db.reports.aggregate(pipeline).to_list(length=None)
    return [StatsBucket(key=_str_or_none(row["_id"]), count=row["count"]) for row in rows]


async def _top_reasons(db, match: dict) -> List[StatsBucket]:
    pipeline = [
        {"$match": match},
        {"$group": {"_id": "$reason", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
        {"$limit": settings.TOP_REASONS_LIMIT},
    ]
    rows = await db.reports.aggregate(pipeline).to_list(length=None)
    return [StatsBucket(key=_str_or_none(row["_id"]), count=row["count"]) for row in rows]


async def _by_content_type(db, match: dict) -> Dict[str, ReportStatusCounts]:
    pipeline = [
        {"$match": match},
        {
            "$group": {
                "_id": {"content_type": "$content_type", "status": "$status"},
                "count": {"$sum": 1},
            }
        },
    ]
    rows = await db.reports.aggregate(pipeline).to_list(length=None)

    breakdown: Dict[str, ReportStatusCounts] = {}
    known = {status.value for status in ReportStatus}
    for row in rows:
        content_type = row["_id"].get("content_type")
        status = row["_id"].get("status")
        counts = breakdown.setdefault(content_type, ReportStatusCounts())
        if status in known:
            setattr(counts, status, getattr(counts, status) + row["count"])
        counts.total += row["count"]
    return breakdown


async def get_report_stats(db, caller: CurrentUser, query: ReportStatsQuery) -> ReportStatsResponse:
    """
    Dashboard statistics.

    The counts are independent queries issued concurrently, so they are
    not a single consistent snapshot.
    """
    ensure_admin(caller)

    date_from, date_to = resolve_stats_range(query)
    match = {}
    created_at = build_date_filter(date_from, date_to)
    if created_at:
        match["created_at"] = created_at

    if query.group_by == StatsGroupBy.DATE:
        groups_task = _daily_activity(db, match)
    else:
        groups_task = _group_counts(db, match, query.group_by.value)

    statuses = list(ReportStatus)
    results = await asyncio.gather(
        db.reports.count_documents(match),
        *(db.reports.count_documents({**match, "status": status.value}) for status in statuses),
        groups_task,
        _top_reasons(db, match),
        _daily_activity(db, match),
        _by_content_type(db, match),
    )

    total = results[0]
    status_counts = results[1:1 + len(statuses)]
    groups, top_reasons, daily_activity, by_content_type = results[1 + len(statuses):]

    by_status = ReportStatusCounts(total=total)
    for status, count in zip(statuses, status_counts):
        setattr(by_status, status.value, count)

    if query.group_by == StatsGroupBy.DATE:
        groups = [StatsBucket(key=item.date, count=item.count) for item in groups]

    return ReportStatsResponse(
        total=total,
        by_status=by_status,
        group_by=query.group_by,
        groups=groups,
        top_reasons=top_reasons,
        daily_activity=daily_activity,
        by_content_type=by_content_type,
        date_from=date_from,
        date_to=date_to,
    )


def _status_fields(status: ReportStatus, caller: CurrentUser, now: datetime) -> dict:
    return {
        "status": status.value,
        "is_open": status.is_open,
        "reviewed_by": ObjectId(caller.id),
        "reviewed_at": now,
        "updated_at": now,
    }


async def update_report_status(
    db,
    notifier: NotificationDispatcher,
    caller: CurrentUser,
    report_id: str,
    update: ReportStatusUpdate,
) -> ReportResponse:
    """
    Move a report to any status.

    Transitions are not restricted to forward moves; re-applying the
    current status still records the reviewer.
    """
    ensure_admin(caller)
    oid = parse_object_id(report_id, "reports.invalid_id")

    report = await db.reports.find_one({"_id": oid})
    if not report:
        raise NotFoundException(get_message("reports.not_found"))

    now = datetime.utcnow()
    update_doc = _status_fields(update.status, caller, now)
    if update.admin_notes is not None:
        update_doc["admin_notes"] = update.admin_notes
    if update.action_taken is not None:
        update_doc["action_taken"] = update.action_taken.value

    if update.status == ReportStatus.RESOLVED:
        if report.get("status") != ReportStatus.RESOLVED.value or not report.get("resolved_at"):
            update_doc["resolved_at"] = now
    else:
        update_doc["resolved_at"] = None

    try:
        await db.reports.update_one({"_id": oid}, {"$set": update_doc})
    except DuplicateKeyError:
        raise ConflictException(get_message("reports.reopen_conflict"))

    logger.info(f"Report {report_id} moved {report.get('status')} -> {update.status.value} by {caller.id}")

    updated_report = await db.reports.find_one({"_id": oid})

    if update.notify_reporter:
        notifier.dispatch(
            updated_report["reporter_id"],
            NotificationType.REPORT_STATUS_UPDATED,
            {"report_id": report_id, "status": update.status.value},
        )

    users = await load_users(db, [updated_report])
    return serialize_report(updated_report, users)


async def bulk_update_reports(
    db,
    notifier: NotificationDispatcher,
    caller: CurrentUser,
    data: BulkReportUpdate,
) -> BulkUpdateResult:
    """Apply one status to many reports with a single multi-document update"""
    ensure_admin(caller)

    invalid_ids = [report_id for report_id in data.report_ids if not is_valid_object_id(report_id)]
    if invalid_ids:
        raise BadRequestException(
            get_message("reports.invalid_ids", variables={"ids": ", ".join(map(str, invalid_ids))})
        )

    oids = list(dict.fromkeys(ObjectId(report_id) for report_id in data.report_ids))

    if data.status.is_open:
        conflicting = await find_reopen_conflicts(db, oids)
        if conflicting:
            raise ConflictException(
                get_message("reports.bulk_reopen_conflict", variables={"ids": ", ".join(map(str, conflicting))})
            )

    # BSON dates keep milliseconds; the batch is re-read by this timestamp
    now = datetime.utcnow()
    now = now.replace(microsecond=now.microsecond // 1000 * 1000)
    update_doc = _status_fields(data.status, caller, now)
    update_doc["resolved_at"] = now if data.status == ReportStatus.RESOLVED else None
    if data.admin_notes is not None:
        update_doc["admin_notes"] = data.admin_notes

    conflict_ids: List[str] = []
    try:
        result = await db.reports.update_many({"_id": {"$in": oids}}, {"$set": update_doc})
        matched_count, modified_count = result.matched_count, result.modified_count
        updated_oids = oids
    except DuplicateKeyError:
        # A concurrent write opened a conflicting report after the check;
        # part of the batch may already carry the new status
        cursor = db.reports.find(
            {
                "_id": {"$in": oids},
                "status": data.status.value,
                "reviewed_by": update_doc["reviewed_by"],
                "reviewed_at": now,
            },
            {"_id": 1},
        )
        updated_oids = [report["_id"] async for report in cursor]
        if not updated_oids:
            raise ConflictException(get_message("reports.reopen_conflict"))
        updated = set(updated_oids)
        conflict_ids = [str(oid) for oid in oids if oid not in updated]
        matched_count = modified_count = len(updated_oids)
        logger.warning(f"Bulk update by {caller.id} stopped on an open-report conflict; unchanged: {conflict_ids}")

    if matched_count == 0:
        raise NotFoundException(get_message("reports.bulk_not_found"))

    logger.info(
        f"Bulk update by {caller.id}: {matched_count} matched, "
        f"{modified_count} modified, status={data.status.value}"
    )

    if data.notify_reporter:
        await _notify_bulk_reporters(db, notifier, updated_oids, data.status)

    return BulkUpdateResult(
        matched_count=matched_count,
        modified_count=modified_count,
        conflict_ids=conflict_ids,
    )


async def find_reopen_conflicts(db, oids: List[ObjectId]) -> List[ObjectId]:
    """
    Ids in the batch that cannot become open.

    Per (reporter, content) key only one report may be open. A closed report
    conflicts when another report on its key is already open, or when an
    earlier report of the same batch will take that slot.
    """
    reports = await db.reports.find(
        {"_id": {"$in": oids}},
        {"reporter_id": 1, "content_type": 1, "content_id": 1, "is_open": 1},
    ).to_list(length=None)
    position = {oid: index for index, oid in enumerate(oids)}
    reports.sort(key=lambda report: position[report["_id"]])

    groups: Dict[tuple, List[dict]] = {}
    for report in reports:
        key = (report["reporter_id"], report["content_type"], report["content_id"])
        groups.setdefault(key, []).append(report)

    conflicting = []
    for (reporter_id, content_type, content_id), members in groups.items():
        closed = [report for report in members if not report.get("is_open")]
        if not closed:
            continue

        slot_taken = len(closed) < len(members) or await db.reports.find_one({
            "reporter_id": reporter_id,
            "content_type": content_type,
            "content_id": content_id,
            "is_open": True,
            "_id": {"$nin": oids},
        }, {"_id": 1}) is not None

        blocked = closed if slot_taken else closed[1:]
        conflicting.extend(report["_id"] for report in blocked)

    return sorted(conflicting, key=lambda oid: position[oid])


async def _notify_bulk_reporters(db, notifier: NotificationDispatcher, oids: List[ObjectId], status: ReportStatus):
    try:
        cursor = db.reports.find({"_id": {"$in": oids}}, {"reporter_id": 1})
        reports = [report async for report in cursor]
    except PyMongoError:
        logger.exception("Could not load reporters for bulk status notification")
        return

    notifier.dispatch_many(
        (
            report["reporter_id"],
            NotificationType.REPORT_STATUS_UPDATED,
            {"report_id": str(report["_id"]), "status": status.value},
        )
        for report in reports
    )


async def admin_delete_report(db, caller: CurrentUser, report_id: str) -> AdminDeleteResult:
    """Hard-delete any report regardless of owner or status"""
    ensure_admin(caller)
    oid = parse_object_id(report_id, "reports.invalid_id")

    result = await db.reports.delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFoundException(get_message("reports.not_found"))

    logger.info(f"Report {report_id} deleted by admin {caller.id}")
    return AdminDeleteResult(id=report_id, deleted_at=datetime.utcnow())


async def get_content_reports(
    db,
    caller: CurrentUser,
    content_type: ContentType,
    content_id: str,
    page: int = 1,
    limit: int = settings.REPORTS_DEFAULT_PAGE_SIZE,
) -> ContentReportsResponse:
    ensure_admin(caller)
    oid = parse_object_id(content_id, "reports.invalid_content_id")

    mongo_filter = {"content_type": ContentType(content_type).value, "content_id": oid}
    reports, total, page, limit = await _find_page(db, mongo_filter, [("created_at", -1)], page, limit)

    users = await load_users(db, reports)
    return ContentReportsResponse(
        reports=[serialize_report(report, users) for report in reports],
        pagination=build_pagination(page, limit, total),
        summary=ContentReportSummary(
            content_type=content_type,
            content_id=content_id,
            total_reports=total,
        ),
    )


async def export_reports(db, caller: CurrentUser, query: ReportQuery, export_format: str = "csv") -> Tuple[str, List[dict]]:
    """
    Every report matching the listing filters, flattened for export.

    Returns the normalized format and the rows; no pagination is applied.
    """
    ensure_admin(caller)

    export_format = (export_format or "csv").lower()
    if export_format not in EXPORT_FORMATS:
        raise BadRequestException(get_message("reports.export_format"))

    mongo_filter = build_report_filter(query)
    reports = await db.reports.find(mongo_filter).sort(build_sort(query)).to_list(length=None)

    users = await load_users(db, reports)
    rows = [flatten_report(report, users) for report in reports]
    logger.info(f"Exported {len(rows)} reports as {export_format} for {caller.id}")
    return export_format, rows
