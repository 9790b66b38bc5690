"""
Filter, sort and pagination assembly for report listings

app/services/report_query.py
"""
import re
from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from app.models.base import Pagination, SortOrder
from app.models.report import ReportQuery


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; bring query bounds to the same form"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def build_search_filter(search: Optional[str]) -> Optional[dict]:
    """Case-insensitive match on description or the content title snapshot"""
    if not search:
        return None
    pattern = re.escape(search.strip())
    if not pattern:
        return None
    return {
        "$or": [
            {"description": {"$regex": pattern, "$options": "i"}},
            {"metadata.content_title": {"$regex": pattern, "$options": "i"}},
        ]
    }


def build_date_filter(date_from=None, date_to=None) -> Optional[dict]:
    """Inclusive created_at range"""
    if date_from is None and date_to is None:
        return None
    created_at = {}
    if date_from is not None:
        created_at["$gte"] = to_naive_utc(date_from)
    if date_to is not None:
        created_at["$lte"] = to_naive_utc(date_to)
    return created_at


def build_report_filter(query: ReportQuery, reporter_id: Optional[ObjectId] = None) -> Dict[str, Any]:
    """
    Build the Mongo filter for a report listing.

    All supplied criteria are ANDed. ``reporter_id`` scopes the listing to
    a single reporter's own reports.
    """
    mongo_filter: Dict[str, Any] = {}

    if reporter_id is not None:
        mongo_filter["reporter_id"] = reporter_id
    if query.status:
        mongo_filter["status"] = query.status.value
    if query.content_type:
        mongo_filter["content_type"] = query.content_type.value
    if query.reason:
        mongo_filter["reason"] = query.reason.value
    if query.priority:
        mongo_filter["priority"] = query.priority.value

    created_at = build_date_filter(query.date_from, query.date_to)
    if created_at:
        mongo_filter["created_at"] = created_at

    search_filter = build_search_filter(query.search)
    if search_filter:
        mongo_filter.update(search_filter)

    return mongo_filter


def build_sort(query: ReportQuery) -> List[Tuple[str, int]]:
    direction = 1 if query.sort_order == SortOrder.ASC else -1
    sort = [(query.sort_by.value, direction)]
    if query.sort_by.value != "created_at":
        sort.append(("created_at", -1))
    return sort


def get_pagination_params(page: int, limit: int) -> Tuple[int, int, int]:
    """Return (page, limit, skip) with page >= 1 and limit >= 1"""
    page = max(1, page)
    limit = max(1, limit)
    return page, limit, (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    total_pages = ceil(total / limit) if limit > 0 else 0
    return Pagination(
        current_page=page,
        items_per_page=limit,
        total_items=total,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )
