"""
Report export formatting

app/services/report_export.py
"""
from datetime import datetime
from io import StringIO
from typing import Any, Dict, List, Optional
import csv

EXPORT_COLUMNS = [
    "id",
    "contentType",
    "contentId",
    "contentTitle",
    "reason",
    "description",
    "priority",
    "status",
    "reporterName",
    "reporterEmail",
    "targetUserName",
    "targetUserEmail",
    "adminNotes",
    "actionTaken",
    "createdAt",
    "updatedAt",
]


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def flatten_report(report: dict, users: Dict[Any, dict]) -> Dict[str, Any]:
    """Flatten a raw report document and its populated users into one export row"""
    reporter = users.get(report.get("reporter_id")) or {}
    target = users.get(report.get("target_user_id")) or {}
    return {
        "id": str(report["_id"]),
        "contentType": report.get("content_type"),
        "contentId": str(report["content_id"]) if report.get("content_id") else None,
        "contentTitle": (report.get("metadata") or {}).get("content_title"),
        "reason": report.get("reason"),
        "description": report.get("description"),
        "priority": report.get("priority"),
        "status": report.get("status"),
        "reporterName": reporter.get("display_name"),
        "reporterEmail": reporter.get("email"),
        "targetUserName": target.get("display_name"),
        "targetUserEmail": target.get("email"),
        "adminNotes": report.get("admin_notes"),
        "actionTaken": report.get("action_taken"),
        "createdAt": _iso(report.get("created_at")),
        "updatedAt": _iso(report.get("updated_at")),
    }


def rows_to_csv(rows: List[Dict[str, Any]]) -> str:
    """Header line plus one line per row; header only for an empty export"""
    output = StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for row in rows:
        writer.writerow(["" if row.get(column) is None else row.get(column) for column in EXPORT_COLUMNS])
    return output.getvalue()


def export_filename(now: Optional[datetime] = None, extension: str = "csv") -> str:
    now = now or datetime.utcnow()
    return f"reports_{now.strftime('%Y%m%d%H%M%S')}.{extension}"
