"""

app/models/__init__.py

"""


from app.models.base import *
from app.models.user import *
from app.models.report import *

__all__ = [
    # Base
    "PyObjectId",
    "UserRole",
    "ContentType",
    "ReportReason",
    "ReportStatus",
    "OPEN_REPORT_STATUSES",
    "ReportPriority",
    "ActionTaken",
    "NotificationType",
    "SortOrder",
    "ApiResponse",
    "Pagination",

    # User models
    "CurrentUser",

    # Report models
    "ReportCreate",
    "ReportStatusUpdate",
    "BulkReportUpdate",
    "ReportQuery",
    "ReportStatsQuery",
    "ReportResponse",
    "ReportListResponse",
    "ReportStatusCounts",
    "ContentReportsResponse",
    "ReportStatsResponse",
    "BulkUpdateResult",
]
