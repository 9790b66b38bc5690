"""
app/models/base.py
"""


from typing import Generic, Optional, TypeVar
from enum import Enum
from pydantic import BaseModel

# Simple PyObjectId for Pydantic v2
# We'll just use string type and handle ObjectId conversion in the database layer
PyObjectId = str

T = TypeVar("T")

# Enums
class UserRole(str, Enum):
    USER = "user"
    ARTIST = "artist"
    ADMIN = "admin"

class ContentType(str, Enum):
    ARTWORK = "artwork"
    IMAGE = "image"
    USER = "user"
    COMMENT = "comment"
    MESSAGE = "message"

class ReportReason(str, Enum):
    INAPPROPRIATE = "inappropriate"
    COPYRIGHT = "copyright"
    SPAM = "spam"
    OFFENSIVE = "offensive"
    HARASSMENT = "harassment"
    OTHER = "other"

class ReportStatus(str, Enum):
    PENDING = "pending"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    ESCALATED = "escalated"

    @property
    def is_open(self) -> bool:
        return self in OPEN_REPORT_STATUSES

# Reporter may re-report the same content only once these are left
OPEN_REPORT_STATUSES = (ReportStatus.PENDING, ReportStatus.INVESTIGATING)

class ReportPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class ActionTaken(str, Enum):
    NONE = "none"
    WARNING = "warning"
    CONTENT_REMOVED = "content_removed"
    USER_SUSPENDED = "user_suspended"
    USER_BANNED = "user_banned"
    OTHER = "other"

class NotificationType(str, Enum):
    REPORT_CREATED = "report_created"
    REPORT_STATUS_UPDATED = "report_status_updated"
    SYSTEM = "system"

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# Base Models
class ApiResponse(BaseModel, Generic[T]):
    """Uniform success envelope"""
    success: bool = True
    message: str
    data: Optional[T] = None

class Pagination(BaseModel):
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
