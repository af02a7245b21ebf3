"""Admin dashboard and moderation Pydantic schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from clipshare.schemas.clip import ClipOut
from clipshare.schemas.user import UserOut

__all__ = [
    "FeatureClipRequest",
    "BulkDeleteRequest",
    "BulkDeleteOut",
    "AdminStatsOut",
    "DailyCountOut",
    "UploaderOut",
    "TagCountOut",
    "StorageByUserOut",
    "AdminActionOut",
    "AdminAnalyticsOut",
]

# =============================================================================
# Request Schemas
# =============================================================================


class FeatureClipRequest(BaseModel):
    featured: bool


class BulkDeleteRequest(BaseModel):
    """Request body for bulk clip deletion.

    An empty list is rejected by the service with E_INVALID_REQUEST.
    """

    clip_ids: list[str] = Field(..., max_length=500)


# =============================================================================
# Response Schemas
# =============================================================================


class BulkDeleteOut(BaseModel):
    success: bool = True
    count: int


class AdminStatsOut(BaseModel):
    """Totals and recent activity for the admin dashboard."""

    total_users: int
    total_clips: int
    total_storage: int
    weekly_signups: int
    weekly_uploads: int
    recent_clips: list[ClipOut]
    recent_users: list[UserOut]


class DailyCountOut(BaseModel):
    day: date
    count: int


class UploaderOut(BaseModel):
    user_id: str
    email: str
    name: str | None
    clip_count: int


class TagCountOut(BaseModel):
    tag: str
    count: int


class StorageByUserOut(BaseModel):
    user_id: str
    email: str
    total_bytes: int


class AdminActionOut(BaseModel):
    """Audit log entry. admin_email is "System" when the admin no longer exists."""

    id: str
    action: str
    details: str
    timestamp: datetime
    admin_id: str | None
    admin_email: str


class AdminAnalyticsOut(BaseModel):
    uploads_by_day: list[DailyCountOut]
    top_uploaders: list[UploaderOut]
    popular_tags: list[TagCountOut]
    storage_by_user: list[StorageByUserOut]
    recent_actions: list[AdminActionOut]
