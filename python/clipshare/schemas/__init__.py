"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from clipshare.schemas.admin import (
    AdminActionOut,
    AdminAnalyticsOut,
    AdminStatsOut,
    BulkDeleteOut,
    BulkDeleteRequest,
    DailyCountOut,
    FeatureClipRequest,
    StorageByUserOut,
    TagCountOut,
    UploaderOut,
)
from clipshare.schemas.clip import (
    ClipDetailOut,
    ClipOut,
    ProfileOut,
    TrendingTagOut,
    UploadResultOut,
)
from clipshare.schemas.comment import CommentOut, CreateCommentRequest
from clipshare.schemas.user import (
    AdminUserOut,
    BanUserRequest,
    ChangeRoleRequest,
    DeleteUserRequest,
    LoginRequest,
    ProfileStatsOut,
    SessionOut,
    SignupRequest,
    UserOut,
    UserSummaryOut,
)

__all__ = [
    # Users and sessions
    "SignupRequest",
    "LoginRequest",
    "ChangeRoleRequest",
    "BanUserRequest",
    "DeleteUserRequest",
    "UserOut",
    "UserSummaryOut",
    "SessionOut",
    "ProfileStatsOut",
    "AdminUserOut",
    # Clips
    "ClipOut",
    "ClipDetailOut",
    "UploadResultOut",
    "TrendingTagOut",
    "ProfileOut",
    # Comments
    "CreateCommentRequest",
    "CommentOut",
    # Admin
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
