"""User, session and profile Pydantic schemas.

Contains request and response models for auth, profile and admin user endpoints.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

UserRoleValue = Literal["USER", "ADMIN"]

__all__ = [
    "SignupRequest",
    "LoginRequest",
    "ChangeRoleRequest",
    "BanUserRequest",
    "DeleteUserRequest",
    "UserRoleValue",
    "UserOut",
    "UserSummaryOut",
    "SessionOut",
    "ProfileStatsOut",
    "AdminUserOut",
]

# =============================================================================
# Request Schemas
# =============================================================================


class SignupRequest(BaseModel):
    """Request body for account creation."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., max_length=256)
    name: str | None = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    """Request body for sign-in."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class ChangeRoleRequest(BaseModel):
    """Request body for an admin role change.

    Role is validated by the service so unknown values map to E_INVALID_ROLE.
    """

    role: str = Field(..., min_length=1, max_length=16)


class BanUserRequest(BaseModel):
    """Request body for ban/unban."""

    banned: bool
    reason: str | None = Field(default=None, max_length=500)


class DeleteUserRequest(BaseModel):
    """Request body for admin user deletion."""

    user_id: str = Field(..., min_length=1, max_length=64)


# =============================================================================
# Response Schemas
# =============================================================================


class UserSummaryOut(BaseModel):
    """Compact author/uploader info embedded in clips and comments."""

    id: str
    name: str | None
    display_name: str | None
    profile_picture_url: str | None

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    """Response schema for a user.

    email and banned are None when the viewer is neither the user nor an admin.
    """

    id: str
    email: str | None
    name: str | None
    display_name: str | None
    role: UserRoleValue
    banned: bool | None
    bio: str | None
    profile_picture_url: str | None
    banner_image_url: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionOut(BaseModel):
    """Sign-in result."""

    token: str
    expires_at: datetime
    user: UserOut


class ProfileStatsOut(BaseModel):
    total_uploads: int
    join_date: datetime


class AdminUserOut(UserOut):
    """User row as shown on the admin dashboard."""

    clip_count: int
    comment_count: int
    ban_reason: str | None
