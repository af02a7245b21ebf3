"""Clip-related Pydantic schemas.

Clip responses never carry media bytes: only the URLs of the byte-serving
endpoints and metadata.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clipshare.schemas.user import ProfileStatsOut, UserOut, UserSummaryOut

__all__ = [
    "ClipOut",
    "ClipDetailOut",
    "UploadResultOut",
    "TrendingTagOut",
    "ProfileOut",
]


class ClipOut(BaseModel):
    """Response schema for a clip."""

    id: str
    title: str
    tags: str = Field(description="Comma-delimited tag list")
    file_name: str
    file_size: int
    upload_date: datetime
    featured: bool
    user_id: str | None
    video_url: str
    thumbnail_url: str

    model_config = ConfigDict(from_attributes=True)


class ClipDetailOut(ClipOut):
    """Clip with its uploader (None for ownerless legacy clips)."""

    uploader: UserSummaryOut | None
    comment_count: int


class UploadResultOut(BaseModel):
    success: bool = True
    clip_id: str


class TrendingTagOut(BaseModel):
    tag: str
    count: int


class ProfileOut(BaseModel):
    """A user's public profile page."""

    user: UserOut
    clips: list[ClipOut]
    stats: ProfileStatsOut
