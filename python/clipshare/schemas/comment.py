"""Comment Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from clipshare.schemas.user import UserSummaryOut

__all__ = ["CreateCommentRequest", "CommentOut"]


class CreateCommentRequest(BaseModel):
    """Request body for posting a comment.

    Blank content is rejected by the service with E_COMMENT_EMPTY.
    """

    content: str = Field(..., max_length=2000)


class CommentOut(BaseModel):
    id: str
    clip_id: str
    content: str
    created_at: datetime
    user: UserSummaryOut

    model_config = ConfigDict(from_attributes=True)
