"""Comment service layer."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from clipshare.auth.middleware import Viewer
from clipshare.auth.permissions import can_delete_comment
from clipshare.db.models import Comment
from clipshare.db.session import transaction
from clipshare.errors import ApiErrorCode, ForbiddenError, InvalidRequestError, NotFoundError
from clipshare.schemas.comment import CommentOut
from clipshare.services.clips import get_clip
from clipshare.services.presenters import comment_to_out

logger = logging.getLogger(__name__)


def list_comments(db: Session, clip_id: str) -> list[CommentOut]:
    """Comments on a clip, newest first, with author info."""
    clip = get_clip(db, clip_id)
    comments = db.execute(
        select(Comment)
        .options(joinedload(Comment.user))
        .where(Comment.clip_id == clip.id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    ).scalars()
    return [comment_to_out(c) for c in comments]


def add_comment(db: Session, viewer: Viewer, clip_id: str, content: str) -> CommentOut:
    """Post a comment as the viewer.

    Raises:
        InvalidRequestError(E_COMMENT_EMPTY): Content is blank after trimming.
        NotFoundError(E_CLIP_NOT_FOUND): Clip does not exist.
    """
    content = (content or "").strip()
    if not content:
        raise InvalidRequestError(ApiErrorCode.E_COMMENT_EMPTY, "Comment cannot be empty")

    clip = get_clip(db, clip_id)
    comment = Comment(clip_id=clip.id, user_id=viewer.user_id, content=content)
    with transaction(db):
        db.add(comment)

    return comment_to_out(comment)


def delete_comment(db: Session, viewer: Viewer, clip_id: str, comment_id: str) -> None:
    """Delete a comment as its author or an admin.

    Raises:
        NotFoundError(E_COMMENT_NOT_FOUND): No such comment on this clip.
        ForbiddenError(E_FORBIDDEN): Viewer is neither author nor admin.
    """
    comment = db.get(Comment, comment_id)
    if comment is None or comment.clip_id != clip_id:
        raise NotFoundError(ApiErrorCode.E_COMMENT_NOT_FOUND, "Comment not found")
    if not can_delete_comment(viewer, comment):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Not allowed to delete this comment")

    with transaction(db):
        db.delete(comment)
    logger.info("comment_deleted comment_id=%s by=%s", comment_id, viewer.user_id)
