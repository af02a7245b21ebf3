"""ORM -> response schema conversion.

Public serialization never includes media bytes or storage references,
only URLs of the byte-serving endpoints.
"""

from clipshare.config import get_settings
from clipshare.db.models import Clip, Comment, User
from clipshare.schemas.clip import ClipDetailOut, ClipOut
from clipshare.schemas.comment import CommentOut
from clipshare.schemas.user import UserOut, UserSummaryOut
from clipshare.services.tags import format_tags


def clip_video_url(clip_id: str) -> str:
    return f"/clips/{clip_id}/video"


def clip_thumbnail_url(clip: Clip) -> str:
    if clip.thumbnail_ref:
        return f"/clips/{clip.id}/thumbnail"
    return get_settings().placeholder_thumbnail_url


def profile_image_url(user: User, kind: str) -> str | None:
    ref = user.profile_picture_ref if kind == "avatar" else user.banner_image_ref
    if not ref:
        return None
    return f"/user/{user.id}/{kind}"


def clip_to_out(clip: Clip) -> ClipOut:
    return ClipOut(
        id=clip.id,
        title=clip.title,
        tags=format_tags(clip.tag_names),
        file_name=clip.file_name,
        file_size=clip.file_size,
        upload_date=clip.upload_date,
        featured=clip.featured,
        user_id=clip.user_id,
        video_url=clip_video_url(clip.id),
        thumbnail_url=clip_thumbnail_url(clip),
    )


def clip_to_detail_out(clip: Clip, comment_count: int = 0) -> ClipDetailOut:
    return ClipDetailOut(
        **clip_to_out(clip).model_dump(),
        uploader=user_to_summary_out(clip.user) if clip.user is not None else None,
        comment_count=comment_count,
    )


def user_to_summary_out(user: User) -> UserSummaryOut:
    return UserSummaryOut(
        id=user.id,
        name=user.name,
        display_name=user.display_name,
        profile_picture_url=profile_image_url(user, "avatar"),
    )


def user_to_out(user: User, *, include_private: bool = True) -> UserOut:
    """Serialize a user. include_private=False hides email and ban state."""
    return UserOut(
        id=user.id,
        email=user.email if include_private else None,
        name=user.name,
        display_name=user.display_name,
        role=user.role,
        banned=user.banned if include_private else None,
        bio=user.bio,
        profile_picture_url=profile_image_url(user, "avatar"),
        banner_image_url=profile_image_url(user, "banner"),
        created_at=user.created_at,
    )


def comment_to_out(comment: Comment) -> CommentOut:
    return CommentOut(
        id=comment.id,
        clip_id=comment.clip_id,
        content=comment.content,
        created_at=comment.created_at,
        user=user_to_summary_out(comment.user),
    )
