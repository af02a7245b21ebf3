"""Clip repository and clip read/delete service layer.

Repository primitives (create_clip, update_clip, delete_clip_record,
delete_clips) flush but never commit; callers own the transaction.
Viewer-facing operations (delete_clip_for_viewer) commit themselves.

Key invariants:
- Clip.featured and the FeaturedClip marker row change together
- file_size equals the byte length of the stored video
- Media bytes are deleted only after the record deletion commits
"""

import logging

from sqlalchemy import and_, delete, exists, func, or_, select
from sqlalchemy.orm import Session, joinedload, selectinload

from clipshare.auth.middleware import Viewer
from clipshare.auth.permissions import can_delete_clip
from clipshare.config import get_settings
from clipshare.db.models import Clip, ClipTag, Comment, FeaturedClip, Tag
from clipshare.db.session import insert_for, transaction
from clipshare.errors import ApiErrorCode, ForbiddenError, NotFoundError
from clipshare.schemas.clip import ClipDetailOut, ClipOut, TrendingTagOut
from clipshare.services.media import (
    DEFAULT_VIDEO_CONTENT_TYPE,
    MediaPayload,
    delete_media_best_effort,
    read_media,
    sniff_image_type,
)
from clipshare.services.presenters import clip_to_detail_out, clip_to_out
from clipshare.services.tags import parse_tags, set_clip_tags, tag_counts
from clipshare.storage.client import MediaStoreBase

logger = logging.getLogger(__name__)


def _clip_query():
    return select(Clip).options(selectinload(Clip.clip_tags), joinedload(Clip.user))


# =============================================================================
# Repository primitives
# =============================================================================


def create_clip(
    db: Session,
    *,
    owner_id: str | None,
    title: str,
    tags: list[str] | str | None,
    file_name: str,
    file_size: int,
    video_ref: str,
    thumbnail_ref: str | None,
) -> Clip:
    """Insert a clip row and its tags. Does not commit."""
    clip = Clip(
        user_id=owner_id,
        title=title,
        file_name=file_name,
        file_size=file_size,
        video_ref=video_ref,
        thumbnail_ref=thumbnail_ref,
    )
    db.add(clip)
    db.flush()
    names = parse_tags(tags) if isinstance(tags, str) or tags is None else tags
    set_clip_tags(db, clip, names)
    return clip


def get_clip(db: Session, clip_id: str) -> Clip:
    """Load a clip by id.

    Raises:
        NotFoundError(E_CLIP_NOT_FOUND): If no such clip exists.
    """
    clip = db.execute(_clip_query().where(Clip.id == clip_id)).unique().scalar_one_or_none()
    if clip is None:
        raise NotFoundError(ApiErrorCode.E_CLIP_NOT_FOUND, "Clip not found")
    return clip


def list_clips(
    db: Session,
    *,
    search: str | None = None,
    tag: str | None = None,
    user_id: str | None = None,
    featured: bool | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Clip]:
    """List clips newest first.

    Args:
        search: Case-insensitive substring matched against title or any tag.
        tag: Exact (normalized) tag name.
        user_id: Only clips owned by this user.
        featured: Filter on the featured flag.
        limit: Maximum rows; None returns every matching clip.
        offset: Rows to skip, for paging through the feed.
    """
    query = _clip_query()

    term = (search or "").strip().lower()
    if term:
        tag_match = exists().where(
            ClipTag.clip_id == Clip.id,
            ClipTag.tag_id == Tag.id,
            Tag.name.contains(term, autoescape=True),
        )
        query = query.where(
            or_(func.lower(Clip.title).contains(term, autoescape=True), tag_match)
        )

    tag_names = parse_tags(tag)
    if tag_names:
        query = query.where(
            exists().where(
                and_(ClipTag.clip_id == Clip.id, ClipTag.tag_id == Tag.id, Tag.name == tag_names[0])
            )
        )

    if user_id is not None:
        query = query.where(Clip.user_id == user_id)

    if featured is not None:
        query = query.where(Clip.featured == featured)

    query = query.order_by(Clip.upload_date.desc(), Clip.id.desc())
    if offset:
        query = query.offset(offset)
    if limit is not None:
        query = query.limit(limit)

    return list(db.execute(query).unique().scalars())


def apply_featured(db: Session, clip: Clip, featured: bool) -> None:
    """Set the featured flag and keep the marker row in step. Idempotent.

    The marker is written with statements that tolerate a concurrent writer
    of the same clip, so racing feature/unfeature calls never fail and the
    last commit wins.
    """
    clip.featured = featured
    db.flush()
    if featured:
        db.execute(
            insert_for(db, FeaturedClip)
            .values(clip_id=clip.id)
            .on_conflict_do_nothing(index_elements=["clip_id"])
        )
    else:
        db.execute(
            delete(FeaturedClip)
            .where(FeaturedClip.clip_id == clip.id)
            .execution_options(synchronize_session=False)
        )
    db.expire_all()


def update_clip(
    db: Session,
    clip_id: str,
    *,
    title: str | None = None,
    tags: str | list[str] | None = None,
    featured: bool | None = None,
) -> Clip:
    """Partially update a clip. Does not commit."""
    clip = get_clip(db, clip_id)
    if title is not None:
        clip.title = title
    if tags is not None:
        set_clip_tags(db, clip, parse_tags(tags) if isinstance(tags, str) else tags)
    if featured is not None:
        apply_featured(db, clip, featured)
    db.flush()
    return clip


def delete_clip_record(db: Session, clip_id: str) -> None:
    """Delete a clip row; comments, tags and the featured marker cascade."""
    db.delete(get_clip(db, clip_id))
    db.flush()


def delete_clips(db: Session, clip_ids: list[str]) -> int:
    """Delete many clips in one statement. Returns the number of rows removed."""
    if not clip_ids:
        return 0
    result = db.execute(
        delete(Clip).where(Clip.id.in_(clip_ids)).execution_options(synchronize_session=False)
    )
    db.expire_all()
    return result.rowcount or 0


def media_refs(clips: list[Clip]) -> list[str]:
    """Every stored media reference held by the given clips."""
    refs: list[str] = []
    for clip in clips:
        refs.append(clip.video_ref)
        if clip.thumbnail_ref:
            refs.append(clip.thumbnail_ref)
    return refs


# =============================================================================
# Read operations
# =============================================================================


def list_clips_out(db: Session, **filters) -> list[ClipOut]:
    return [clip_to_out(clip) for clip in list_clips(db, **filters)]


def get_clip_detail(db: Session, clip_id: str) -> ClipDetailOut:
    """Clip with uploader info and comment count."""
    clip = get_clip(db, clip_id)
    comment_count = db.execute(
        select(func.count()).select_from(Comment).where(Comment.clip_id == clip.id)
    ).scalar_one()
    return clip_to_detail_out(clip, comment_count)


def read_clip_video(db: Session, store: MediaStoreBase, clip_id: str) -> MediaPayload:
    """Fetch the video bytes of a clip.

    Raises:
        NotFoundError: E_CLIP_NOT_FOUND or E_MEDIA_MISSING.
    """
    clip = get_clip(db, clip_id)
    return read_media(store, clip.video_ref, content_type=DEFAULT_VIDEO_CONTENT_TYPE)


def read_clip_thumbnail(db: Session, store: MediaStoreBase, clip_id: str) -> MediaPayload:
    """Fetch thumbnail bytes, or a redirect to the placeholder image."""
    clip = get_clip(db, clip_id)
    placeholder = MediaPayload(redirect_url=get_settings().placeholder_thumbnail_url)
    if not clip.thumbnail_ref:
        return placeholder
    try:
        payload = read_media(store, clip.thumbnail_ref, content_type="application/octet-stream")
    except NotFoundError:
        logger.warning("thumbnail_missing clip_id=%s", clip.id)
        return placeholder
    if payload.data is None:
        return payload
    return MediaPayload(data=payload.data, content_type=sniff_image_type(payload.data))


def trending_tags(db: Session, limit: int = 10) -> list[TrendingTagOut]:
    return [TrendingTagOut(tag=name, count=count) for name, count in tag_counts(db, limit)]


# =============================================================================
# Viewer mutations
# =============================================================================


def delete_clip_for_viewer(
    db: Session, store: MediaStoreBase, viewer: Viewer, clip_id: str
) -> None:
    """Delete a clip as its owner or an admin.

    Raises:
        NotFoundError(E_CLIP_NOT_FOUND): If the clip does not exist.
        ForbiddenError(E_FORBIDDEN): If the viewer is neither owner nor admin.
    """
    clip = get_clip(db, clip_id)
    if not can_delete_clip(viewer, clip):
        raise ForbiddenError(ApiErrorCode.E_FORBIDDEN, "Not allowed to delete this clip")

    refs = media_refs([clip])
    with transaction(db):
        delete_clip_record(db, clip.id)

    delete_media_best_effort(store, refs)
    logger.info("clip_deleted clip_id=%s by=%s", clip_id, viewer.user_id)
