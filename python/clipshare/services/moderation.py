"""Moderation and admin dashboard service layer.

Every mutation:
1. Re-checks that the acting viewer is currently an ADMIN in the database
2. Applies the change and appends exactly one AdminLog row inside a single
   transaction, so an audit failure rolls the change back
3. Deletes media bytes best-effort only after the commit

Read operations back the admin dashboard: user and clip listings, totals,
and analytics.
"""

import logging
from collections import Counter
from datetime import UTC, datetime, timedelta

from sqlalchemy import desc, func, or_, outerjoin, select
from sqlalchemy.orm import Session, selectinload

from clipshare.auth.middleware import Viewer
from clipshare.db.models import AdminAction, AdminLog, Clip, Comment, User, UserRole
from clipshare.db.session import transaction
from clipshare.errors import ApiErrorCode, ForbiddenError, InvalidRequestError
from clipshare.schemas.admin import (
    AdminActionOut,
    AdminAnalyticsOut,
    AdminStatsOut,
    DailyCountOut,
    StorageByUserOut,
    TagCountOut,
    UploaderOut,
)
from clipshare.schemas.clip import ClipDetailOut, ClipOut
from clipshare.schemas.user import AdminUserOut
from clipshare.services.clips import (
    apply_featured,
    delete_clips,
    get_clip,
    list_clips,
    media_refs,
)
from clipshare.services.media import delete_media_best_effort
from clipshare.services.presenters import clip_to_detail_out, clip_to_out, user_to_out
from clipshare.services.tags import tag_counts
from clipshare.services.users import (
    delete_user_record,
    get_user,
    set_banned,
    set_role,
    validate_role,
)
from clipshare.storage.client import MediaStoreBase

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10
RECENT_ACTIONS_LIMIT = 20
TOP_LIMIT = 10
ANALYTICS_WINDOW_DAYS = 30
SYSTEM_ACTOR = "System"


def _require_admin(db: Session, admin: Viewer) -> User:
    """Confirm the actor is an ADMIN right now, not just when the request began.

    Raises:
        ForbiddenError(E_ADMIN_REQUIRED): If the actor is missing, banned or not an admin.
    """
    actor = db.get(User, admin.user_id)
    if actor is None or actor.banned or actor.role != UserRole.ADMIN.value:
        raise ForbiddenError(ApiErrorCode.E_ADMIN_REQUIRED, "Admin access required")
    return actor


def _log_action(db: Session, admin: Viewer, action: AdminAction, details: str) -> None:
    db.add(AdminLog(admin_id=admin.user_id, action=action.value, details=details))


# =============================================================================
# Mutations
# =============================================================================


def set_featured(db: Session, admin: Viewer, clip_id: str, featured: bool) -> ClipOut:
    """Feature or unfeature a clip. Idempotent; every call is audited."""
    _require_admin(db, admin)
    with transaction(db):
        clip = get_clip(db, clip_id)
        apply_featured(db, clip, featured)
        action = AdminAction.FEATURE_CLIP if featured else AdminAction.UNFEATURE_CLIP
        _log_action(db, admin, action, f"Clip {clip.id} {'featured' if featured else 'unfeatured'}")

    logger.info("admin_set_featured clip_id=%s featured=%s", clip_id, featured)
    return clip_to_out(clip)


def bulk_delete_clips(
    db: Session, store: MediaStoreBase, admin: Viewer, clip_ids: list[str]
) -> int:
    """Delete many clips in one statement.

    Returns:
        Number of clips actually deleted. Unknown ids are ignored.

    Raises:
        InvalidRequestError(E_INVALID_REQUEST): Empty or non-list input.
    """
    if not isinstance(clip_ids, list) or not clip_ids:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "clip_ids must be a non-empty list")
    if not all(isinstance(cid, str) and cid for cid in clip_ids):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "clip_ids must be strings")

    _require_admin(db, admin)
    ids = list(dict.fromkeys(clip_ids))

    with transaction(db):
        matched = list(db.execute(select(Clip).where(Clip.id.in_(ids))).scalars())
        refs = media_refs(matched)
        matched_ids = [clip.id for clip in matched]
        count = delete_clips(db, matched_ids)
        _log_action(
            db,
            admin,
            AdminAction.BULK_DELETE_CLIPS,
            f"Deleted {count} clips: {', '.join(matched_ids)}",
        )

    delete_media_best_effort(store, refs)
    logger.info("admin_bulk_delete count=%d requested=%d", count, len(ids))
    return count


def set_user_banned(
    db: Session, admin: Viewer, user_id: str, banned: bool, reason: str | None = None
) -> AdminUserOut:
    """Ban or unban a user. Banned users are refused at sign-in and per request."""
    _require_admin(db, admin)
    with transaction(db):
        user = set_banned(db, user_id, banned, admin_id=admin.user_id, reason=reason)
        action = AdminAction.BAN_USER if banned else AdminAction.UNBAN_USER
        _log_action(db, admin, action, f"User {user.email} {'banned' if banned else 'unbanned'}")

    logger.info("admin_set_banned user_id=%s banned=%s", user_id, banned)
    return _admin_user_out(db, user)


def change_user_role(db: Session, admin: Viewer, user_id: str, role: str) -> AdminUserOut:
    """Change a user's role.

    Raises:
        InvalidRequestError(E_INVALID_ROLE): Role is not USER or ADMIN.
    """
    role = validate_role(role)
    _require_admin(db, admin)
    with transaction(db):
        user = set_role(db, user_id, role)
        _log_action(
            db, admin, AdminAction.CHANGE_ROLE, f"Role changed to {role} for user {user.email}"
        )

    logger.info("admin_change_role user_id=%s role=%s", user_id, role)
    return _admin_user_out(db, user)


def delete_user(db: Session, store: MediaStoreBase, admin: Viewer, user_id: str) -> None:
    """Delete a user together with their clips and comments.

    Ownerless clips are untouched. The user's clip media and profile images
    are deleted best-effort after the commit.
    """
    _require_admin(db, admin)
    with transaction(db):
        user = get_user(db, user_id)
        clips = list(db.execute(select(Clip).where(Clip.user_id == user.id)).scalars())
        refs = media_refs(clips) + [
            ref for ref in (user.profile_picture_ref, user.banner_image_ref) if ref
        ]
        email = user.email
        delete_clips(db, [clip.id for clip in clips])
        delete_user_record(db, user_id)
        _log_action(db, admin, AdminAction.DELETE_USER, f"User {email} deleted")

    delete_media_best_effort(store, refs)
    logger.info("admin_delete_user user_id=%s clips=%d", user_id, len(clips))


# =============================================================================
# Read side
# =============================================================================


def _admin_user_out(db: Session, user: User) -> AdminUserOut:
    clip_count = db.execute(
        select(func.count()).select_from(Clip).where(Clip.user_id == user.id)
    ).scalar_one()
    comment_count = db.execute(
        select(func.count()).select_from(Comment).where(Comment.user_id == user.id)
    ).scalar_one()
    return AdminUserOut(
        **user_to_out(user).model_dump(),
        clip_count=clip_count,
        comment_count=comment_count,
        ban_reason=user.ban.reason if user.ban is not None else None,
    )


def list_users(
    db: Session, *, search: str | None = None, role: str | None = None
) -> list[AdminUserOut]:
    """All users newest first, filtered by email/name substring and role."""
    query = select(User).options(selectinload(User.ban)).order_by(User.created_at.desc())

    term = (search or "").strip().lower()
    if term:
        query = query.where(
            or_(
                func.lower(User.email).contains(term, autoescape=True),
                func.lower(User.name).contains(term, autoescape=True),
            )
        )
    if role:
        query = query.where(User.role == validate_role(role))

    users = list(db.execute(query).scalars())
    if not users:
        return []

    ids = [u.id for u in users]
    clip_counts = dict(
        db.execute(
            select(Clip.user_id, func.count()).where(Clip.user_id.in_(ids)).group_by(Clip.user_id)
        ).all()
    )
    comment_counts = dict(
        db.execute(
            select(Comment.user_id, func.count())
            .where(Comment.user_id.in_(ids))
            .group_by(Comment.user_id)
        ).all()
    )
    return [
        AdminUserOut(
            **user_to_out(u).model_dump(),
            clip_count=clip_counts.get(u.id, 0),
            comment_count=comment_counts.get(u.id, 0),
            ban_reason=u.ban.reason if u.ban is not None else None,
        )
        for u in users
    ]


def list_all_clips(db: Session) -> list[ClipDetailOut]:
    """Every clip with its uploader, newest first."""
    clips = list_clips(db)
    counts = dict(
        db.execute(select(Comment.clip_id, func.count()).group_by(Comment.clip_id)).all()
    )
    return [clip_to_detail_out(clip, counts.get(clip.id, 0)) for clip in clips]


def get_stats(db: Session, now: datetime | None = None) -> AdminStatsOut:
    """Dashboard totals plus the ten most recent clips and users."""
    week_ago = (now or datetime.now(UTC)) - timedelta(days=7)

    total_users = db.execute(select(func.count()).select_from(User)).scalar_one()
    total_clips = db.execute(select(func.count()).select_from(Clip)).scalar_one()
    total_storage = db.execute(select(func.coalesce(func.sum(Clip.file_size), 0))).scalar_one()
    weekly_signups = db.execute(
        select(func.count()).select_from(User).where(User.created_at > week_ago)
    ).scalar_one()
    weekly_uploads = db.execute(
        select(func.count()).select_from(Clip).where(Clip.upload_date > week_ago)
    ).scalar_one()

    recent_users = db.execute(
        select(User).order_by(User.created_at.desc()).limit(RECENT_LIMIT)
    ).scalars()

    return AdminStatsOut(
        total_users=total_users,
        total_clips=total_clips,
        total_storage=int(total_storage),
        weekly_signups=weekly_signups,
        weekly_uploads=weekly_uploads,
        recent_clips=[clip_to_out(c) for c in list_clips(db, limit=RECENT_LIMIT)],
        recent_users=[user_to_out(u) for u in recent_users],
    )


def get_analytics(db: Session, now: datetime | None = None) -> AdminAnalyticsOut:
    """Upload trend, top uploaders, popular tags, storage use and recent actions."""
    window_start = (now or datetime.now(UTC)) - timedelta(days=ANALYTICS_WINDOW_DAYS)

    # Grouped in Python so day boundaries are identical on every backend
    upload_dates = db.execute(
        select(Clip.upload_date).where(Clip.upload_date > window_start)
    ).scalars()
    per_day = Counter(d.date() for d in upload_dates)
    uploads_by_day = [
        DailyCountOut(day=day, count=count) for day, count in sorted(per_day.items(), reverse=True)
    ]

    clip_count = func.count(Clip.id).label("clip_count")
    top_uploaders = [
        UploaderOut(user_id=uid, email=email, name=name, clip_count=n)
        for uid, email, name, n in db.execute(
            select(User.id, User.email, User.name, clip_count)
            .select_from(outerjoin(User, Clip, Clip.user_id == User.id))
            .group_by(User.id, User.email, User.name)
            .order_by(desc(clip_count), User.email)
            .limit(TOP_LIMIT)
        ).all()
    ]

    total_bytes = func.coalesce(func.sum(Clip.file_size), 0).label("total_bytes")
    storage_by_user = [
        StorageByUserOut(user_id=uid, email=email, total_bytes=int(n))
        for uid, email, n in db.execute(
            select(User.id, User.email, total_bytes)
            .select_from(outerjoin(User, Clip, Clip.user_id == User.id))
            .group_by(User.id, User.email)
            .order_by(desc(total_bytes), User.email)
            .limit(TOP_LIMIT)
        ).all()
    ]

    actions = db.execute(
        select(AdminLog, User.email)
        .outerjoin(User, User.id == AdminLog.admin_id)
        .order_by(AdminLog.timestamp.desc())
        .limit(RECENT_ACTIONS_LIMIT)
    ).all()

    return AdminAnalyticsOut(
        uploads_by_day=uploads_by_day,
        top_uploaders=top_uploaders,
        popular_tags=[TagCountOut(tag=t, count=n) for t, n in tag_counts(db, TOP_LIMIT)],
        storage_by_user=storage_by_user,
        recent_actions=[
            AdminActionOut(
                id=log.id,
                action=log.action,
                details=log.details,
                timestamp=log.timestamp,
                admin_id=log.admin_id,
                admin_email=email or SYSTEM_ACTOR,
            )
            for log, email in actions
        ],
    )
