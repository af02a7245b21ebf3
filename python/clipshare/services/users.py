"""User & session repository and profile service layer.

Repository primitives (update_user, delete_user_record, set_role,
set_banned) flush but never commit; callers own the transaction.
create_user, authenticate and update_settings are complete operations.

Key invariants:
- Emails are stored trimmed and lowercased, and are unique
- Only the bcrypt hash of a password is persisted
- User.banned and the UserBan row change together
"""

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clipshare.auth.middleware import Viewer
from clipshare.auth.passwords import hash_password, verify_password
from clipshare.config import get_settings
from clipshare.db.models import User, UserBan, UserRole, utcnow
from clipshare.db.session import insert_for, transaction
from clipshare.errors import (
    ApiError,
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    UnauthenticatedError,
)
from clipshare.schemas.clip import ProfileOut
from clipshare.schemas.user import ProfileStatsOut, UserOut
from clipshare.services.clips import list_clips
from clipshare.services.media import (
    MediaPayload,
    delete_media_best_effort,
    read_media,
    sniff_image_type,
    write_media,
)
from clipshare.services.presenters import clip_to_out, user_to_out
from clipshare.storage.client import MediaStoreBase

logger = logging.getLogger(__name__)

DEFAULT_BAN_REASON = "Banned by admin"

PROFILE_IMAGE_KINDS = {"avatar": "avatars", "banner": "banners"}

UPDATABLE_FIELDS = frozenset(
    {"name", "display_name", "bio", "profile_picture_ref", "banner_image_ref"}
)


@dataclass(frozen=True)
class ImageUpload:
    """An image file received with a settings form."""

    data: bytes
    file_name: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_role(role: str) -> str:
    """Return role unchanged if it is exactly one of the role values.

    Matching is case-sensitive; "admin" or " ADMIN " are rejected.

    Raises:
        InvalidRequestError(E_INVALID_ROLE): If role is not USER or ADMIN.
    """
    try:
        return UserRole(role).value
    except ValueError as e:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_ROLE, f"Invalid role '{role}'. Expected USER or ADMIN."
        ) from e


# =============================================================================
# Repository primitives
# =============================================================================


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.execute(
        select(User).where(User.email == normalize_email(email))
    ).scalar_one_or_none()


def get_user(db: Session, user_id: str) -> User:
    """Load a user by id.

    Raises:
        NotFoundError(E_USER_NOT_FOUND): If no such user exists.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")
    return user


def create_user(
    db: Session,
    *,
    email: str,
    name: str | None,
    password: str,
    role: str = UserRole.USER.value,
) -> User:
    """Create an account.

    Raises:
        InvalidRequestError(E_PASSWORD_TOO_SHORT): Password below the minimum length.
        ConflictError(E_EMAIL_TAKEN): Email already registered. No row is written.
    """
    min_length = get_settings().min_password_length
    if len(password) < min_length:
        raise InvalidRequestError(
            ApiErrorCode.E_PASSWORD_TOO_SHORT,
            f"Password must be at least {min_length} characters",
        )

    email = normalize_email(email)
    if get_user_by_email(db, email) is not None:
        raise ConflictError(ApiErrorCode.E_EMAIL_TAKEN, "Email already registered")

    user = User(
        email=email,
        name=(name or "").strip() or None,
        password_hash=hash_password(password),
        role=validate_role(role),
    )
    try:
        with transaction(db):
            db.add(user)
    except IntegrityError as e:
        # Lost a race with a concurrent signup
        raise ConflictError(ApiErrorCode.E_EMAIL_TAKEN, "Email already registered") from e

    logger.info("user_created user_id=%s role=%s", user.id, user.role)
    return user


def update_user(db: Session, user_id: str, **fields) -> User:
    """Partially update profile fields. Does not commit.

    Raises:
        InvalidRequestError: If an unknown field is passed.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST, f"Unknown fields: {', '.join(sorted(unknown))}"
        )
    user = get_user(db, user_id)
    for key, value in fields.items():
        setattr(user, key, value)
    db.flush()
    return user


def delete_user_record(db: Session, user_id: str) -> None:
    """Delete a user row; clips, comments and the ban row cascade."""
    db.delete(get_user(db, user_id))
    db.flush()


def set_role(db: Session, user_id: str, role: str) -> User:
    """Change a user's role. Does not commit."""
    user = get_user(db, user_id)
    user.role = validate_role(role)
    db.flush()
    return user


def set_banned(
    db: Session,
    user_id: str,
    banned: bool,
    *,
    admin_id: str | None,
    reason: str | None = None,
) -> User:
    """Toggle the ban flag and keep the UserBan row in step. Does not commit.

    The ban row is upserted so two admins banning the same user at once
    both succeed; the later commit's reason wins.
    """
    user = get_user(db, user_id)
    user.banned = banned
    db.flush()
    if banned:
        reason = (reason or "").strip() or DEFAULT_BAN_REASON
        stmt = insert_for(db, UserBan).values(user_id=user.id, reason=reason, admin_id=admin_id)
        db.execute(
            stmt.on_conflict_do_update(
                index_elements=["user_id"],
                set_={"reason": reason, "admin_id": admin_id, "updated_at": utcnow()},
            )
        )
    else:
        db.execute(
            delete(UserBan)
            .where(UserBan.user_id == user.id)
            .execution_options(synchronize_session=False)
        )
    db.expire_all()
    return user


# =============================================================================
# Sessions
# =============================================================================


def authenticate(db: Session, email: str, password: str) -> User:
    """Check credentials at sign-in.

    Raises:
        UnauthenticatedError(E_INVALID_CREDENTIALS): Unknown email or wrong password.
        ApiError(E_USER_BANNED): Correct credentials for a banned account.
    """
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("auth_failure", extra={"reason": "invalid_credentials"})
        raise UnauthenticatedError(ApiErrorCode.E_INVALID_CREDENTIALS, "Invalid email or password")
    if user.banned:
        logger.warning("auth_failure", extra={"reason": "user_banned"})
        raise ApiError(ApiErrorCode.E_USER_BANNED, "Account is banned")
    return user


def load_viewer(db: Session, user_id: str) -> Viewer | None:
    """Build a Viewer from current database state, or None if the user is gone."""
    user = db.get(User, user_id)
    if user is None:
        return None
    return Viewer(user_id=user.id, role=user.role, banned=user.banned)


# =============================================================================
# Profiles
# =============================================================================


def get_profile(db: Session, user_id: str, viewer: Viewer | None = None) -> ProfileOut:
    """Public profile: user, their clips newest first, and stats.

    Email and ban state are only included for the user themselves or an admin.
    """
    user = get_user(db, user_id)
    include_private = viewer is not None and (viewer.user_id == user.id or viewer.is_admin)
    clips = list_clips(db, user_id=user.id)
    return ProfileOut(
        user=user_to_out(user, include_private=include_private),
        clips=[clip_to_out(clip) for clip in clips],
        stats=ProfileStatsOut(total_uploads=len(clips), join_date=user.created_at),
    )


def get_me(db: Session, viewer: Viewer) -> ProfileOut:
    return get_profile(db, viewer.user_id, viewer)


def update_settings(
    db: Session,
    store: MediaStoreBase,
    viewer: Viewer,
    *,
    name: str | None = None,
    display_name: str | None = None,
    bio: str | None = None,
    profile_picture: ImageUpload | None = None,
    banner_image: ImageUpload | None = None,
) -> UserOut:
    """Update the viewer's own profile.

    New images are written first; if the row update fails they are removed
    again. Replaced images are deleted best-effort after the commit.
    """
    user = get_user(db, viewer.user_id)
    fields: dict[str, str | None] = {}
    if name is not None:
        fields["name"] = name.strip() or None
    if display_name is not None:
        fields["display_name"] = display_name.strip() or None
    if bio is not None:
        fields["bio"] = bio.strip() or None

    new_refs: list[str] = []
    replaced: list[str | None] = []
    for column, kind, image in (
        ("profile_picture_ref", "avatars", profile_picture),
        ("banner_image_ref", "banners", banner_image),
    ):
        if image is None or not image.data:
            continue
        ref = write_media(
            store,
            image.data,
            image.file_name,
            content_type=sniff_image_type(image.data),
            kind=kind,
        )
        new_refs.append(ref)
        replaced.append(getattr(user, column))
        fields[column] = ref

    try:
        with transaction(db):
            user = update_user(db, user.id, **fields)
    except Exception:
        delete_media_best_effort(store, new_refs)
        raise

    delete_media_best_effort(store, replaced)
    return user_to_out(user)


def read_profile_image(
    db: Session, store: MediaStoreBase, user_id: str, kind: str
) -> MediaPayload:
    """Fetch a user's avatar or banner.

    Raises:
        NotFoundError: E_USER_NOT_FOUND, or E_MEDIA_MISSING when unset or gone.
    """
    if kind not in PROFILE_IMAGE_KINDS:
        raise NotFoundError(ApiErrorCode.E_NOT_FOUND, "Not found")
    user = get_user(db, user_id)
    ref = user.profile_picture_ref if kind == "avatar" else user.banner_image_ref
    if not ref:
        raise NotFoundError(ApiErrorCode.E_MEDIA_MISSING, "No image set")
    payload = read_media(store, ref, content_type="application/octet-stream")
    if payload.data is None:
        return payload
    return MediaPayload(data=payload.data, content_type=sniff_image_type(payload.data))
