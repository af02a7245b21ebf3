"""SQLAlchemy ORM models for ClipShare.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Enum-valued columns are stored as text with CHECK constraints so the schema
behaves identically on PostgreSQL and SQLite.
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    false,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def new_id() -> str:
    """Generate an opaque 32-char hex identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class UserRole(str, PyEnum):
    """Site-wide roles."""

    USER = "USER"
    ADMIN = "ADMIN"


class AdminAction(str, PyEnum):
    """Audit log action tags, one per moderation operation."""

    FEATURE_CLIP = "FEATURE_CLIP"
    UNFEATURE_CLIP = "UNFEATURE_CLIP"
    BULK_DELETE_CLIPS = "BULK_DELETE_CLIPS"
    BAN_USER = "BAN_USER"
    UNBAN_USER = "UNBAN_USER"
    CHANGE_ROLE = "CHANGE_ROLE"
    DELETE_USER = "DELETE_USER"


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """User account model.

    Only the bcrypt hash of the password is stored. Image columns hold a
    media store reference (or an external URL) rather than bytes.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(
        String(16), nullable=False, default=UserRole.USER.value, server_default="USER"
    )
    banned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    profile_picture_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    banner_image_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        CheckConstraint("role IN ('USER', 'ADMIN')", name="ck_users_role"),
    )

    # Relationships
    clips: Mapped[list["Clip"]] = relationship(
        "Clip", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    ban: Mapped["UserBan | None"] = relationship(
        "UserBan", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class Clip(Base):
    """Uploaded video clip.

    user_id is nullable: legacy clips may have no owner.
    """

    __tablename__ = "clips"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    video_ref: Mapped[str] = mapped_column(Text, nullable=False)
    thumbnail_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    user_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )

    __table_args__ = (
        CheckConstraint("file_size >= 0", name="ck_clips_file_size_nonnegative"),
    )

    # Relationships
    user: Mapped["User | None"] = relationship("User", back_populates="clips")
    clip_tags: Mapped[list["ClipTag"]] = relationship(
        "ClipTag",
        back_populates="clip",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ClipTag.position",
    )
    comments: Mapped[list["Comment"]] = relationship(
        "Comment", back_populates="clip", cascade="all, delete-orphan", passive_deletes=True
    )
    featured_marker: Mapped["FeaturedClip | None"] = relationship(
        "FeaturedClip",
        back_populates="clip",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def tag_names(self) -> list[str]:
        return [ct.tag.name for ct in self.clip_tags]


class Tag(Base):
    """Normalized tag (lowercase, trimmed)."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class ClipTag(Base):
    """Ordered clip <-> tag association."""

    __tablename__ = "clip_tags"

    clip_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("clips.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    clip: Mapped["Clip"] = relationship("Clip", back_populates="clip_tags")
    tag: Mapped["Tag"] = relationship("Tag", lazy="joined")


class Comment(Base):
    """Comment on a clip."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    clip_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("clips.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        CheckConstraint("length(trim(content)) > 0", name="ck_comments_content_nonempty"),
    )

    clip: Mapped["Clip"] = relationship("Clip", back_populates="comments")
    user: Mapped["User"] = relationship("User", back_populates="comments")


class FeaturedClip(Base):
    """Marker row mirroring Clip.featured == true."""

    __tablename__ = "featured_clips"

    clip_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("clips.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    clip: Mapped["Clip"] = relationship("Clip", back_populates="featured_marker")


class UserBan(Base):
    """Ban detail row mirroring User.banned == true."""

    __tablename__ = "user_bans"

    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    admin_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped["User"] = relationship("User", back_populates="ban")


class AdminLog(Base):
    """Append-only audit log of moderation actions.

    admin_id is intentionally not a foreign key: rows outlive the admin account.
    """

    __tablename__ = "admin_logs"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    admin_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    __table_args__ = (
        CheckConstraint(
            "action IN ('FEATURE_CLIP', 'UNFEATURE_CLIP', 'BULK_DELETE_CLIPS', "
            "'BAN_USER', 'UNBAN_USER', 'CHANGE_ROLE', 'DELETE_USER')",
            name="ck_admin_logs_action",
        ),
    )


class MediaBlob(Base):
    """Inline media bytes for the database storage backend."""

    __tablename__ = "media_blobs"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(Text, nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
