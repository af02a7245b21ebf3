"""Initial schema - users, clips, tags, comments, moderation tables, media blobs

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Identifiers are 32-char hex strings generated by the application, so the
schema runs unchanged on PostgreSQL and SQLite.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    # ==========================================================================
    # users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(16), server_default="USER", nullable=False),
        sa.Column("banned", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("profile_picture_ref", sa.Text(), nullable=True),
        sa.Column("banner_image_ref", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("role IN ('USER', 'ADMIN')", name="ck_users_role"),
    )

    # ==========================================================================
    # clips table (user_id nullable: legacy clips may have no owner)
    # ==========================================================================
    op.create_table(
        "clips",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("video_ref", sa.Text(), nullable=False),
        sa.Column("thumbnail_ref", sa.Text(), nullable=True),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        _timestamp("upload_date"),
        sa.Column("featured", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("user_id", sa.String(32), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("file_size >= 0", name="ck_clips_file_size_nonnegative"),
    )
    op.create_index("ix_clips_upload_date", "clips", ["upload_date"])
    op.create_index("ix_clips_user_id", "clips", ["user_id"])

    # ==========================================================================
    # tags and ordered clip_tags join
    # ==========================================================================
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "clip_tags",
        sa.Column("clip_id", sa.String(32), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("clip_id", "tag_id"),
        sa.ForeignKeyConstraint(["clip_id"], ["clips.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
    )

    # ==========================================================================
    # comments table
    # ==========================================================================
    op.create_table(
        "comments",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("clip_id", sa.String(32), nullable=False),
        sa.Column("user_id", sa.String(32), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["clip_id"], ["clips.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("length(trim(content)) > 0", name="ck_comments_content_nonempty"),
    )
    op.create_index("ix_comments_clip_id", "comments", ["clip_id"])

    # ==========================================================================
    # moderation tables
    # ==========================================================================
    op.create_table(
        "featured_clips",
        sa.Column("clip_id", sa.String(32), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("clip_id"),
        sa.ForeignKeyConstraint(["clip_id"], ["clips.id"], ondelete="CASCADE"),
    )
    op.create_table(
        "user_bans",
        sa.Column("user_id", sa.String(32), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("admin_id", sa.String(32), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("user_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    # admin_id has no foreign key: audit rows outlive the admin account
    op.create_table(
        "admin_logs",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("admin_id", sa.String(32), nullable=True),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("details", sa.Text(), nullable=False),
        _timestamp("timestamp"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "action IN ('FEATURE_CLIP', 'UNFEATURE_CLIP', 'BULK_DELETE_CLIPS', "
            "'BAN_USER', 'UNBAN_USER', 'CHANGE_ROLE', 'DELETE_USER')",
            name="ck_admin_logs_action",
        ),
    )
    op.create_index("ix_admin_logs_admin_id", "admin_logs", ["admin_id"])
    op.create_index("ix_admin_logs_timestamp", "admin_logs", ["timestamp"])

    # ==========================================================================
    # media_blobs table (database media backend)
    # ==========================================================================
    op.create_table(
        "media_blobs",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("content_type", sa.Text(), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("data", sa.LargeBinary(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("media_blobs")
    op.drop_index("ix_admin_logs_timestamp", table_name="admin_logs")
    op.drop_index("ix_admin_logs_admin_id", table_name="admin_logs")
    op.drop_table("admin_logs")
    op.drop_table("user_bans")
    op.drop_table("featured_clips")
    op.drop_index("ix_comments_clip_id", table_name="comments")
    op.drop_table("comments")
    op.drop_table("clip_tags")
    op.drop_table("tags")
    op.drop_index("ix_clips_user_id", table_name="clips")
    op.drop_index("ix_clips_upload_date", table_name="clips")
    op.drop_table("clips")
    op.drop_table("users")
