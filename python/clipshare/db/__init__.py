"""Database module for ClipShare.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from clipshare.db.engine import create_db_engine, get_engine
from clipshare.db.models import (
    AdminAction,
    AdminLog,
    Base,
    Clip,
    ClipTag,
    Comment,
    FeaturedClip,
    MediaBlob,
    Tag,
    User,
    UserBan,
    UserRole,
)
from clipshare.db.session import get_db, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "get_db",
    "transaction",
    # Base
    "Base",
    # Enums
    "UserRole",
    "AdminAction",
    # Models
    "User",
    "Clip",
    "Tag",
    "ClipTag",
    "Comment",
    "FeaturedClip",
    "UserBan",
    "AdminLog",
    "MediaBlob",
]
