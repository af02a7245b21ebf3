"""Business logic services.

This module contains service-layer functions that implement business logic.
Services are called by route handlers and orchestrate database and media
store operations.
"""

from clipshare.services.bootstrap import ensure_bootstrap_admin
from clipshare.services.clips import get_clip, list_clips
from clipshare.services.upload import upload_clip
from clipshare.services.users import authenticate, create_user, load_viewer

__all__ = [
    "ensure_bootstrap_admin",
    "get_clip",
    "list_clips",
    "upload_clip",
    "authenticate",
    "create_user",
    "load_viewer",
]
