"""Authorization predicates for ownership and moderation.

These predicates are the single source of truth for who may mutate what.
They return booleans only; callers decide which error to raise.

Rules:
- A clip may be deleted by its owner or by an admin. Ownerless legacy
  clips may only be deleted by an admin.
- A comment may be deleted by its author or by an admin.
- Moderation requires the viewer's current role to be ADMIN.
"""

from clipshare.auth.middleware import Viewer
from clipshare.db.models import Clip, Comment


def is_admin(viewer: Viewer | None) -> bool:
    return viewer is not None and viewer.is_admin


def can_delete_clip(viewer: Viewer | None, clip: Clip) -> bool:
    """Owner-or-admin check for clip deletion."""
    if viewer is None:
        return False
    if viewer.is_admin:
        return True
    return clip.user_id is not None and clip.user_id == viewer.user_id


def can_delete_comment(viewer: Viewer | None, comment: Comment) -> bool:
    """Author-or-admin check for comment deletion."""
    if viewer is None:
        return False
    return viewer.is_admin or comment.user_id == viewer.user_id
