"""Admin dashboard and moderation routes.

Every route depends on require_admin, which checks the viewer's role as
re-read from the database for this request. Services re-check it inside
the mutation.

IMPORTANT: /admin/clips/bulk-delete must be registered BEFORE
/admin/clips/{clip_id}/... routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db, get_media_store
from clipshare.auth.middleware import Viewer, require_admin
from clipshare.responses import success_response
from clipshare.schemas.admin import BulkDeleteOut, BulkDeleteRequest, FeatureClipRequest
from clipshare.schemas.user import BanUserRequest, ChangeRoleRequest, DeleteUserRequest
from clipshare.services import moderation as moderation_service
from clipshare.storage.client import MediaStoreBase

router = APIRouter(prefix="/admin")


# =============================================================================
# Dashboard reads
# =============================================================================


@router.get("/stats")
def get_stats(
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = moderation_service.get_stats(db)
    return success_response(result.model_dump(mode="json"))


@router.get("/analytics")
def get_analytics(
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = moderation_service.get_analytics(db)
    return success_response(result.model_dump(mode="json"))


@router.get("/users")
def list_users(
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    search: Annotated[str | None, Query(max_length=200)] = None,
    role: Annotated[str | None, Query(max_length=16)] = None,
) -> dict:
    """All users, optionally filtered by email/name substring and role."""
    result = moderation_service.list_users(db, search=search, role=role)
    return success_response([u.model_dump(mode="json") for u in result])


@router.get("/clips")
def list_clips(
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = moderation_service.list_all_clips(db)
    return success_response([c.model_dump(mode="json") for c in result])


# =============================================================================
# User moderation
# =============================================================================


@router.delete("/users")
def delete_user(
    body: DeleteUserRequest,
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> dict:
    """Delete a user with their clips and comments."""
    moderation_service.delete_user(db, store, admin, body.user_id)
    return success_response({"success": True})


@router.post("/users/{user_id}/ban")
def set_user_banned(
    user_id: str,
    body: BanUserRequest,
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = moderation_service.set_user_banned(db, admin, user_id, body.banned, body.reason)
    return success_response(result.model_dump(mode="json"))


@router.post("/users/{user_id}/role")
def change_user_role(
    user_id: str,
    body: ChangeRoleRequest,
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = moderation_service.change_user_role(db, admin, user_id, body.role)
    return success_response(result.model_dump(mode="json"))


# =============================================================================
# Clip moderation
# =============================================================================


@router.post("/clips/bulk-delete")
def bulk_delete_clips(
    body: BulkDeleteRequest,
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> dict:
    count = moderation_service.bulk_delete_clips(db, store, admin, body.clip_ids)
    return success_response(BulkDeleteOut(count=count).model_dump(mode="json"))


@router.post("/clips/{clip_id}/feature")
def set_featured(
    clip_id: str,
    body: FeatureClipRequest,
    admin: Annotated[Viewer, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = moderation_service.set_featured(db, admin, clip_id, body.featured)
    return success_response(result.model_dump(mode="json"))
