"""Public profile and profile settings routes.

IMPORTANT: /user/settings must be registered BEFORE /user/{user_id} so the
static segment is not captured as a user id.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db, get_media_store
from clipshare.api.routes.clips import media_response
from clipshare.auth.middleware import Viewer, get_optional_viewer, get_viewer
from clipshare.config import get_settings
from clipshare.responses import success_response
from clipshare.services import users as users_service
from clipshare.services.upload import read_upload_limited
from clipshare.storage.client import MediaStoreBase

router = APIRouter()

IMAGE_CACHE_CONTROL = "public, max-age=300"


def _image_upload(upload: UploadFile | None) -> users_service.ImageUpload | None:
    if upload is None:
        return None
    data = read_upload_limited(upload.file, get_settings().max_upload_bytes)
    if not data:
        return None
    return users_service.ImageUpload(data=data, file_name=upload.filename or "image")


@router.post("/user/settings")
def update_settings(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
    name: Annotated[str | None, Form(max_length=100)] = None,
    display_name: Annotated[str | None, Form(max_length=100)] = None,
    bio: Annotated[str | None, Form(max_length=1000)] = None,
    profile_picture: Annotated[UploadFile | None, File()] = None,
    banner_image: Annotated[UploadFile | None, File()] = None,
) -> dict:
    """Update the viewer's own profile (multipart form)."""
    result = users_service.update_settings(
        db,
        store,
        viewer,
        name=name,
        display_name=display_name,
        bio=bio,
        profile_picture=_image_upload(profile_picture),
        banner_image=_image_upload(banner_image),
    )
    return success_response(result.model_dump(mode="json"))


@router.get("/user/{user_id}")
def get_profile(
    user_id: str,
    viewer: Annotated[Viewer | None, Depends(get_optional_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Public profile with clips and stats."""
    result = users_service.get_profile(db, user_id, viewer)
    return success_response(result.model_dump(mode="json"))


@router.get("/user/{user_id}/avatar")
def get_avatar(
    user_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> Response:
    payload = users_service.read_profile_image(db, store, user_id, "avatar")
    return media_response(payload, IMAGE_CACHE_CONTROL)


@router.get("/user/{user_id}/banner")
def get_banner(
    user_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> Response:
    payload = users_service.read_profile_image(db, store, user_id, "banner")
    return media_response(payload, IMAGE_CACHE_CONTROL)
