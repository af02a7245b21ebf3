"""Clip upload route.

Multipart form fields:
- file: the video (required)
- title: optional, defaults to the file name
- tags: optional comma-delimited string
- thumbnail: optional image
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db, get_media_store
from clipshare.auth.middleware import Viewer, get_viewer
from clipshare.config import get_settings
from clipshare.responses import success_response
from clipshare.schemas.clip import UploadResultOut
from clipshare.services import upload as upload_service
from clipshare.storage.client import MediaStoreBase

router = APIRouter()


@router.post("/upload", status_code=201)
def upload_clip(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    thumbnail: Annotated[UploadFile | None, File()] = None,
) -> dict:
    """Upload a clip. Oversized files are rejected while streaming."""
    max_bytes = get_settings().max_upload_bytes

    video = None
    if file is not None:
        video = upload_service.read_upload_limited(file.file, max_bytes)

    thumbnail_bytes = None
    if thumbnail is not None:
        thumbnail_bytes = upload_service.read_upload_limited(thumbnail.file, max_bytes) or None

    clip = upload_service.upload_clip(
        db,
        store,
        actor_id=viewer.user_id,
        video=video,
        video_name=file.filename if file is not None else None,
        size_bytes=file.size if file is not None else None,
        title=title,
        tags=tags,
        thumbnail=thumbnail_bytes,
        thumbnail_name=thumbnail.filename if thumbnail is not None else None,
    )
    return success_response(UploadResultOut(clip_id=clip.id).model_dump(mode="json"))
