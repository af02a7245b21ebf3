"""Clip feed, detail, delete and byte-serving routes.

Routes are transport-only:
- Call exactly one service function
- Return success(...) or raise ApiError

The video and thumbnail endpoints return raw bytes (or a redirect), not
the JSON envelope.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db, get_media_store
from clipshare.auth.middleware import Viewer, get_viewer
from clipshare.responses import success_response
from clipshare.services import clips as clips_service
from clipshare.services.media import MediaPayload
from clipshare.storage.client import MediaStoreBase

router = APIRouter()

VIDEO_CACHE_CONTROL = "public, max-age=3600"


def media_response(payload: MediaPayload, cache_control: str | None = None) -> Response:
    """Turn a MediaPayload into a bytes response or a 307 redirect."""
    if payload.redirect_url is not None:
        return RedirectResponse(payload.redirect_url, status_code=307)
    headers = {"Cache-Control": cache_control} if cache_control else None
    return Response(content=payload.data, media_type=payload.content_type, headers=headers)


@router.get("/clips")
def list_clips(
    db: Annotated[Session, Depends(get_db)],
    search: Annotated[str | None, Query(max_length=200, description="Title or tag substring")] = None,
    tag: Annotated[str | None, Query(max_length=64, description="Exact tag")] = None,
    featured: Annotated[bool | None, Query(description="Filter on featured flag")] = None,
    limit: Annotated[int | None, Query(ge=1, description="Maximum results")] = None,
    offset: Annotated[int, Query(ge=0, description="Results to skip")] = 0,
) -> dict:
    """Public feed, newest first."""
    result = clips_service.list_clips_out(
        db, search=search, tag=tag, featured=featured, limit=limit, offset=offset
    )
    return success_response([c.model_dump(mode="json") for c in result])


@router.get("/clips/{clip_id}")
def get_clip(
    clip_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Clip metadata with uploader info."""
    result = clips_service.get_clip_detail(db, clip_id)
    return success_response(result.model_dump(mode="json"))


@router.delete("/clips/{clip_id}")
def delete_clip(
    clip_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> dict:
    """Delete a clip. Owner or admin only."""
    clips_service.delete_clip_for_viewer(db, store, viewer, clip_id)
    return success_response({"success": True})


@router.get("/clips/{clip_id}/video")
def get_clip_video(
    clip_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> Response:
    """Stream the stored video bytes."""
    payload = clips_service.read_clip_video(db, store, clip_id)
    return media_response(payload, VIDEO_CACHE_CONTROL)


@router.get("/clips/{clip_id}/thumbnail")
def get_clip_thumbnail(
    clip_id: str,
    db: Annotated[Session, Depends(get_db)],
    store: Annotated[MediaStoreBase, Depends(get_media_store)],
) -> Response:
    """Thumbnail bytes, or a 307 to the placeholder image."""
    payload = clips_service.read_clip_thumbnail(db, store, clip_id)
    return media_response(payload, VIDEO_CACHE_CONTROL)
