"""Clip comment routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db
from clipshare.auth.middleware import Viewer, get_viewer
from clipshare.responses import success_response
from clipshare.schemas.comment import CreateCommentRequest
from clipshare.services import comments as comments_service

router = APIRouter()


@router.get("/clips/{clip_id}/comments")
def list_comments(
    clip_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = comments_service.list_comments(db, clip_id)
    return success_response([c.model_dump(mode="json") for c in result])


@router.post("/clips/{clip_id}/comments", status_code=201)
def add_comment(
    clip_id: str,
    body: CreateCommentRequest,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    result = comments_service.add_comment(db, viewer, clip_id, body.content)
    return success_response(result.model_dump(mode="json"))


@router.delete("/clips/{clip_id}/comments/{comment_id}")
def delete_comment(
    clip_id: str,
    comment_id: str,
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Delete a comment. Author or admin only."""
    comments_service.delete_comment(db, viewer, clip_id, comment_id)
    return success_response({"success": True})
