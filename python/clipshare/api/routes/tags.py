"""Tag routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db
from clipshare.responses import success_response
from clipshare.services import clips as clips_service

router = APIRouter()


@router.get("/tags/trending")
def trending_tags(
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> dict:
    """Most used tags, highest count first."""
    result = clips_service.trending_tags(db, limit=limit)
    return success_response([t.model_dump(mode="json") for t in result])
