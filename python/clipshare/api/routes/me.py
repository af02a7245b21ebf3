"""Current user endpoint.

Returns the authenticated viewer's own profile.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db
from clipshare.auth.middleware import Viewer, get_viewer
from clipshare.responses import success_response
from clipshare.services import users as users_service

router = APIRouter()


@router.get("/me")
def get_me(
    viewer: Annotated[Viewer, Depends(get_viewer)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Get the viewer's profile, clips and stats. Requires authentication."""
    result = users_service.get_me(db, viewer)
    return success_response(result.model_dump(mode="json"))
