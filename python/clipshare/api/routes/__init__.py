"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from clipshare.api.routes.admin import router as admin_router
from clipshare.api.routes.auth import router as auth_router
from clipshare.api.routes.clips import router as clips_router
from clipshare.api.routes.comments import router as comments_router
from clipshare.api.routes.health import router as health_router
from clipshare.api.routes.me import router as me_router
from clipshare.api.routes.tags import router as tags_router
from clipshare.api.routes.upload import router as upload_router
from clipshare.api.routes.users import router as users_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router, tags=["auth"])
    api_router.include_router(me_router, tags=["user"])
    api_router.include_router(users_router, tags=["user"])
    api_router.include_router(upload_router, tags=["clips"])
    api_router.include_router(clips_router, tags=["clips"])
    api_router.include_router(comments_router, tags=["comments"])
    api_router.include_router(tags_router, tags=["tags"])
    api_router.include_router(admin_router, tags=["admin"])
    return api_router


__all__ = ["create_api_router"]
