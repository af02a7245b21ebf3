"""FastAPI dependencies for route handlers.

Common dependencies like database sessions and the media store.
"""

from fastapi import Request

from clipshare.db.session import get_db, get_session_factory
from clipshare.storage.client import MediaStoreBase

__all__ = ["get_db", "get_media_store", "get_session_factory", "get_token_issuer"]


def get_media_store(request: Request) -> MediaStoreBase:
    """Get the media store created at app startup."""
    return request.app.state.media_store


def get_token_issuer(request: Request):
    """Get the session token issuer created at app startup."""
    return request.app.state.token_issuer
