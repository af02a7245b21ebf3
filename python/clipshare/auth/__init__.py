"""Authentication and authorization module.

This module provides:
- Session token issuance and verification
- Password hashing
- Auth middleware for FastAPI
- Request state with viewer identity
"""

from clipshare.auth.middleware import (
    AuthMiddleware,
    Viewer,
    get_optional_viewer,
    get_viewer,
    require_admin,
)
from clipshare.auth.verifier import SessionJwtVerifier, SessionTokenIssuer, TokenVerifier

__all__ = [
    "AuthMiddleware",
    "Viewer",
    "get_viewer",
    "get_optional_viewer",
    "require_admin",
    "SessionJwtVerifier",
    "SessionTokenIssuer",
    "TokenVerifier",
]
