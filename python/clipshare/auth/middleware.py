"""Authentication middleware for FastAPI.

Provides:
- AuthMiddleware: Global middleware for session token verification
- get_viewer: Dependency for accessing the authenticated viewer
- get_optional_viewer: Dependency for routes that also serve anonymous callers
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from clipshare.auth.verifier import TokenVerifier
from clipshare.errors import ApiError, ApiErrorCode
from clipshare.responses import error_response

logger = logging.getLogger(__name__)

# Header and cookie names
AUTHORIZATION_HEADER = "authorization"
SESSION_COOKIE = "clipshare_session"

# Paths that never look at credentials
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/auth/signup",
    "/auth/login",
    "/auth/logout",
}


@dataclass
class Viewer:
    """Authenticated viewer identity.

    Attributes:
        user_id: The viewer's user ID (from the token sub claim).
        role: Current role, read from the database on this request.
        banned: Current ban flag, read from the database on this request.
    """

    user_id: str
    role: str
    banned: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


ViewerLoader = Callable[[str], Viewer | None]


class AuthMiddleware(BaseHTTPMiddleware):
    """Authentication middleware for FastAPI.

    Order of checks:
    1. Skip if public path
    2. Extract token from Authorization header or session cookie
       (no credentials means an anonymous request)
    3. Verify token via TokenVerifier
    4. Load the viewer from the database via viewer_loader
    5. Refuse unknown (401) and banned (403) users
    6. Attach Viewer to request state
    """

    def __init__(
        self,
        app: ASGIApp,
        verifier: TokenVerifier,
        viewer_loader: ViewerLoader | None = None,
    ):
        """Initialize the auth middleware.

        Args:
            app: The ASGI application.
            verifier: TokenVerifier implementation for JWT verification.
            viewer_loader: Function(user_id) -> Viewer | None. Re-reads role and
                ban state so a token never carries authorization.
        """
        super().__init__(app)
        self.verifier = verifier
        self.viewer_loader = viewer_loader

    async def dispatch(self, request: Request, call_next) -> JSONResponse:
        """Process the request through auth checks."""
        request.state.viewer = None

        if request.url.path in PUBLIC_PATHS:
            return await call_next(request)

        token, error_response_obj = self._extract_token(request)
        if error_response_obj:
            return error_response_obj
        if token is None:
            return await call_next(request)

        try:
            payload = self.verifier.verify(token)
        except ApiError as e:
            return self._error_json_response(e.code, e.message, e.status_code)

        user_id = payload["sub"]

        if self.viewer_loader is None:
            viewer = Viewer(user_id=user_id, role="USER")
        else:
            try:
                viewer = self.viewer_loader(user_id)
            except Exception as e:
                logger.exception("Viewer load failed for user %s: %s", user_id, e)
                return self._error_json_response(
                    ApiErrorCode.E_INTERNAL,
                    "Internal server error",
                    500,
                )

        if viewer is None:
            logger.warning("auth_failure", extra={"reason": "unknown_user"})
            return self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Authentication required",
                401,
            )

        if viewer.banned:
            logger.warning("auth_failure", extra={"reason": "user_banned"})
            return self._error_json_response(
                ApiErrorCode.E_USER_BANNED,
                "Account is banned",
                403,
            )

        request.state.viewer = viewer

        return await call_next(request)

    def _extract_token(self, request: Request) -> tuple[str | None, JSONResponse | None]:
        """Extract the session token from the Authorization header or cookie.

        Returns:
            Tuple of (token, error_response). Token is None when the request
            carries no credentials at all.
        """
        auth_header = request.headers.get(AUTHORIZATION_HEADER)

        if auth_header is None:
            return request.cookies.get(SESSION_COOKIE) or None, None

        # Check for Bearer prefix (case-insensitive)
        token = auth_header[7:].strip() if auth_header.lower().startswith("bearer ") else ""

        if not token:
            logger.warning(
                "auth_failure",
                extra={
                    "reason": "invalid_header_format",
                    "request_path": request.url.path,
                },
            )
            return None, self._error_json_response(
                ApiErrorCode.E_UNAUTHENTICATED,
                "Invalid authorization header format",
                401,
            )

        return token, None

    def _error_json_response(
        self, code: ApiErrorCode, message: str, status_code: int
    ) -> JSONResponse:
        """Create a JSON error response."""
        return JSONResponse(
            status_code=status_code,
            content=error_response(code, message),
        )


def get_viewer(request: Request) -> Viewer:
    """FastAPI dependency to get the authenticated viewer.

    Raises:
        ApiError(E_UNAUTHENTICATED): If the request is anonymous.
    """
    viewer = getattr(request.state, "viewer", None)
    if viewer is None:
        raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Authentication required")
    return viewer


def get_optional_viewer(request: Request) -> Viewer | None:
    """FastAPI dependency returning the viewer, or None for anonymous requests."""
    return getattr(request.state, "viewer", None)


def require_admin(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    """FastAPI dependency that only admits admins.

    Raises:
        ApiError(E_ADMIN_REQUIRED): If the viewer's current role is not ADMIN.
    """
    if not viewer.is_admin:
        raise ApiError(ApiErrorCode.E_ADMIN_REQUIRED, "Admin access required")
    return viewer


# Type alias for dependency injection
ViewerDep = Depends(get_viewer)
