"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, auth middleware, request-id middleware, and routes.

Shared resources (created once per app, stored on app.state):
- media_store: the MediaStoreBase selected by MEDIA_BACKEND
- token_issuer: SessionTokenIssuer used at sign-in

Middleware Ordering (Critical):
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures all requests (including auth failures) get X-Request-ID

Actual execution order per request:
1. RequestIDMiddleware (sets request_id, starts timer)
2. AuthMiddleware (verifies session, loads viewer role/ban state)
3. Route handler
4. RequestIDMiddleware (logs, sets response header)
"""

from collections.abc import Generator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.orm import Session, sessionmaker

from clipshare.api.routes import create_api_router
from clipshare.auth.middleware import AuthMiddleware, Viewer
from clipshare.auth.verifier import SessionJwtVerifier, SessionTokenIssuer, TokenVerifier
from clipshare.config import get_settings
from clipshare.db.session import get_db, get_session_factory
from clipshare.logging import configure_logging, get_logger
from clipshare.middleware.request_id import RequestIDMiddleware
from clipshare.responses import register_exception_handlers
from clipshare.services.bootstrap import ensure_bootstrap_admin
from clipshare.services.users import load_viewer
from clipshare.storage.client import MediaStoreBase, get_media_store

# Configure structured logging at import time
configure_logging()

logger = get_logger(__name__)


def create_viewer_loader(session_factory: sessionmaker[Session]):
    """Create a viewer loader that opens its own database session.

    Called by the auth middleware on every authenticated request so role and
    ban state always come from the database.
    """

    def load(user_id: str) -> Viewer | None:
        db = session_factory()
        try:
            return load_viewer(db, user_id)
        finally:
            db.close()

    return load


def run_admin_bootstrap(session_factory: sessionmaker[Session]) -> None:
    """Seed the configured admin account, if any."""
    settings = get_settings()
    if not settings.admin_bootstrap_enabled:
        return
    db = session_factory()
    try:
        ensure_bootstrap_admin(
            db,
            settings.admin_bootstrap_email,  # type: ignore[arg-type]
            settings.admin_bootstrap_password,  # type: ignore[arg-type]
            settings.admin_bootstrap_name,
        )
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run startup tasks: admin bootstrap."""
    run_admin_bootstrap(app.state.session_factory)
    logger.info("startup_complete", media_store=type(app.state.media_store).__name__)
    yield


def create_app(
    skip_auth_middleware: bool = False,
    token_verifier: TokenVerifier | None = None,
    media_store: MediaStoreBase | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        skip_auth_middleware: If True, skip adding auth middleware (for testing).
        token_verifier: Optional custom token verifier (for testing).
        media_store: Optional media store. Built from settings if None.
        session_factory: Optional session factory. The default engine's
            factory is used if None; when given, get_db is bound to it.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="ClipShare API",
        description="Backend API for ClipShare - a video clip sharing service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if session_factory is None:
        session_factory = get_session_factory()
    else:
        bound_factory = session_factory

        def get_bound_db() -> Generator[Session, None, None]:
            db = bound_factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = get_bound_db

    app.state.session_factory = session_factory
    app.state.media_store = media_store or get_media_store(settings, session_factory)
    app.state.token_issuer = SessionTokenIssuer.from_settings(settings)

    register_exception_handlers(app)

    app.include_router(create_api_router())

    if not skip_auth_middleware:
        app.add_middleware(
            AuthMiddleware,
            verifier=token_verifier or SessionJwtVerifier.from_settings(settings),
            viewer_loader=create_viewer_loader(session_factory),
        )
        logger.info("auth_middleware_enabled", env=settings.clipshare_env.value)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.
    This ensures every response includes X-Request-ID, including auth failures.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
