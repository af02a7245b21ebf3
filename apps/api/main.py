"""Uvicorn entrypoint for the ClipShare API.

Run from this directory with the package installed:
    uvicorn main:app --reload

Settings are read when this module is imported, so DATABASE_URL (and, in
staging/prod, SESSION_SECRET) must be set in the environment or a .env file.
Importing clipshare.app alone has no such requirement.
"""

from clipshare.app import add_request_id_middleware, create_app

app = create_app()
# Request-id middleware is registered last so it wraps auth
add_request_id_middleware(app)

__all__ = ["app"]
