"""Sign-up, sign-in and sign-out routes.

Routes are transport-only:
- Call exactly one service function
- Return success(...) or raise ApiError
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from clipshare.api.deps import get_db, get_token_issuer
from clipshare.auth.middleware import SESSION_COOKIE
from clipshare.auth.verifier import SessionTokenIssuer
from clipshare.config import get_settings
from clipshare.responses import success_response
from clipshare.schemas.user import LoginRequest, SessionOut, SignupRequest
from clipshare.services import users as users_service
from clipshare.services.presenters import user_to_out

router = APIRouter()


@router.post("/auth/signup", status_code=201)
def signup(
    body: SignupRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Create a USER account. 409 if the email is already registered."""
    user = users_service.create_user(db, email=body.email, name=body.name, password=body.password)
    return success_response({"user": user_to_out(user).model_dump(mode="json")})


@router.post("/auth/login")
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    issuer: Annotated[SessionTokenIssuer, Depends(get_token_issuer)],
) -> dict:
    """Exchange credentials for a session token.

    The token is returned in the body and set as an HttpOnly cookie.
    """
    user = users_service.authenticate(db, body.email, body.password)
    token, expires_at = issuer.issue(user.id)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=issuer.ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=get_settings().is_production_like,
    )
    result = SessionOut(token=token, expires_at=expires_at, user=user_to_out(user))
    return success_response(result.model_dump(mode="json"))


@router.post("/auth/logout")
def logout(response: Response) -> dict:
    """Clear the session cookie. Tokens are stateless, so nothing else to revoke."""
    response.delete_cookie(SESSION_COOKIE)
    return success_response({"success": True})
