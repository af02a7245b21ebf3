"""Session token issuance and verification.

Provides:
- TokenVerifier: Protocol for token verification
- SessionTokenIssuer: Mints HS256 session JWTs at sign-in
- SessionJwtVerifier: Verifies session JWTs on every request

Tokens carry identity only (sub). Role and ban state are always re-read
from the database by the auth middleware.
"""

import logging
import time
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
)

from clipshare.config import Settings, get_settings
from clipshare.errors import ApiError, ApiErrorCode

logger = logging.getLogger(__name__)

# Clock skew allowance in seconds
CLOCK_SKEW_SECONDS = 60

SESSION_ALGORITHM = "HS256"


class TokenVerifier(Protocol):
    """Protocol for token verification.

    Implementations must verify JWT tokens and return decoded claims.
    """

    def verify(self, token: str) -> dict[str, Any]:
        """Verify token and return decoded claims.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid, expired, or malformed.
        """
        ...


class SessionTokenIssuer:
    """Mints session tokens for signed-in users."""

    def __init__(self, secret: str, issuer: str, audience: str, ttl_seconds: int):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SessionTokenIssuer":
        settings = settings or get_settings()
        return cls(
            secret=settings.effective_session_secret,
            issuer=settings.session_issuer,
            audience=settings.session_audience,
            ttl_seconds=settings.session_ttl_s,
        )

    def issue(self, user_id: str) -> tuple[str, datetime]:
        """Mint a token for user_id.

        Returns:
            Tuple of (token, expires_at).
        """
        now = int(time.time())
        exp = now + self.ttl_seconds
        payload = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": str(user_id),
            "iat": now,
            "exp": exp,
            "jti": uuid4().hex,
        }
        token = jwt.encode(payload, self.secret, algorithm=SESSION_ALGORITHM)
        return token, datetime.fromtimestamp(exp, tz=UTC)


class SessionJwtVerifier:
    """Session token verifier.

    Validates:
    - HS256 signature with the session secret
    - exp with ±60s clock skew
    - iss and aud match configuration
    - sub is present and non-empty
    """

    def __init__(self, secret: str, issuer: str, audience: str):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SessionJwtVerifier":
        settings = settings or get_settings()
        return cls(
            secret=settings.effective_session_secret,
            issuer=settings.session_issuer,
            audience=settings.session_audience,
        )

    def verify(self, token: str) -> dict[str, Any]:
        """Verify a session token.

        Returns:
            Decoded claims dictionary.

        Raises:
            ApiError(E_UNAUTHENTICATED): Token is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[SESSION_ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                leeway=CLOCK_SKEW_SECONDS,
                options={"require": ["exp", "iss", "aud", "sub"]},
            )
        except ExpiredSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "expired_token"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Token expired") from e
        except InvalidSignatureError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_signature"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token signature") from e
        except InvalidIssuerError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_issuer"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token issuer") from e
        except InvalidAudienceError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_audience"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token audience") from e
        except DecodeError as e:
            logger.warning("auth_failure", extra={"reason": "decode_error", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token format") from e
        except InvalidTokenError as e:
            logger.warning("auth_failure", extra={"reason": "invalid_token", "error": str(e)})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token") from e

        sub = payload.get("sub")
        if not sub or not isinstance(sub, str):
            logger.warning("auth_failure", extra={"reason": "missing_sub"})
            raise ApiError(ApiErrorCode.E_UNAUTHENTICATED, "Invalid token: missing sub")

        return payload
