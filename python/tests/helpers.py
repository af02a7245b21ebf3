"""Test helpers for authentication and common test operations.

Provides:
- Session token minting for test authentication
- Header generation for test requests
- Multipart upload helpers
"""

import time
from uuid import uuid4

import jwt

from clipshare.config import get_settings

DEFAULT_EXPIRES_IN = 3600  # 1 hour

# 10 bytes, the payload of the reference upload scenario
VIDEO_BYTES = b"0123456789"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def mint_test_token(
    user_id: str,
    expires_in: int = DEFAULT_EXPIRES_IN,
    issuer: str | None = None,
    audience: str | None = None,
    secret: str | None = None,
    **extra_claims,
) -> str:
    """Mint a session JWT the app will accept.

    Args:
        user_id: The user ID to set as the `sub` claim.
        expires_in: Token validity in seconds from now (negative for expired).
        issuer: The `iss` claim value. Defaults to the configured issuer.
        audience: The `aud` claim value. Defaults to the configured audience.
        secret: Signing secret. Defaults to the configured session secret.
        **extra_claims: Additional claims to include in the token.
    """
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "iss": issuer or settings.session_issuer,
        "aud": audience or settings.session_audience,
        "iat": now,
        "exp": now + expires_in,
        "jti": uuid4().hex,
        **extra_claims,
    }
    return jwt.encode(payload, secret or settings.effective_session_secret, algorithm="HS256")


def auth_headers(user_id: str, **token_kwargs) -> dict[str, str]:
    """Return headers dict with valid Authorization for the given user."""
    token = mint_test_token(user_id, **token_kwargs)
    return {"Authorization": f"Bearer {token}"}


def upload_files(
    video: bytes = VIDEO_BYTES,
    file_name: str = "goal.mp4",
    thumbnail: bytes | None = None,
) -> dict:
    """Multipart files mapping for POST /upload."""
    files = {"file": (file_name, video, "video/mp4")}
    if thumbnail is not None:
        files["thumbnail"] = ("thumb.png", thumbnail, "image/png")
    return files
