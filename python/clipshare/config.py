"""Application settings loaded from environment variables.

Environment Configuration:
    CLIPSHARE_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (required)

Session Configuration:
    SESSION_SECRET: HMAC secret for session tokens (required in staging/prod)
    SESSION_ISSUER: Expected token issuer
    SESSION_AUDIENCE: Expected token audience
    SESSION_TTL_S: Session lifetime in seconds

Media Configuration:
    MEDIA_BACKEND: Storage backend (local | supabase | database)
    MEDIA_ROOT: Root directory for the local backend
    SUPABASE_URL / SUPABASE_SERVICE_KEY / STORAGE_BUCKET: Remote object storage
    MAX_UPLOAD_BYTES: Maximum accepted video size
    ALLOWED_VIDEO_FORMATS: Comma-separated extensions (advisory only)

Admin Bootstrap:
    ADMIN_BOOTSTRAP_EMAIL / ADMIN_BOOTSTRAP_PASSWORD / ADMIN_BOOTSTRAP_NAME:
    When email and password are set, a real admin user is seeded at startup.
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

# Used only in local/test when SESSION_SECRET is unset
DEV_SESSION_SECRET = "clipshare-dev-session-secret-not-for-production"


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class MediaBackend(str, Enum):
    """Selectable media storage backends."""

    LOCAL = "local"
    SUPABASE = "supabase"
    DATABASE = "database"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL is always required
    - SESSION_SECRET is required in staging and prod only
    - MEDIA_BACKEND=supabase requires SUPABASE_URL and SUPABASE_SERVICE_KEY
    """

    clipshare_env: Environment = Field(default=Environment.LOCAL, alias="CLIPSHARE_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Session settings
    session_secret: str | None = Field(default=None, alias="SESSION_SECRET")
    session_issuer: str = Field(default="clipshare", alias="SESSION_ISSUER")
    session_audience: str = Field(default="clipshare-web", alias="SESSION_AUDIENCE")
    session_ttl_s: int = Field(default=7 * 24 * 3600, alias="SESSION_TTL_S")  # 7 days
    min_password_length: int = Field(default=6, alias="MIN_PASSWORD_LENGTH")

    # Media storage settings
    media_backend: MediaBackend = Field(default=MediaBackend.LOCAL, alias="MEDIA_BACKEND")
    media_root: str = Field(default="./uploads", alias="MEDIA_ROOT")
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_key: str | None = Field(default=None, alias="SUPABASE_SERVICE_KEY")
    storage_bucket: str = Field(default="clips", alias="STORAGE_BUCKET")

    # Upload limits
    max_upload_bytes: int = Field(default=50 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")  # 50 MB
    allowed_video_formats: str = Field(default="mp4,webm,mov,mkv", alias="ALLOWED_VIDEO_FORMATS")
    placeholder_thumbnail_url: str = Field(
        default="/placeholder.jpg", alias="PLACEHOLDER_THUMBNAIL_URL"
    )

    # Admin bootstrap (seeded at startup when both are set)
    admin_bootstrap_email: str | None = Field(default=None, alias="ADMIN_BOOTSTRAP_EMAIL")
    admin_bootstrap_password: str | None = Field(default=None, alias="ADMIN_BOOTSTRAP_PASSWORD")
    admin_bootstrap_name: str = Field(default="Admin", alias="ADMIN_BOOTSTRAP_NAME")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure required settings are set for the selected environment."""
        if self.is_production_like and not self.session_secret:
            raise ValueError(f"SESSION_SECRET is required for CLIPSHARE_ENV={self.clipshare_env.value}")

        if self.media_backend == MediaBackend.SUPABASE:
            missing = []
            if not self.supabase_url:
                missing.append("SUPABASE_URL")
            if not self.supabase_service_key:
                missing.append("SUPABASE_SERVICE_KEY")
            if missing:
                raise ValueError(
                    f"MEDIA_BACKEND=supabase requires: {', '.join(missing)}"
                )

        if self.max_upload_bytes < 1:
            raise ValueError("MAX_UPLOAD_BYTES must be >= 1")

        return self

    @property
    def is_production_like(self) -> bool:
        """Whether the environment is staging or prod."""
        return self.clipshare_env in (Environment.STAGING, Environment.PROD)

    @property
    def effective_session_secret(self) -> str:
        """Return the session secret, falling back to the dev secret outside staging/prod."""
        return self.session_secret or DEV_SESSION_SECRET

    @property
    def allowed_video_format_list(self) -> list[str]:
        """Parse comma-separated video formats into a list of lowercase extensions."""
        return [
            f.strip().lower().lstrip(".")
            for f in self.allowed_video_formats.split(",")
            if f.strip()
        ]

    @property
    def admin_bootstrap_enabled(self) -> bool:
        """Whether admin bootstrap credentials are configured."""
        return bool(self.admin_bootstrap_email and self.admin_bootstrap_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
