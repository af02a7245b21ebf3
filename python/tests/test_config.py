"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from clipshare.config import DEV_SESSION_SECRET, MediaBackend, Settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "DATABASE_URL": "sqlite://",
        "CLIPSHARE_ENV": "test",
        "MEDIA_BACKEND": "local",
    }
    defaults.update(overrides)
    return Settings(**defaults)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SESSION_SECRET", "SUPABASE_URL", "SUPABASE_SERVICE_KEY", "ADMIN_BOOTSTRAP_NAME"):
        monkeypatch.delenv(name, raising=False)


class TestSessionSettings:
    def test_dev_secret_outside_production(self):
        s = _make_settings()

        assert s.session_secret is None
        assert s.effective_session_secret == DEV_SESSION_SECRET
        assert s.session_issuer == "clipshare"
        assert s.session_audience == "clipshare-web"

    @pytest.mark.parametrize("env", ["staging", "prod"])
    def test_secret_required_in_production(self, env):
        with pytest.raises(ValidationError, match="SESSION_SECRET is required"):
            _make_settings(CLIPSHARE_ENV=env)

    def test_explicit_secret_wins(self):
        s = _make_settings(CLIPSHARE_ENV="prod", SESSION_SECRET="s3cret")

        assert s.is_production_like
        assert s.effective_session_secret == "s3cret"


class TestMediaSettings:
    def test_supabase_requires_credentials(self):
        with pytest.raises(ValidationError, match="SUPABASE_URL, SUPABASE_SERVICE_KEY"):
            _make_settings(MEDIA_BACKEND="supabase")

    def test_supabase_backend_accepted(self):
        s = _make_settings(
            MEDIA_BACKEND="supabase",
            SUPABASE_URL="https://proj.supabase.co",
            SUPABASE_SERVICE_KEY="key",
        )

        assert s.media_backend == MediaBackend.SUPABASE

    def test_upload_limit_floor(self):
        with pytest.raises(ValidationError, match="MAX_UPLOAD_BYTES must be >= 1"):
            _make_settings(MAX_UPLOAD_BYTES=0)

    def test_allowed_formats_parsed(self):
        s = _make_settings(ALLOWED_VIDEO_FORMATS=" MP4, .webm ,,mov")

        assert s.allowed_video_format_list == ["mp4", "webm", "mov"]

    def test_placeholder_thumbnail_default(self):
        assert _make_settings().placeholder_thumbnail_url == "/placeholder.jpg"


class TestAdminBootstrapSettings:
    def test_disabled_without_password(self):
        assert not _make_settings(ADMIN_BOOTSTRAP_EMAIL="a@example.com").admin_bootstrap_enabled

    def test_enabled_with_both(self):
        s = _make_settings(ADMIN_BOOTSTRAP_EMAIL="a@example.com", ADMIN_BOOTSTRAP_PASSWORD="pw")

        assert s.admin_bootstrap_enabled
        assert s.admin_bootstrap_name == "Admin"
