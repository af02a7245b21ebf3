"""Tests for admin account bootstrap.

Tests cover:
- First run creates an ADMIN account with a hashed password
- Re-running is idempotent
- An existing account is promoted and unbanned, its password kept
- App startup seeds the admin only when credentials are configured
"""

from fastapi.testclient import TestClient
from sqlalchemy import func, select

from clipshare.app import create_app
from clipshare.auth.passwords import verify_password
from clipshare.config import clear_settings_cache
from clipshare.db.models import User
from clipshare.services.bootstrap import ensure_bootstrap_admin
from tests.factories import DEFAULT_PASSWORD, create_test_user


def _user_count(db_session) -> int:
    db_session.expire_all()
    return db_session.execute(select(func.count()).select_from(User)).scalar_one()


class TestEnsureBootstrapAdmin:
    def test_creates_admin(self, db_session):
        admin = ensure_bootstrap_admin(db_session, "Root@Example.com", "rootpass", "Root")

        assert admin.email == "root@example.com"
        assert admin.role == "ADMIN"
        assert admin.name == "Root"
        assert verify_password("rootpass", admin.password_hash)

    def test_idempotent(self, db_session):
        first = ensure_bootstrap_admin(db_session, "root@example.com", "rootpass")
        second = ensure_bootstrap_admin(db_session, "root@example.com", "rootpass")

        assert first.id == second.id
        assert _user_count(db_session) == 1

    def test_promotes_and_unbans_existing_user(self, db_session):
        existing = create_test_user(db_session, email="root@example.com", banned=True)

        admin = ensure_bootstrap_admin(db_session, "root@example.com", "ignored-password")

        db_session.expire_all()
        refreshed = db_session.get(User, existing.id)
        assert admin.id == existing.id
        assert refreshed.role == "ADMIN"
        assert refreshed.banned is False
        assert refreshed.ban is None
        assert verify_password(DEFAULT_PASSWORD, refreshed.password_hash)


class TestStartupBootstrap:
    def test_startup_seeds_admin(self, monkeypatch, session_factory, media_store, db_session):
        monkeypatch.setenv("ADMIN_BOOTSTRAP_EMAIL", "boot@example.com")
        monkeypatch.setenv("ADMIN_BOOTSTRAP_PASSWORD", "bootpass")
        clear_settings_cache()
        app = create_app(media_store=media_store, session_factory=session_factory)

        with TestClient(app) as client:
            login = client.post(
                "/auth/login", json={"email": "boot@example.com", "password": "bootpass"}
            )

        assert login.status_code == 200
        assert login.json()["data"]["user"]["role"] == "ADMIN"

    def test_startup_without_credentials_seeds_nothing(self, app, db_session):
        with TestClient(app):
            pass

        assert _user_count(db_session) == 0
