"""Tests for profiles and profile settings.

Tests cover:
- Public profile with clips and stats, private fields hidden from others
- GET /me
- POST /user/settings text fields and image uploads
- Avatar/banner byte endpoints, replaced images are deleted
"""

import pytest

from clipshare.auth.middleware import Viewer
from clipshare.errors import ApiErrorCode, InvalidRequestError, NotFoundError
from clipshare.services.users import (
    create_user,
    get_profile,
    update_user,
    validate_role,
)
from tests.factories import create_test_clip
from tests.helpers import PNG_BYTES, auth_headers

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


class TestProfile:
    """Tests for GET /user/{id} and GET /me."""

    def test_public_profile_hides_private_fields(self, client, db_session, user, other_user):
        create_test_clip(db_session, owner_id=user.id, title="One")
        create_test_clip(db_session, owner_id=user.id, title="Two")

        response = client.get(f"/user/{user.id}", headers=auth_headers(other_user.id))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["email"] is None
        assert data["user"]["banned"] is None
        assert data["stats"]["total_uploads"] == 2
        assert {c["title"] for c in data["clips"]} == {"One", "Two"}

    def test_anonymous_can_view_profile(self, client, user):
        response = client.get(f"/user/{user.id}")

        assert response.status_code == 200
        assert response.json()["data"]["user"]["name"] == "Regular User"

    def test_admin_sees_private_fields(self, client, user, admin_user):
        data = client.get(f"/user/{user.id}", headers=auth_headers(admin_user.id)).json()["data"]

        assert data["user"]["email"] == "user@example.com"
        assert data["user"]["banned"] is False

    def test_me_includes_email(self, client, user):
        data = client.get("/me", headers=auth_headers(user.id)).json()["data"]

        assert data["user"]["email"] == "user@example.com"
        assert data["stats"]["total_uploads"] == 0

    def test_unknown_user_404(self, client):
        response = client.get(f"/user/{'e' * 32}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_USER_NOT_FOUND"


class TestSettings:
    """Tests for POST /user/settings."""

    def test_update_text_fields(self, client, user):
        response = client.post(
            "/user/settings",
            headers=auth_headers(user.id),
            data={"name": "Renamed", "display_name": "RN", "bio": "  hello  "},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Renamed"
        assert data["display_name"] == "RN"
        assert data["bio"] == "hello"

    def test_settings_requires_session(self, client):
        response = client.post("/user/settings", data={"name": "x"})

        assert response.status_code == 401

    def test_upload_avatar_and_banner(self, client, user, media_store):
        response = client.post(
            "/user/settings",
            headers=auth_headers(user.id),
            files={
                "profile_picture": ("me.png", PNG_BYTES, "image/png"),
                "banner_image": ("banner.jpg", JPEG_BYTES, "image/jpeg"),
            },
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["profile_picture_url"] == f"/user/{user.id}/avatar"
        assert data["banner_image_url"] == f"/user/{user.id}/banner"

        avatar = client.get(f"/user/{user.id}/avatar")
        assert avatar.status_code == 200
        assert avatar.content == PNG_BYTES
        assert avatar.headers["content-type"] == "image/png"

        banner = client.get(f"/user/{user.id}/banner")
        assert banner.content == JPEG_BYTES
        assert banner.headers["content-type"] == "image/jpeg"
        assert len(media_store.references()) == 2

    def test_replacing_avatar_deletes_old_bytes(self, client, user, media_store):
        headers = auth_headers(user.id)
        client.post(
            "/user/settings",
            headers=headers,
            files={"profile_picture": ("a.png", PNG_BYTES, "image/png")},
        )
        client.post(
            "/user/settings",
            headers=headers,
            files={"profile_picture": ("b.jpg", JPEG_BYTES, "image/jpeg")},
        )

        refs = media_store.references()
        assert len(refs) == 1
        assert media_store.get(refs[0]) == JPEG_BYTES

    def test_avatar_not_set_404(self, client, user):
        response = client.get(f"/user/{user.id}/avatar")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_MEDIA_MISSING"

    def test_external_image_url_redirects(self, client, db_session, user):
        user.profile_picture_ref = "https://cdn.example.com/avatar.png"
        db_session.commit()

        response = client.get(f"/user/{user.id}/avatar", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "https://cdn.example.com/avatar.png"


class TestUserService:
    def test_create_user_normalizes_email(self, db_session):
        created = create_user(db_session, email=" Mixed@Case.COM ", name=None, password="secret1")

        assert created.email == "mixed@case.com"
        assert created.role == "USER"

    def test_validate_role(self):
        assert validate_role("ADMIN") == "ADMIN"
        assert validate_role("USER") == "USER"

    @pytest.mark.parametrize("role", ["owner", "admin", "Admin", " ADMIN ", ""])
    def test_validate_role_is_exact(self, role):
        with pytest.raises(InvalidRequestError) as exc_info:
            validate_role(role)
        assert exc_info.value.code == ApiErrorCode.E_INVALID_ROLE

    def test_update_user_rejects_unknown_fields(self, db_session, user):
        with pytest.raises(InvalidRequestError):
            update_user(db_session, user.id, role="ADMIN")

    def test_profile_of_self_includes_private(self, db_session, user):
        profile = get_profile(db_session, user.id, Viewer(user_id=user.id, role="USER"))

        assert profile.user.email == "user@example.com"

    def test_profile_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            get_profile(db_session, "missing")
