"""Tests for clip comments."""

import pytest

from clipshare.auth.middleware import Viewer
from clipshare.errors import ApiErrorCode, InvalidRequestError
from clipshare.services.comments import add_comment, list_comments
from tests.factories import create_test_clip, create_test_comment
from tests.helpers import auth_headers


@pytest.fixture
def clip(db_session, user):
    return create_test_clip(db_session, owner_id=user.id, title="Commented")


class TestCommentEndpoints:
    """Tests for /clips/{id}/comments."""

    def test_post_and_list(self, client, clip, other_user):
        response = client.post(
            f"/clips/{clip.id}/comments",
            headers=auth_headers(other_user.id),
            json={"content": "  great goal  "},
        )

        assert response.status_code == 201
        created = response.json()["data"]
        assert created["content"] == "great goal"
        assert created["user"]["id"] == other_user.id
        assert created["clip_id"] == clip.id

        listed = client.get(f"/clips/{clip.id}/comments").json()["data"]
        assert [c["id"] for c in listed] == [created["id"]]
        assert listed[0]["user"]["name"] == "Other User"

    def test_blank_comment_rejected(self, client, clip, user):
        response = client.post(
            f"/clips/{clip.id}/comments",
            headers=auth_headers(user.id),
            json={"content": "   "},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_COMMENT_EMPTY"

    def test_comment_requires_session(self, client, clip):
        response = client.post(f"/clips/{clip.id}/comments", json={"content": "hi"})

        assert response.status_code == 401

    def test_comment_on_unknown_clip_404(self, client, user):
        response = client.post(
            f"/clips/{'a' * 32}/comments",
            headers=auth_headers(user.id),
            json={"content": "hello"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_CLIP_NOT_FOUND"

    def test_malformed_json_rejected(self, client, clip, user):
        response = client.post(
            f"/clips/{clip.id}/comments",
            headers={**auth_headers(user.id), "Content-Type": "application/json"},
            content=b"{not json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_INVALID_REQUEST"


class TestDeleteComment:
    """Tests for DELETE /clips/{id}/comments/{comment_id}."""

    def test_author_can_delete(self, client, db_session, clip, other_user):
        comment = create_test_comment(db_session, clip_id=clip.id, user_id=other_user.id)

        response = client.delete(
            f"/clips/{clip.id}/comments/{comment.id}", headers=auth_headers(other_user.id)
        )

        assert response.status_code == 200
        assert client.get(f"/clips/{clip.id}/comments").json()["data"] == []

    def test_clip_owner_who_is_not_author_forbidden(self, client, db_session, clip, user, other_user):
        comment = create_test_comment(db_session, clip_id=clip.id, user_id=other_user.id)

        response = client.delete(
            f"/clips/{clip.id}/comments/{comment.id}", headers=auth_headers(user.id)
        )

        assert response.status_code == 403
        assert len(client.get(f"/clips/{clip.id}/comments").json()["data"]) == 1

    def test_admin_can_delete(self, client, db_session, clip, user, admin_user):
        comment = create_test_comment(db_session, clip_id=clip.id, user_id=user.id)

        response = client.delete(
            f"/clips/{clip.id}/comments/{comment.id}", headers=auth_headers(admin_user.id)
        )

        assert response.status_code == 200

    def test_comment_on_other_clip_is_not_found(self, client, db_session, clip, user):
        other_clip = create_test_clip(db_session, owner_id=user.id, title="Other")
        comment = create_test_comment(db_session, clip_id=other_clip.id, user_id=user.id)

        response = client.delete(
            f"/clips/{clip.id}/comments/{comment.id}", headers=auth_headers(user.id)
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_COMMENT_NOT_FOUND"


class TestCommentService:
    def test_list_newest_first(self, db_session, clip, user):
        first = create_test_comment(db_session, clip_id=clip.id, user_id=user.id, content="first")
        second = add_comment(db_session, Viewer(user_id=user.id, role="USER"), clip.id, "second")

        comments = list_comments(db_session, clip.id)

        assert [c.id for c in comments] == [second.id, first.id]

    def test_empty_content_raises(self, db_session, clip, user):
        with pytest.raises(InvalidRequestError) as exc_info:
            add_comment(db_session, Viewer(user_id=user.id, role="USER"), clip.id, "")

        assert exc_info.value.code == ApiErrorCode.E_COMMENT_EMPTY
