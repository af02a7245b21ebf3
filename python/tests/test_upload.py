"""Tests for the clip upload pipeline.

Tests cover:
- The reference "Test Goal" upload end to end (upload, list, video bytes)
- file_size equals the stored byte length
- Oversized uploads leave no clip row and no stored bytes
- Compensating cleanup when a later write fails
- Title defaulting, stored file naming, advisory format checks
"""

import io

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from clipshare.db.models import Clip
from clipshare.errors import ApiError, ApiErrorCode, InvalidRequestError
from clipshare.services.upload import read_upload_limited, stored_file_name, upload_clip
from tests.helpers import PNG_BYTES, VIDEO_BYTES, auth_headers, upload_files


def _clip_count(db_session) -> int:
    db_session.expire_all()
    return db_session.execute(select(func.count()).select_from(Clip)).scalar_one()


class TestUploadEndpoint:
    """Tests for POST /upload."""

    def test_test_goal_scenario(self, client, user):
        """Upload, find it in the feed, and read back the same 10 bytes."""
        response = client.post(
            "/upload",
            headers=auth_headers(user.id),
            files=upload_files(VIDEO_BYTES, "goal.mp4"),
            data={"title": "Test Goal", "tags": "laliga, goal"},
        )

        assert response.status_code == 201
        body = response.json()["data"]
        assert body["success"] is True
        clip_id = body["clip_id"]

        feed = client.get("/clips").json()["data"]
        entry = next(c for c in feed if c["id"] == clip_id)
        assert entry["title"] == "Test Goal"
        assert "laliga" in entry["tags"]
        assert "goal" in entry["tags"]
        assert entry["file_size"] == 10
        assert entry["user_id"] == user.id

        video = client.get(f"/clips/{clip_id}/video")
        assert video.status_code == 200
        assert video.content == VIDEO_BYTES
        assert video.headers["content-length"] == "10"
        assert video.headers["content-type"] == "video/mp4"
        assert video.headers["cache-control"] == "public, max-age=3600"

    def test_upload_requires_session(self, client, media_store):
        """Anonymous uploads get 401 and nothing is stored."""
        response = client.post("/upload", files=upload_files())

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "E_UNAUTHENTICATED"
        assert media_store.references() == []

    def test_missing_file_rejected(self, client, user):
        response = client.post(
            "/upload", headers=auth_headers(user.id), data={"title": "No file"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_FILE_MISSING"

    def test_empty_file_rejected(self, client, user):
        response = client.post(
            "/upload", headers=auth_headers(user.id), files=upload_files(b"")
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_FILE_MISSING"

    def test_oversize_leaves_no_clip_and_no_bytes(self, client, user, db_session, media_store):
        """A file one byte over the limit is rejected before anything is written."""
        too_big = b"x" * (1024 * 1024 + 1)

        response = client.post(
            "/upload", headers=auth_headers(user.id), files=upload_files(too_big)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_FILE_TOO_LARGE"
        assert _clip_count(db_session) == 0
        assert media_store.references() == []

    def test_title_defaults_to_file_name(self, client, user, db_session):
        response = client.post(
            "/upload", headers=auth_headers(user.id), files=upload_files(file_name="my clip.mp4")
        )

        assert response.status_code == 201
        db_session.expire_all()
        clip = db_session.get(Clip, response.json()["data"]["clip_id"])
        assert clip.title == "my clip.mp4"
        assert clip.file_name.endswith("_my_clip.mp4")

    def test_thumbnail_is_served(self, client, user):
        response = client.post(
            "/upload",
            headers=auth_headers(user.id),
            files=upload_files(thumbnail=PNG_BYTES),
        )
        clip_id = response.json()["data"]["clip_id"]

        detail = client.get(f"/clips/{clip_id}").json()["data"]
        assert detail["thumbnail_url"] == f"/clips/{clip_id}/thumbnail"

        thumb = client.get(f"/clips/{clip_id}/thumbnail")
        assert thumb.status_code == 200
        assert thumb.content == PNG_BYTES
        assert thumb.headers["content-type"] == "image/png"


class TestUploadService:
    """Direct tests of upload_clip."""

    def test_file_size_matches_stored_bytes(self, db_session, media_store, user):
        clip = upload_clip(
            db_session,
            media_store,
            actor_id=user.id,
            video=b"abcdef",
            video_name="a.webm",
            title="Six",
            tags="One, two",
        )

        assert clip.file_size == 6
        assert media_store.get(clip.video_ref) == b"abcdef"
        assert clip.tag_names == ["one", "two"]

    def test_declared_size_mismatch_rejected(self, db_session, media_store, user):
        with pytest.raises(InvalidRequestError) as exc_info:
            upload_clip(
                db_session,
                media_store,
                actor_id=user.id,
                video=b"abc",
                video_name="a.mp4",
                size_bytes=4,
            )

        assert exc_info.value.code == ApiErrorCode.E_INVALID_REQUEST
        assert media_store.references() == []

    def test_thumbnail_failure_removes_video_bytes(self, db_session, media_store, user):
        """If the thumbnail write fails, the already-written video is deleted."""
        media_store.fail_puts_after = 1

        with pytest.raises(ApiError) as exc_info:
            upload_clip(
                db_session,
                media_store,
                actor_id=user.id,
                video=VIDEO_BYTES,
                video_name="goal.mp4",
                thumbnail=PNG_BYTES,
            )

        assert exc_info.value.code == ApiErrorCode.E_STORAGE_ERROR
        assert media_store.references() == []
        assert _clip_count(db_session) == 0

    def test_record_failure_removes_all_bytes(self, db_session, media_store):
        """An unknown owner fails the insert; both stored objects are cleaned up."""
        with pytest.raises(IntegrityError):
            upload_clip(
                db_session,
                media_store,
                actor_id="0" * 32,
                video=VIDEO_BYTES,
                video_name="goal.mp4",
                thumbnail=PNG_BYTES,
            )

        assert media_store.references() == []

    def test_unknown_format_is_accepted(self, db_session, media_store, user):
        clip = upload_clip(
            db_session,
            media_store,
            actor_id=user.id,
            video=VIDEO_BYTES,
            video_name="capture.xyz",
        )

        assert clip.file_size == len(VIDEO_BYTES)


class TestUploadHelpers:
    def test_read_upload_limited_within_limit(self):
        assert read_upload_limited(io.BytesIO(b"12345"), 5) == b"12345"

    def test_read_upload_limited_over_limit(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            read_upload_limited(io.BytesIO(b"123456"), 5)

        assert exc_info.value.code == ApiErrorCode.E_FILE_TOO_LARGE

    def test_stored_file_name(self):
        assert stored_file_name("my goal clip.mp4", now_ms=1700000000000) == (
            "1700000000000_my_goal_clip.mp4"
        )
