"""Tests for authorization predicates.

Tests cover:
- can_delete_clip: owner or admin, ownerless clips admin-only
- can_delete_comment: author or admin
- is_admin: anonymous viewers are never admins

The predicates only inspect in-memory objects, so no database is needed.
"""

import pytest

from clipshare.auth.middleware import Viewer
from clipshare.auth.permissions import can_delete_clip, can_delete_comment, is_admin
from clipshare.db.models import Clip, Comment

OWNER = Viewer(user_id="owner", role="USER")
STRANGER = Viewer(user_id="stranger", role="USER")
ADMIN = Viewer(user_id="admin", role="ADMIN")


class TestCanDeleteClip:
    @pytest.mark.parametrize(
        "viewer,expected",
        [(OWNER, True), (STRANGER, False), (ADMIN, True), (None, False)],
    )
    def test_owned_clip(self, viewer, expected):
        assert can_delete_clip(viewer, Clip(user_id="owner")) is expected

    @pytest.mark.parametrize(
        "viewer,expected",
        [(OWNER, False), (ADMIN, True), (None, False)],
    )
    def test_ownerless_clip(self, viewer, expected):
        assert can_delete_clip(viewer, Clip(user_id=None)) is expected


class TestCanDeleteComment:
    @pytest.mark.parametrize(
        "viewer,expected",
        [(OWNER, True), (STRANGER, False), (ADMIN, True), (None, False)],
    )
    def test_comment(self, viewer, expected):
        assert can_delete_comment(viewer, Comment(user_id="owner", clip_id="c")) is expected


class TestIsAdmin:
    def test_is_admin(self):
        assert is_admin(ADMIN)
        assert not is_admin(OWNER)
        assert not is_admin(None)
