"""Media path building utilities.

This module provides the single point of logic for building media object paths.
All path construction must go through build_media_path() so every backend
lays objects out identically.

Path Invariant:
    - Production: {kind}/{object_id}/{safe_name}
    - Test: test_runs/{run_id}/{kind}/{object_id}/{safe_name}

Rules:
    - No leading slash
    - No user identifiers in paths
    - No ".." segments; names are reduced to a safe character set
"""

import os
import re
from uuid import uuid4

# Environment variable for test run prefix
TEST_PREFIX_ENV_VAR = "STORAGE_TEST_PREFIX"

MEDIA_KINDS = ("clips", "thumbnails", "avatars", "banners")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _get_test_prefix() -> str:
    """Get the test prefix from environment.

    Returns:
        Empty string in production, "test_runs/{run_id}/" in test.
    """
    prefix = os.environ.get(TEST_PREFIX_ENV_VAR, "")
    if prefix and not prefix.endswith("/"):
        prefix = f"{prefix}/"
    return prefix


def safe_file_name(name: str | None) -> str:
    """Reduce a client-supplied file name to a safe single path segment.

    Spaces become underscores, anything outside [A-Za-z0-9._-] is dropped,
    and leading dots are stripped so the result can never be "." or "..".

    >>> safe_file_name("my clip (1).mp4")
    'my_clip_1.mp4'
    """
    base = os.path.basename((name or "").replace("\\", "/"))
    cleaned = _UNSAFE_CHARS.sub("", base.replace(" ", "_")).lstrip(".")
    return cleaned[:200] or "file"


def build_media_path(kind: str, name: str | None, object_id: str | None = None) -> str:
    """Build the full storage path for a media object.

    Args:
        kind: Object family (clips, thumbnails, avatars, banners).
        name: Suggested file name; sanitized with safe_file_name().
        object_id: Optional fixed id. A fresh hex id is generated otherwise.

    Returns:
        Relative path such as "clips/3f2a.../1700000000000_my_clip.mp4".

    Raises:
        ValueError: If kind is not a known media kind.
    """
    if kind not in MEDIA_KINDS:
        raise ValueError(f"Unknown media kind '{kind}'")
    prefix = _get_test_prefix()
    return f"{prefix}{kind}/{object_id or uuid4().hex}/{safe_file_name(name)}"


def kind_for_content_type(content_type: str) -> str:
    """Pick the default media kind for a content type."""
    if content_type.startswith("video/"):
        return "clips"
    return "thumbnails"
