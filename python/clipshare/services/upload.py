"""Clip upload service layer.

Handles multipart size enforcement and the write-bytes-then-record flow.

Key invariants:
- Oversized uploads are rejected while reading, before anything is stored
- Bytes are written first, the Clip row second
- If a later step fails, references written earlier are deleted
  best-effort and the original error propagates
- Format checks are advisory: unknown extensions are logged, not rejected
"""

import logging
import time
from typing import BinaryIO

from sqlalchemy.orm import Session

from clipshare.config import get_settings
from clipshare.db.models import Clip
from clipshare.db.session import transaction
from clipshare.errors import ApiErrorCode, InvalidRequestError
from clipshare.services.clips import create_clip
from clipshare.services.media import (
    delete_media_best_effort,
    file_extension,
    sniff_image_type,
    video_content_type,
    write_media,
)
from clipshare.services.tags import parse_tags
from clipshare.storage.client import MediaStoreBase

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 1024 * 1024  # 1 MiB


def read_upload_limited(stream: BinaryIO, max_bytes: int) -> bytes:
    """Read a file stream fully, failing as soon as it exceeds max_bytes.

    Raises:
        InvalidRequestError(E_FILE_TOO_LARGE): If the stream is larger than max_bytes.
    """
    buffer = bytearray()
    while chunk := stream.read(READ_CHUNK_BYTES):
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise InvalidRequestError(
                ApiErrorCode.E_FILE_TOO_LARGE,
                f"File exceeds maximum size of {max_bytes} bytes.",
            )
    return bytes(buffer)


def stored_file_name(original_name: str, now_ms: int | None = None) -> str:
    """Name a stored video "<epoch ms>_<name with spaces as underscores>"."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}_{original_name.strip().replace(' ', '_')}"


def _validate_video(video: bytes | None, size_bytes: int | None) -> int:
    """Return the accepted size of the video.

    Raises:
        InvalidRequestError: E_FILE_MISSING, E_FILE_TOO_LARGE or E_INVALID_REQUEST.
    """
    max_bytes = get_settings().max_upload_bytes

    if not video:
        raise InvalidRequestError(ApiErrorCode.E_FILE_MISSING, "No video file provided")

    actual = len(video)
    if actual > max_bytes or (size_bytes is not None and size_bytes > max_bytes):
        raise InvalidRequestError(
            ApiErrorCode.E_FILE_TOO_LARGE,
            f"File size exceeds maximum {max_bytes} bytes.",
        )
    if size_bytes is not None and size_bytes != actual:
        raise InvalidRequestError(
            ApiErrorCode.E_INVALID_REQUEST,
            f"Declared size {size_bytes} does not match received {actual} bytes.",
        )
    return actual


def _check_format(video_name: str) -> None:
    allowed = get_settings().allowed_video_format_list
    ext = file_extension(video_name)
    if allowed and ext not in allowed:
        logger.warning("upload_unrecognized_format extension=%r allowed=%s", ext, allowed)


def upload_clip(
    db: Session,
    store: MediaStoreBase,
    *,
    actor_id: str,
    video: bytes | None,
    video_name: str | None,
    size_bytes: int | None = None,
    title: str | None = None,
    tags: str | None = None,
    thumbnail: bytes | None = None,
    thumbnail_name: str | None = None,
) -> Clip:
    """Store an uploaded clip and create its record.

    Args:
        db: Database session.
        store: Media store for the bytes.
        actor_id: The authenticated uploader.
        video: Video bytes (required, non-empty).
        video_name: Original client file name.
        size_bytes: Declared size; must match len(video) when given.
        title: Clip title; the original file name is used when blank.
        tags: Comma-delimited tags.
        thumbnail: Optional thumbnail image bytes.
        thumbnail_name: Original thumbnail file name.

    Returns:
        The committed Clip.

    Raises:
        InvalidRequestError: On missing or oversized video.
        ApiError(E_STORAGE_ERROR): If the store rejects a write.
    """
    file_size = _validate_video(video, size_bytes)
    original_name = (video_name or "").strip() or "video.mp4"
    _check_format(original_name)

    file_name = stored_file_name(original_name)
    title = (title or "").strip() or original_name

    written: list[str] = []
    try:
        video_ref = write_media(
            store,
            video,
            file_name,
            content_type=video_content_type(original_name),
            kind="clips",
        )
        written.append(video_ref)

        thumbnail_ref = None
        if thumbnail:
            thumbnail_ref = write_media(
                store,
                thumbnail,
                thumbnail_name or f"{file_name}.thumb",
                content_type=sniff_image_type(thumbnail),
                kind="thumbnails",
            )
            written.append(thumbnail_ref)

        with transaction(db):
            clip = create_clip(
                db,
                owner_id=actor_id,
                title=title,
                tags=parse_tags(tags),
                file_name=file_name,
                file_size=file_size,
                video_ref=video_ref,
                thumbnail_ref=thumbnail_ref,
            )
    except Exception:
        if written:
            logger.warning("upload_compensating_cleanup refs=%s", written)
            delete_media_best_effort(store, written)
        raise

    logger.info(
        "clip_uploaded clip_id=%s user_id=%s size=%d", clip.id, actor_id, file_size
    )
    return clip
