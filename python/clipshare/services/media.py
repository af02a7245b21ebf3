"""Media store helpers shared by the clip, upload and profile services.

Translates StorageError into API errors:
- writes surface as E_STORAGE_ERROR
- reads of missing bytes surface as E_MEDIA_MISSING
- deletes are best-effort: failures are logged, never raised
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from clipshare.errors import ApiError, ApiErrorCode, NotFoundError
from clipshare.storage.client import MediaStoreBase, StorageError

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_CONTENT_TYPE = "video/mp4"

VIDEO_CONTENT_TYPES = {
    "mp4": "video/mp4",
    "m4v": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
}

# Magic bytes for image type sniffing
IMAGE_MAGIC_BYTES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


@dataclass(frozen=True)
class MediaPayload:
    """What a byte-serving endpoint should send.

    Exactly one of data or redirect_url is set.
    """

    data: bytes | None = None
    content_type: str = "application/octet-stream"
    redirect_url: str | None = None


def file_extension(name: str | None) -> str:
    if not name or "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def video_content_type(name: str | None) -> str:
    return VIDEO_CONTENT_TYPES.get(file_extension(name), DEFAULT_VIDEO_CONTENT_TYPE)


def sniff_image_type(data: bytes) -> str:
    """Guess an image MIME type from its leading bytes."""
    for magic, content_type in IMAGE_MAGIC_BYTES:
        if data.startswith(magic):
            return content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def is_external_url(reference: str) -> bool:
    return reference.startswith(("http://", "https://"))


def write_media(
    store: MediaStoreBase,
    data: bytes,
    name: str,
    *,
    content_type: str,
    kind: str,
) -> str:
    """Persist bytes through the store.

    Raises:
        ApiError(E_STORAGE_ERROR): If the store rejects the write.
    """
    try:
        return store.put(data, name, content_type=content_type, kind=kind)
    except StorageError as e:
        logger.error("media_write_failed kind=%s code=%s: %s", kind, e.code, e.message)
        raise ApiError(ApiErrorCode.E_STORAGE_ERROR, "Failed to store media") from e


def read_media(store: MediaStoreBase, reference: str, *, content_type: str) -> MediaPayload:
    """Load bytes for a reference.

    References the store does not own but that are plain URLs (imported
    profile images, for example) become redirects.

    Raises:
        NotFoundError(E_MEDIA_MISSING): If the bytes are gone.
        ApiError(E_STORAGE_ERROR): On any other storage failure.
    """
    try:
        return MediaPayload(data=store.get(reference), content_type=content_type)
    except StorageError as e:
        if e.code == "E_STORAGE_MISSING":
            raise NotFoundError(ApiErrorCode.E_MEDIA_MISSING, "Media not found") from e
        if e.code == "E_STORAGE_INVALID_REF" and is_external_url(reference):
            return MediaPayload(redirect_url=reference)
        logger.error("media_read_failed code=%s: %s", e.code, e.message)
        raise ApiError(ApiErrorCode.E_STORAGE_ERROR, "Failed to read media") from e


def delete_media_best_effort(store: MediaStoreBase, references: Iterable[str | None]) -> None:
    """Delete every non-empty reference, logging and continuing on failure."""
    for reference in references:
        if not reference:
            continue
        try:
            store.delete(reference)
        except Exception as e:
            logger.warning("media_delete_failed reference=%s: %s", reference, e)
