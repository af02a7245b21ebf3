"""Media store abstraction.

Provides a clean interface for media byte storage with:
- Object writes that return an opaque reference
- Object reads by reference
- Best-effort object deletion

Backends:
- LocalMediaStore: files under a root directory
- SupabaseMediaStore: Supabase Storage REST API over httpx
- DatabaseMediaStore: bytes inline in the media_blobs table
- FakeMediaStore: in-memory, for tests

Callers only ever hold references. They never branch on backend identity.
"""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

import httpx
from sqlalchemy.orm import Session, sessionmaker

from clipshare.config import MediaBackend, Settings, get_settings
from clipshare.db.models import MediaBlob
from clipshare.storage.paths import build_media_path, kind_for_content_type

logger = logging.getLogger(__name__)

DB_REF_PREFIX = "db://"


class StorageError(Exception):
    """Storage operation error."""

    def __init__(self, message: str, code: str = "E_STORAGE_ERROR"):
        super().__init__(message)
        self.message = message
        self.code = code


class MediaStoreBase(ABC):
    """Abstract base class for media store implementations."""

    @abstractmethod
    def put(
        self,
        data: bytes,
        suggested_name: str,
        *,
        content_type: str,
        kind: str | None = None,
    ) -> str:
        """Persist bytes and return a reference.

        Args:
            data: Object content.
            suggested_name: Client file name; sanitized before use.
            content_type: MIME type of the content.
            kind: Object family. Derived from content_type when omitted.

        Returns:
            Opaque reference string usable with get() and delete().

        Raises:
            StorageError: If the write fails.
        """
        ...

    @abstractmethod
    def get(self, reference: str) -> bytes:
        """Return the bytes behind a reference.

        Raises:
            StorageError: code E_STORAGE_MISSING if nothing is stored there,
                E_STORAGE_INVALID_REF if the reference belongs to another
                backend, E_STORAGE_ERROR on other failures.
        """
        ...

    @abstractmethod
    def delete(self, reference: str) -> None:
        """Delete an object.

        Best-effort operation - logs errors but doesn't raise. Missing
        objects are ignored.
        """
        ...


class LocalMediaStore(MediaStoreBase):
    """Filesystem-backed store rooted at a single directory.

    References are relative paths such as "clips/<hex>/<name>".
    """

    def __init__(self, root: str | os.PathLike[str]):
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, reference: str) -> Path:
        if "://" in reference:
            raise StorageError(
                f"Not a local media reference: {reference}", code="E_STORAGE_INVALID_REF"
            )
        path = (self._root / reference.lstrip("/")).resolve()
        if path != self._root and self._root not in path.parents:
            raise StorageError(
                f"Reference escapes media root: {reference}",
                code="E_STORAGE_INVALID_REF",
            )
        return path

    def put(
        self,
        data: bytes,
        suggested_name: str,
        *,
        content_type: str,
        kind: str | None = None,
    ) -> str:
        reference = build_media_path(kind or kind_for_content_type(content_type), suggested_name)
        path = self._resolve(reference)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Failed to write {reference}: {e}") from e
        return reference

    def get(self, reference: str) -> bytes:
        path = self._resolve(reference)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(
                f"Object not found: {reference}", code="E_STORAGE_MISSING"
            ) from e
        except OSError as e:
            raise StorageError(f"Failed to read {reference}: {e}") from e

    def delete(self, reference: str) -> None:
        try:
            self._resolve(reference).unlink(missing_ok=True)
        except (OSError, StorageError) as e:
            logger.warning("Storage delete error: %s %s", reference, e)


class SupabaseMediaStore(MediaStoreBase):
    """Supabase Storage backend.

    Uses httpx for HTTP operations against Supabase Storage API. References
    are the object's public URL.
    """

    def __init__(
        self,
        supabase_url: str,
        service_key: str,
        bucket: str = "clips",
    ):
        """Initialize the storage client.

        Args:
            supabase_url: Supabase project URL (e.g., https://xxx.supabase.co).
            service_key: Supabase service role key.
            bucket: Storage bucket name.
        """
        self._base_url = supabase_url.rstrip("/")
        self._bucket = bucket
        self._storage_url = f"{self._base_url}/storage/v1"
        self._public_prefix = f"{self._storage_url}/object/public/{bucket}/"
        self._headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    def public_url(self, path: str) -> str:
        return f"{self._public_prefix}{path}"

    def _path_for(self, reference: str) -> str:
        if not reference.startswith(self._public_prefix):
            raise StorageError(
                f"Reference does not belong to bucket {self._bucket}: {reference}",
                code="E_STORAGE_INVALID_REF",
            )
        return reference[len(self._public_prefix) :]

    def put(
        self,
        data: bytes,
        suggested_name: str,
        *,
        content_type: str,
        kind: str | None = None,
    ) -> str:
        path = build_media_path(kind or kind_for_content_type(content_type), suggested_name)
        url = f"{self._storage_url}/object/{self._bucket}/{path}"

        try:
            with httpx.Client() as client:
                response = client.post(
                    url,
                    headers={**self._headers, "Content-Type": content_type},
                    content=data,
                    timeout=120.0,
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to upload object: {e}") from e

        if response.status_code not in (200, 201):
            raise StorageError(
                f"Failed to upload object: {response.status_code} {response.text}"
            )
        return self.public_url(path)

    def get(self, reference: str) -> bytes:
        url = f"{self._storage_url}/object/{self._bucket}/{self._path_for(reference)}"

        try:
            with httpx.Client() as client:
                response = client.get(url, headers=self._headers, timeout=60.0)
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to fetch object: {e}") from e

        if response.status_code in (400, 404):
            raise StorageError(f"Object not found: {reference}", code="E_STORAGE_MISSING")
        if response.status_code != 200:
            raise StorageError(f"Failed to fetch object: {response.status_code}")
        return response.content

    def delete(self, reference: str) -> None:
        """Delete object from storage (best-effort)."""
        try:
            url = f"{self._storage_url}/object/{self._bucket}/{self._path_for(reference)}"
            with httpx.Client() as client:
                response = client.delete(url, headers=self._headers, timeout=30.0)
            if response.status_code not in (200, 204, 404):
                logger.warning(
                    "Storage delete failed: %s %s",
                    response.status_code,
                    response.text,
                )
        except (httpx.HTTPError, StorageError) as e:
            logger.warning("Storage delete error: %s", e)


class DatabaseMediaStore(MediaStoreBase):
    """Stores bytes inline in the media_blobs table.

    Each call uses its own session so blob writes are independent of the
    caller's transaction, mirroring an external object store.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @staticmethod
    def _blob_id(reference: str) -> str:
        if not reference.startswith(DB_REF_PREFIX):
            raise StorageError(
                f"Not a database media reference: {reference}",
                code="E_STORAGE_INVALID_REF",
            )
        return reference[len(DB_REF_PREFIX) :]

    def put(
        self,
        data: bytes,
        suggested_name: str,
        *,
        content_type: str,
        kind: str | None = None,
    ) -> str:
        path = build_media_path(kind or kind_for_content_type(content_type), suggested_name)
        blob = MediaBlob(
            file_name=path,
            content_type=content_type,
            size_bytes=len(data),
            data=data,
        )
        with self._session_factory() as session:
            try:
                session.add(blob)
                session.commit()
            except Exception as e:
                session.rollback()
                raise StorageError(f"Failed to store blob: {e}") from e
            return f"{DB_REF_PREFIX}{blob.id}"

    def get(self, reference: str) -> bytes:
        blob_id = self._blob_id(reference)
        with self._session_factory() as session:
            blob = session.get(MediaBlob, blob_id)
            if blob is None:
                raise StorageError(f"Object not found: {reference}", code="E_STORAGE_MISSING")
            return blob.data

    def delete(self, reference: str) -> None:
        try:
            blob_id = self._blob_id(reference)
            with self._session_factory() as session:
                blob = session.get(MediaBlob, blob_id)
                if blob is not None:
                    session.delete(blob)
                    session.commit()
        except Exception as e:
            logger.warning("Storage delete error: %s %s", reference, e)


class FakeMediaStore(MediaStoreBase):
    """Fake media store for testing without a real backend.

    Stores objects in memory and provides deterministic behavior for unit tests.
    """

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}  # ref -> (content, content_type)
        self.fail_puts_after: int | None = None
        self._puts = 0

    def put(
        self,
        data: bytes,
        suggested_name: str,
        *,
        content_type: str,
        kind: str | None = None,
    ) -> str:
        if self.fail_puts_after is not None and self._puts >= self.fail_puts_after:
            raise StorageError("Simulated write failure")
        self._puts += 1
        reference = build_media_path(kind or kind_for_content_type(content_type), suggested_name)
        self._objects[reference] = (bytes(data), content_type)
        return reference

    def get(self, reference: str) -> bytes:
        if reference not in self._objects:
            if "://" in reference:
                raise StorageError(
                    f"Not a fake media reference: {reference}", code="E_STORAGE_INVALID_REF"
                )
            raise StorageError(f"Object not found: {reference}", code="E_STORAGE_MISSING")
        return self._objects[reference][0]

    def delete(self, reference: str) -> None:
        self._objects.pop(reference, None)

    # Test helper methods

    def has(self, reference: str) -> bool:
        return reference in self._objects

    def references(self) -> list[str]:
        return list(self._objects)

    def clear(self) -> None:
        """Clear all stored objects (test helper)."""
        self._objects.clear()
        self._puts = 0


def get_media_store(
    settings: Settings | None = None,
    session_factory: sessionmaker[Session] | None = None,
) -> MediaStoreBase:
    """Build the configured media store.

    Args:
        settings: Application settings. Loaded from the environment if None.
        session_factory: Required for the database backend.

    Returns:
        The backend selected by MEDIA_BACKEND.
    """
    if settings is None:
        settings = get_settings()

    if settings.media_backend == MediaBackend.SUPABASE:
        return SupabaseMediaStore(
            supabase_url=settings.supabase_url or "",
            service_key=settings.supabase_service_key or "",
            bucket=settings.storage_bucket,
        )

    if settings.media_backend == MediaBackend.DATABASE:
        if session_factory is None:
            from clipshare.db.session import get_session_factory

            session_factory = get_session_factory()
        return DatabaseMediaStore(session_factory)

    return LocalMediaStore(settings.media_root)
