"""Storage module for media bytes.

Provides:
- MediaStoreBase and its local, Supabase, database and fake backends
- Path building utilities for consistent object paths
"""

from clipshare.storage.client import (
    DatabaseMediaStore,
    FakeMediaStore,
    LocalMediaStore,
    MediaStoreBase,
    StorageError,
    SupabaseMediaStore,
    get_media_store,
)
from clipshare.storage.paths import build_media_path, safe_file_name

__all__ = [
    "MediaStoreBase",
    "LocalMediaStore",
    "SupabaseMediaStore",
    "DatabaseMediaStore",
    "FakeMediaStore",
    "StorageError",
    "get_media_store",
    "build_media_path",
    "safe_file_name",
]
