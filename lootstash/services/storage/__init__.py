"""Blob store module."""

from lootstash.services.storage.base import BlobStore
from lootstash.services.storage.factory import get_blob_store
from lootstash.services.storage.local import LocalBlobStore
from lootstash.services.storage.memory import MemoryBlobStore
from lootstash.services.storage.supabase import SupabaseBlobStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "MemoryBlobStore",
    "SupabaseBlobStore",
    "get_blob_store",
]
