"""Factory for creating blob store instances."""

from typing import Optional

from lootstash.config import settings
from lootstash.core.logging import get_logger
from lootstash.services.storage.base import BlobStore
from lootstash.services.storage.local import LocalBlobStore
from lootstash.services.storage.memory import MemoryBlobStore
from lootstash.services.storage.supabase import SupabaseBlobStore

logger = get_logger(__name__)


def get_blob_store(provider_name: Optional[str] = None) -> BlobStore:
    """Get a blob store instance.

    Args:
        provider_name: Optional provider name. If not specified,
                      uses STORAGE_PROVIDER from config.

    Returns:
        A BlobStore instance.
    """
    name = provider_name or settings.STORAGE_PROVIDER

    if name == "memory":
        logger.debug("Using MemoryBlobStore")
        return MemoryBlobStore()

    if name == "local":
        logger.debug("Using LocalBlobStore at %s", settings.LOCAL_STORAGE_PATH)
        return LocalBlobStore(settings.LOCAL_STORAGE_PATH, settings.PUBLIC_URL_BASE)

    if name == "supabase":
        if settings.SUPABASE_URL and settings.SUPABASE_KEY:
            return SupabaseBlobStore(
                settings.SUPABASE_URL,
                settings.SUPABASE_KEY,
                settings.SUPABASE_BUCKET,
            )
        else:
            logger.warning("SUPABASE_URL/SUPABASE_KEY not set, falling back to MemoryBlobStore")
            return MemoryBlobStore()

    logger.warning("Unknown storage provider '%s', falling back to MemoryBlobStore", name)
    return MemoryBlobStore()
