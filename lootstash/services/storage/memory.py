"""In-memory blob store for tests, dry runs and fallback."""

import threading

from lootstash.services.storage.base import BlobStore


class MemoryBlobStore(BlobStore):
    """Blob store that keeps objects in a dict.

    Used for testing and as a fallback when no backend is configured.
    """

    def __init__(self, base_url: str = "memory://blobs") -> None:
        self._base_url = base_url.rstrip("/")
        self._objects: dict[str, tuple[bytes, str]] = {}
        self._lock = threading.Lock()
        self.writes = 0

    @property
    def name(self) -> str:
        """Return the store name."""
        return "memory"

    def is_available(self) -> bool:
        """Check if the store is available."""
        return True

    def put(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        with self._lock:
            self._objects[key] = (bytes(data), content_type)
            self.writes += 1
        return self.public_url(key)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._objects

    def public_url(self, key: str) -> str:
        return f"{self._base_url}/{key}"

    def get(self, key: str) -> bytes:
        with self._lock:
            return self._objects[key][0]

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._objects)
