"""Abstract base class for blob stores."""

from abc import ABC, abstractmethod


class BlobStore(ABC):
    """Abstract base class for blob stores.

    Keys are "/"-separated paths such as "d2/unique/<sha1>.png". put() may
    overwrite; the image pipeline only writes a key once per content hash.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the store name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the store is reachable and configured."""
        ...

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        """Store data under key and return its public URL.

        Raises:
            UploadFailure: If the write fails.
        """
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether key is already stored."""
        ...

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return the public URL for key without touching the backend."""
        ...
