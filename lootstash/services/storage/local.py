"""Filesystem blob store serving files under a static URL prefix."""

from pathlib import Path

from lootstash.core.errors import UploadFailure
from lootstash.core.logging import get_logger
from lootstash.services.storage.base import BlobStore

logger = get_logger(__name__)


class LocalBlobStore(BlobStore):
    """Blob store writing to a local directory."""

    def __init__(self, root: str | Path, public_url_base: str) -> None:
        """Initialize the local store.

        Args:
            root: Directory that receives the objects. Created on demand.
            public_url_base: URL prefix the directory is served under.
        """
        self._root = Path(root)
        self._public_url_base = public_url_base.rstrip("/")

    @property
    def name(self) -> str:
        """Return the store name."""
        return "local"

    def is_available(self) -> bool:
        """Check if the root directory exists or can be created."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Local storage root %s unusable: %s", self._root, e)
            return False
        return self._root.is_dir()

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root.resolve() not in path.parents:
            raise UploadFailure(key, "key escapes storage root")
        return path

    def put(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise UploadFailure(key, str(e)) from e
        logger.debug("Stored %s (%d bytes)", key, len(data))
        return self.public_url(key)

    def exists(self, key: str) -> bool:
        return (self._root / key).is_file()

    def public_url(self, key: str) -> str:
        return f"{self._public_url_base}/{key}"
