"""Supabase Storage blob store over its REST API."""

import requests

from lootstash.core.errors import UploadFailure
from lootstash.core.logging import get_logger
from lootstash.services.storage.base import BlobStore

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30


class SupabaseBlobStore(BlobStore):
    """Blob store backed by a Supabase Storage bucket."""

    def __init__(
        self,
        project_url: str,
        api_key: str,
        bucket: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the Supabase store.

        Args:
            project_url: Project URL, e.g. "https://xyz.supabase.co".
            api_key: Service role key. Whitespace and control characters are removed.
            bucket: Storage bucket name.
            timeout: Per-request timeout in seconds.
            session: Optional requests session, mainly for tests.
        """
        self._project_url = project_url.strip().rstrip("/")
        self._api_key = "".join(api_key.split())
        self._bucket = bucket
        self._timeout = timeout
        self._session = session or requests.Session()
        logger.info("SupabaseBlobStore initialized for bucket: %s", bucket)

    @property
    def name(self) -> str:
        """Return the store name."""
        return "supabase"

    def _auth(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def is_available(self) -> bool:
        """Check that the bucket answers with the configured key."""
        if not (self._project_url and self._api_key):
            return False
        url = f"{self._project_url}/storage/v1/bucket/{self._bucket}"
        try:
            resp = self._session.get(url, headers=self._auth(), timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Supabase unreachable: %s", e)
            return False
        return resp.status_code == 200

    def put(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        url = f"{self._project_url}/storage/v1/object/{self._bucket}/{key}"
        headers = {
            **self._auth(),
            "Content-Type": content_type,
            "x-upsert": "true",
        }
        try:
            resp = self._session.post(url, data=data, headers=headers, timeout=self._timeout)
        except requests.RequestException as e:
            raise UploadFailure(key, str(e)) from e
        if resp.status_code not in (200, 201):
            raise UploadFailure(key, f"status {resp.status_code}: {resp.text[:200]}")
        return self.public_url(key)

    def exists(self, key: str) -> bool:
        url = f"{self._project_url}/storage/v1/object/info/{self._bucket}/{key}"
        try:
            resp = self._session.get(url, headers=self._auth(), timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Exists check for %s failed: %s", key, e)
            return False
        return resp.status_code == 200

    def public_url(self, key: str) -> str:
        return f"{self._project_url}/storage/v1/object/public/{self._bucket}/{key}"
