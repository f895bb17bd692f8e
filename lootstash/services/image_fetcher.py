"""Rate-limited remote image downloads."""

import threading
import time

import requests

from lootstash.core.logging import get_logger

logger = get_logger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Sec-Fetch-Dest": "image",
    "Sec-Fetch-Mode": "no-cors",
    "Sec-Fetch-Site": "same-origin",
}


class ImageFetcher:
    """Downloads images relative to a base URL, at most N requests per second."""

    def __init__(
        self,
        base_url: str,
        requests_per_second: float = 2.0,
        timeout: float = 30,
        cookies: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = dict(BROWSER_HEADERS)
        self._headers["Referer"] = self._base_url + "/"
        if cookies:
            self._headers["Cookie"] = cookies
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    def _wait_turn(self) -> None:
        with self._lock:
            now = time.monotonic()
            wait = self._next_slot - now
            self._next_slot = max(now, self._next_slot) + self._interval
        if wait > 0:
            time.sleep(wait)

    def fetch(self, path: str) -> bytes | None:
        """Image bytes, or None when the request fails or is not an image."""
        url = self.url_for(path)
        self._wait_turn()
        try:
            resp = self._session.get(url, headers=self._headers, timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("Download of %s failed: %s", url, e)
            return None
        if resp.status_code != 200:
            logger.warning("Download of %s failed with status %d", url, resp.status_code)
            return None
        content_type = resp.headers.get("Content-Type", "")
        if content_type and not content_type.startswith("image/"):
            logger.warning("Download of %s returned %s, not an image", url, content_type)
            return None
        return resp.content
