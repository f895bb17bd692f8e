"""Run deadline checked between items and phases."""

from __future__ import annotations

import time
from typing import Optional

from .errors import RunTimeout


class Deadline:
    """Monotonic deadline. None or a non-positive budget never expires."""

    def __init__(self, seconds: Optional[float] = None) -> None:
        self.seconds = seconds
        self._expires_at = (
            time.monotonic() + seconds if seconds is not None and seconds > 0 else None
        )

    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self, where: str = "") -> None:
        """Raise RunTimeout once the deadline has passed."""
        if self.expired():
            suffix = f" during {where}" if where else ""
            raise RunTimeout(f"run exceeded {self.seconds}s{suffix}")
