"""
In-process cache with per-entry expiry.

Owned by the application, not the scheduling core: construct it once at
process start, inject it where settings are loaded, and call ``sweep``
periodically to drop expired entries.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Thread-safe key/value cache where every entry carries its own TTL."""

    def __init__(self, time_source: Callable[[], float] = time.monotonic):
        self._time_source = time_source
        self._entries: Dict[str, Tuple[V, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        """Return the cached value, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._time_source():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: V, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            self._entries[key] = (value, self._time_source() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self) -> int:
        """Remove expired entries and return how many were dropped."""
        now = self._time_source()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Swept %d expired cache entr%s", len(expired), "y" if len(expired) == 1 else "ies")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
