"""Time-boxed snapshot cache in front of the content repository."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """A snapshot of all collections and the clock reading it was taken at."""

    snapshot: dict[str, Any]
    captured_at: float


class ReadCache:
    """Process-local cache holding one snapshot of the whole content graph.

    A snapshot is served only while it is younger than ``ttl`` seconds.
    Any successful write must call ``invalidate()``; the next read then
    reloads exactly once.

    The last snapshot that loaded successfully is kept separately from
    the live entry so callers can serve it when a fresh load fails.
    """

    def __init__(
        self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic
    ):
        self.ttl = ttl
        self._clock = clock
        self._entry: CacheEntry | None = None
        self._last_good: CacheEntry | None = None
        self._lock = threading.RLock()

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.captured_at < self.ttl

    def get(self) -> dict[str, Any] | None:
        """Return the snapshot if it is still within the freshness window."""
        with self._lock:
            if self._entry is not None and self._is_fresh(self._entry):
                return self._entry.snapshot
            return None

    def get_or_load(self, loader: Callable[[], dict[str, Any]]) -> dict[str, Any]:
        """Return the fresh snapshot, or load and store a new one.

        Errors raised by ``loader`` propagate and leave the cache empty.
        """
        with self._lock:
            snapshot = self.get()
            if snapshot is not None:
                logger.debug("Serving cached content snapshot")
                return snapshot

            logger.debug("Loading content snapshot")
            snapshot = loader()
            entry = CacheEntry(snapshot=snapshot, captured_at=self._clock())
            self._entry = entry
            self._last_good = entry
            return snapshot

    def invalidate(self) -> None:
        """Discard the current snapshot."""
        with self._lock:
            self._entry = None

    @property
    def last_good(self) -> dict[str, Any] | None:
        """The most recent snapshot that loaded successfully, however old."""
        with self._lock:
            return self._last_good.snapshot if self._last_good else None

    @property
    def captured_at(self) -> float | None:
        with self._lock:
            return self._entry.captured_at if self._entry else None
