"""In-process cache with per-entry expiry and a background sweeper."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry[V]:
    value: V
    expires_at: float | None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class MemoryCache[K, V]:
    """Thread-safe dictionary cache.

    Entries without a TTL live until removed. Expired entries are dropped lazily on lookup
    and every ``sweep_interval_seconds`` by a daemon thread.
    """

    def __init__(
        self,
        *,
        sweep_interval_seconds: float = 60.0,
        default_ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        start_sweeper: bool = True,
        name: str | None = None,
    ) -> None:
        if sweep_interval_seconds <= 0:
            raise ValueError(f"sweep_interval_seconds must be > 0, got {sweep_interval_seconds}")
        self._entries: dict[K, _Entry[V]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._default_ttl_seconds = default_ttl_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None
        if start_sweeper:
            self._sweeper = threading.Thread(
                target=self._run_sweeper,
                name=f"ormkit-cache-sweeper-{name}" if name else "ormkit-cache-sweeper",
                daemon=True,
            )
            self._sweeper.start()

    def put(self, key: K, value: V, ttl_seconds: float | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl_seconds
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl}")
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._entries[key] = _Entry(value, expires_at)

    def get(self, key: K, default: V | None = None) -> V | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expired(self._clock()):
                del self._entries[key]
                return default
            return entry.value

    def remove(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Drop every expired entry now and return how many were removed."""

        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            log.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def shutdown(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is None or sweeper is threading.current_thread():
            return
        sweeper.join(timeout=timeout)
        if sweeper.is_alive():
            log.warning("Cache sweeper %s did not stop within %.1fs", sweeper.name, timeout)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if entry.expired(self._clock()):
                del self._entries[key]
                return False
            return True

    def _run_sweeper(self) -> None:
        while not self._stop_event.wait(self._sweep_interval_seconds):
            try:
                self.sweep()
            except Exception:
                log.exception("Cache sweep failed")
