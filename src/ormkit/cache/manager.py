"""Named memory caches owned by one client."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from ormkit.config.cache import CacheConfig

from .memory import MemoryCache

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


class CacheManager:
    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        cache_factory: Callable[[str, CacheConfig], MemoryCache[object, object]] | None = None,
    ) -> None:
        self.config = (config or CacheConfig()).validate()
        self._cache_factory = cache_factory or _default_cache
        self._caches: dict[str, MemoryCache[object, object]] = {}
        self._lock = threading.Lock()

    def get_cache(self, name: str) -> MemoryCache[object, object]:
        """Return the cache called ``name``, creating it on first use."""

        with self._lock:
            cache = self._caches.get(name)
            if cache is None:
                cache = self._cache_factory(name, self.config)
                self._caches[name] = cache
                log.debug("Created cache %s", name)
            return cache

    def remove_cache(self, name: str) -> None:
        with self._lock:
            cache = self._caches.pop(name, None)
        if cache is not None:
            cache.shutdown()

    def clear_all(self) -> None:
        with self._lock:
            caches = list(self._caches.values())
        for cache in caches:
            cache.clear()

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._caches)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._caches

    def shutdown(self) -> None:
        with self._lock:
            caches = list(self._caches.values())
            self._caches.clear()
        for cache in caches:
            cache.shutdown()
        log.debug("Shut down %d caches", len(caches))


def _default_cache(name: str, config: CacheConfig) -> MemoryCache[object, object]:
    return MemoryCache(
        sweep_interval_seconds=config.sweep_interval_seconds,
        default_ttl_seconds=config.default_ttl_seconds,
        name=name,
    )
