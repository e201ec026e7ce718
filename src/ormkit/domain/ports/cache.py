"""Key/value cache port."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Cache[K, V](Protocol):
    """Minimal contract for a key/value cache with optional per-entry expiry."""

    def put(self, key: K, value: V, ttl_seconds: float | None = None) -> None: ...

    def get(self, key: K, default: V | None = None) -> V | None: ...

    def remove(self, key: K) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...

    def __contains__(self, key: object) -> bool: ...
