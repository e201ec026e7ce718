"""In-process caching."""

from __future__ import annotations

from .manager import CacheManager
from .memory import MemoryCache

__all__ = ["CacheManager", "MemoryCache"]
