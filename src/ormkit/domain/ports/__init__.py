from __future__ import annotations

from .cache import Cache
from .persistence import FlushFailureHandler, UpdateSink

__all__ = ["Cache", "FlushFailureHandler", "UpdateSink"]
