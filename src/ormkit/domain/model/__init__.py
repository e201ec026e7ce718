from __future__ import annotations

from .dirty import DirtyTracker, DirtyTrackingMixin

__all__ = ["DirtyTracker", "DirtyTrackingMixin"]
