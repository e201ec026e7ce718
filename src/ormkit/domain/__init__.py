"""Domain layer: dirty-tracking contract and the write-behind change manager."""

from __future__ import annotations

from .change_manager import ChangeManager, ManagerState
from .model import DirtyTracker, DirtyTrackingMixin

__all__ = ["ChangeManager", "DirtyTracker", "DirtyTrackingMixin", "ManagerState"]
