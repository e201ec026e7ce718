"""Dirty-tracking contract for entities persisted through the change manager."""

from __future__ import annotations

from types import MemberDescriptorType
from typing import Protocol, runtime_checkable

_UNSET = object()


@runtime_checkable
class DirtyTracker(Protocol):
    """An entity that can report and clear its "modified since last persist" flag."""

    def is_dirty(self) -> bool: ...

    def clean_dirty(self) -> None: ...


class DirtyTrackingMixin:
    """Records which public attributes were assigned since the last ``clean_dirty``.

    Assigning a value equal to the one the instance already holds does not mark the
    attribute dirty; class-level defaults do not count as held values, so every field set
    during construction is recorded. Attributes starting with an underscore are never
    tracked. Works for plain classes, dataclasses and slotted classes alike.
    """

    __slots__ = ("_dirty_fields",)

    def __setattr__(self, key: str, value: object) -> None:
        if not key.startswith("_") and _changed(self._instance_value(key), value):
            self._tracked_fields().add(key)
        super().__setattr__(key, value)

    def _instance_value(self, key: str) -> object:
        try:
            instance_dict = object.__getattribute__(self, "__dict__")
        except AttributeError:
            instance_dict = None
        if instance_dict is not None and key in instance_dict:
            return instance_dict[key]
        slot = getattr(type(self), key, None)
        if isinstance(slot, MemberDescriptorType):
            try:
                return slot.__get__(self, type(self))
            except AttributeError:
                return _UNSET
        return _UNSET

    def _tracked_fields(self) -> set[str]:
        try:
            return self._dirty_fields
        except AttributeError:
            fields: set[str] = set()
            object.__setattr__(self, "_dirty_fields", fields)
            return fields

    def mark_dirty(self, key: str) -> None:
        self._tracked_fields().add(key)

    def dirty_fields(self) -> frozenset[str]:
        return frozenset(self._tracked_fields())

    def is_dirty(self) -> bool:
        return bool(self._tracked_fields())

    def clean_dirty(self) -> None:
        self._tracked_fields().clear()


def _changed(current: object, value: object) -> bool:
    if current is _UNSET:
        return True
    try:
        return bool(current != value)
    except Exception:  # noqa: BLE001
        # values without a usable comparison (e.g. arrays) always count as changed
        return True
