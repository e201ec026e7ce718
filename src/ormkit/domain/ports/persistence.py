"""Ports the change manager and the client persist through."""

from __future__ import annotations

from collections.abc import Callable, Sequence

type UpdateSink[T] = Callable[[Sequence[T]], object]
"""Persists a whole batch or raises; the return value is ignored."""

type FlushFailureHandler = Callable[[BaseException], None]
