"""Write-behind batching of dirty entities.

A :class:`ChangeManager` buffers entities that report themselves dirty and hands them to an
update sink in batches. A flush happens synchronously on the registering thread as soon as
``batch_size`` entities are pending, and on a dedicated worker thread every
``flush_interval_ms``. Whatever is pending is drained atomically before the sink runs, so an
entity re-registered while its previous batch is being written lands in the next batch.

Failed batches are not re-queued: the entities keep their dirty flag but leave the pending
set, and are only retried if the caller registers them again.
"""

from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

from ormkit.config.change_manager import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_FLUSH_INTERVAL_MS,
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
)
from ormkit.errors import FlushFailure

if TYPE_CHECKING:
    from types import TracebackType

    from ormkit.config.change_manager import ChangeManagerConfig
    from ormkit.domain.model.dirty import DirtyTracker
    from ormkit.domain.ports.persistence import FlushFailureHandler, UpdateSink

log = logging.getLogger(__name__)


class ManagerState(StrEnum):
    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ChangeManager[T: DirtyTracker]:
    """Buffers dirty entities and persists them in batches through an update sink."""

    def __init__(  # noqa: PLR0913
        self,
        update_sink: UpdateSink[T],
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
        name: str | None = None,
        on_scheduled_failure: FlushFailureHandler | None = None,
        shutdown_timeout_seconds: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    ) -> None:
        if update_sink is None or not callable(update_sink):
            raise ValueError("update_sink must be a callable accepting a sequence of entities")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if flush_interval_ms <= 0:
            raise ValueError(f"flush_interval_ms must be > 0, got {flush_interval_ms}")

        self._update_sink = update_sink
        self._batch_size = batch_size
        self._flush_interval_ms = flush_interval_ms
        self._name = name
        self._on_scheduled_failure = on_scheduled_failure
        self._shutdown_timeout_seconds = shutdown_timeout_seconds

        # keyed by id(); the dict keeps the entity alive so the id cannot be reused
        self._pending: dict[int, T] = {}
        self._pending_lock = threading.Lock()
        self._flush_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._state = ManagerState.CREATED
        self._stop_event = threading.Event()
        self._worker = threading.Thread(
            target=self._run_scheduled_flushes,
            name=f"ormkit-change-manager-{name}" if name else "ormkit-change-manager",
            daemon=True,
        )
        self._start()

    @classmethod
    def from_config(
        cls,
        update_sink: UpdateSink[T],
        config: ChangeManagerConfig,
        *,
        name: str | None = None,
        on_scheduled_failure: FlushFailureHandler | None = None,
    ) -> ChangeManager[T]:
        config.validate()
        return cls(
            update_sink,
            batch_size=config.batch_size,
            flush_interval_ms=config.flush_interval_ms,
            name=name,
            on_scheduled_failure=on_scheduled_failure,
            shutdown_timeout_seconds=config.shutdown_timeout_seconds,
        )

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def flush_interval_ms(self) -> int:
        return self._flush_interval_ms

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ManagerState.RUNNING

    def register_dirty(self, entity: T) -> None:
        """Queue ``entity`` for the next flush if it reports itself dirty.

        Flushes on the calling thread once ``batch_size`` entities are pending, so this may
        block for the duration of the sink call and may raise :class:`FlushFailure`.
        """

        if not entity.is_dirty():
            return
        if self._state is not ManagerState.RUNNING:
            log.warning(
                "Entity registered with %r while %s; no scheduled flush will pick it up",
                self,
                self._state,
            )

        with self._pending_lock:
            self._pending.setdefault(id(entity), entity)
            pending = len(self._pending)
        log.debug("Registered dirty entity %r (%d pending)", entity, pending)

        if pending >= self._batch_size:
            self.flush()

    def flush(self) -> int:
        """Drain the pending set into the update sink and return the batch size.

        Dirty flags are cleared only after the sink returns. If the sink raises, the batch is
        dropped from the pending set with its flags untouched and :class:`FlushFailure` is
        raised from the sink's exception.
        """

        with self._flush_lock:
            batch = self._drain()
            if not batch:
                return 0
            if self._state is ManagerState.STOPPED:
                log.warning("Flushing %d entities on stopped %r", len(batch), self)

            log.debug("Flushing %d dirty entities", len(batch))
            try:
                self._update_sink(list(batch))
            except Exception as exc:
                raise FlushFailure(
                    f"Failed to flush {len(batch)} dirty entities: {exc}", batch=batch
                ) from exc

            for entity in batch:
                entity.clean_dirty()
            log.info("Flushed %d dirty entities", len(batch))
            return len(batch)

    def dirty_count(self) -> int:
        """Number of entities waiting for a flush. For monitoring only."""

        with self._pending_lock:
            return len(self._pending)

    def shutdown(self) -> None:
        """Stop scheduled flushes, flush what is pending and wait for the worker to exit."""

        with self._state_lock:
            if self._state is not ManagerState.RUNNING:
                log.debug("Ignoring shutdown of %r in state %s", self, self._state)
                return
            self._state = ManagerState.STOPPING

        self._stop_event.set()
        try:
            self.flush()
        finally:
            self._join_worker()
            with self._state_lock:
                self._state = ManagerState.STOPPED
            log.debug("Change manager %r stopped", self)

    def __enter__(self) -> ChangeManager[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.shutdown()
        return False

    def __repr__(self) -> str:
        return (
            f"ChangeManager(name={self._name!r}, batch_size={self._batch_size}, "
            f"flush_interval_ms={self._flush_interval_ms}, pending={len(self._pending)})"
        )

    def _start(self) -> None:
        with self._state_lock:
            self._worker.start()
            self._state = ManagerState.RUNNING
        log.debug("Started change manager %r", self)

    def _drain(self) -> list[T]:
        with self._pending_lock:
            batch = list(self._pending.values())
            self._pending.clear()
        return batch

    def _run_scheduled_flushes(self) -> None:
        interval_seconds = self._flush_interval_ms / 1000
        while not self._stop_event.wait(interval_seconds):
            try:
                self.flush()
            except FlushFailure as failure:
                log.exception("Scheduled flush of %d dirty entities failed", len(failure.batch))
                self._report_scheduled_failure(failure)
            except Exception:
                log.exception("Unexpected error during scheduled flush")

    def _report_scheduled_failure(self, failure: FlushFailure) -> None:
        handler = self._on_scheduled_failure
        if handler is None:
            return
        try:
            handler(failure)
        except Exception:
            log.exception("Scheduled flush failure handler raised")

    def _join_worker(self) -> None:
        if threading.current_thread() is self._worker:
            return
        self._worker.join(timeout=self._shutdown_timeout_seconds)
        if self._worker.is_alive():
            log.warning(
                "Worker %s did not stop within %.1fs; leaving the daemon thread behind",
                self._worker.name,
                self._shutdown_timeout_seconds,
            )
