from __future__ import annotations

import logging
import threading
import time

import pytest

from ormkit.config import ChangeManagerConfig, ConfigurationError
from ormkit.domain import ChangeManager, ManagerState
from ormkit.errors import FlushFailure
from tests.helpers.entities import (
    Account,
    RecordingSink,
    ToggleEntity,
    make_dirty_account,
    wait_until,
)


def test_register_below_batch_size_keeps_entity_pending(
    change_manager: ChangeManager[Account],
    recording_sink: RecordingSink[Account],
) -> None:
    account = make_dirty_account()

    change_manager.register_dirty(account)

    assert change_manager.dirty_count() == 1
    assert recording_sink.calls == 0
    assert account.is_dirty()


def test_register_clean_entity_is_noop(
    change_manager: ChangeManager[Account],
    recording_sink: RecordingSink[Account],
) -> None:
    account = Account(id=1, name="clean")

    change_manager.register_dirty(account)

    assert change_manager.dirty_count() == 0
    assert recording_sink.calls == 0


def test_register_same_instance_twice_is_not_duplicated(
    change_manager: ChangeManager[Account],
) -> None:
    account = make_dirty_account()

    change_manager.register_dirty(account)
    change_manager.register_dirty(account)

    assert change_manager.dirty_count() == 1


def test_equal_but_distinct_instances_are_both_pending(
    change_manager: ChangeManager[Account],
) -> None:
    change_manager.register_dirty(make_dirty_account(1, name="same"))
    change_manager.register_dirty(make_dirty_account(1, name="same"))

    assert change_manager.dirty_count() == 2


def test_reaching_batch_size_flushes_before_register_returns() -> None:
    sink: RecordingSink[Account] = RecordingSink()
    first = make_dirty_account(1)
    second = make_dirty_account(2)

    with ChangeManager(sink, batch_size=2, flush_interval_ms=100_000) as manager:
        manager.register_dirty(first)
        assert manager.dirty_count() == 1
        assert sink.calls == 0

        manager.register_dirty(second)

        assert sink.batches == [[first, second]]
        assert not first.is_dirty()
        assert not second.is_dirty()
        assert manager.dirty_count() == 0
        assert sink.threads == [threading.current_thread().name]


def test_explicit_flush_cleans_every_entity_once() -> None:
    sink: RecordingSink[ToggleEntity] = RecordingSink()
    entities = [ToggleEntity(), ToggleEntity()]
    manager = ChangeManager(sink, flush_interval_ms=100_000)
    try:
        for entity in entities:
            manager.register_dirty(entity)

        flushed = manager.flush()
    finally:
        manager.shutdown()

    assert flushed == 2
    assert [entity.clean_calls for entity in entities] == [1, 1]
    assert all(not entity.is_dirty() for entity in entities)


def test_flush_with_nothing_pending_does_not_call_sink(
    change_manager: ChangeManager[Account],
    recording_sink: RecordingSink[Account],
) -> None:
    assert change_manager.flush() == 0
    assert recording_sink.calls == 0


def test_failed_flush_keeps_entities_dirty_and_empties_pending_set() -> None:
    sink: RecordingSink[Account] = RecordingSink(fail=True)
    account = make_dirty_account()

    with ChangeManager(sink, batch_size=1, flush_interval_ms=100_000) as manager:
        with pytest.raises(FlushFailure) as excinfo:
            manager.register_dirty(account)

        # the failed batch is dropped, not re-queued
        assert account.is_dirty()
        assert manager.dirty_count() == 0

    assert excinfo.value.batch == (account,)
    assert excinfo.value.code == "FLUSH_ERROR"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert sink.calls == 1


def test_failed_entity_is_retried_only_after_reregistration() -> None:
    sink: RecordingSink[Account] = RecordingSink(fail=True)
    account = make_dirty_account()

    with ChangeManager(sink, batch_size=5, flush_interval_ms=100_000) as manager:
        manager.register_dirty(account)
        with pytest.raises(FlushFailure):
            manager.flush()

        sink.fail = False
        assert manager.flush() == 0

        manager.register_dirty(account)
        assert manager.flush() == 1

    assert sink.batches == [[account]]
    assert not account.is_dirty()


def test_timed_flush_runs_on_worker_thread() -> None:
    sink: RecordingSink[Account] = RecordingSink()
    account = make_dirty_account()

    with ChangeManager(sink, batch_size=10, flush_interval_ms=50, name="timed") as manager:
        manager.register_dirty(account)

        assert wait_until(lambda: sink.flushed == [account])
        assert wait_until(lambda: not account.is_dirty())
        assert manager.dirty_count() == 0

    assert sink.threads[0] == "ormkit-change-manager-timed"


def test_timed_flush_does_not_fire_immediately() -> None:
    sink: RecordingSink[Account] = RecordingSink()

    with ChangeManager(sink, batch_size=10, flush_interval_ms=500) as manager:
        manager.register_dirty(make_dirty_account())
        time.sleep(0.05)

        assert sink.calls == 0
        assert manager.dirty_count() == 1


def test_scheduled_failure_is_reported_and_timer_keeps_running() -> None:
    sink: RecordingSink[Account] = RecordingSink(fail=True)
    failures: list[BaseException] = []
    first = make_dirty_account(1)
    second = make_dirty_account(2)

    manager = ChangeManager(
        sink,
        batch_size=10,
        flush_interval_ms=20,
        on_scheduled_failure=failures.append,
    )
    try:
        manager.register_dirty(first)
        assert wait_until(lambda: len(failures) == 1)
        assert first.is_dirty()

        sink.fail = False
        manager.register_dirty(second)
        assert wait_until(lambda: sink.flushed == [second])
    finally:
        manager.shutdown()

    assert isinstance(failures[0], FlushFailure)
    assert first.is_dirty()
    assert not second.is_dirty()


def test_failing_failure_handler_does_not_stop_timer() -> None:
    sink: RecordingSink[Account] = RecordingSink(fail=True)
    calls: list[int] = []

    def handler(_failure: BaseException) -> None:
        calls.append(1)
        raise ValueError("handler broke")

    with ChangeManager(sink, flush_interval_ms=20, on_scheduled_failure=handler) as manager:
        manager.register_dirty(make_dirty_account(1))
        assert wait_until(lambda: len(calls) == 1)

        manager.register_dirty(make_dirty_account(2))
        assert wait_until(lambda: len(calls) == 2)


def test_scheduled_failure_without_handler_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    sink: RecordingSink[Account] = RecordingSink(fail=True)

    def logged_failure() -> bool:
        return any(
            record.levelno == logging.ERROR and record.exc_info is not None
            for record in caplog.records
        )

    with (
        caplog.at_level(logging.ERROR, logger="ormkit.domain.change_manager"),
        ChangeManager(sink, flush_interval_ms=20) as manager,
    ):
        manager.register_dirty(make_dirty_account())

        assert wait_until(logged_failure)

    assert "Scheduled flush of 1 dirty entities failed" in caplog.text


def test_shutdown_gives_up_on_stuck_worker_after_grace_period(
    caplog: pytest.LogCaptureFixture,
) -> None:
    entered = threading.Event()
    release = threading.Event()

    def stuck_handler(_failure: BaseException) -> None:
        entered.set()
        release.wait(timeout=5)

    manager = ChangeManager(
        RecordingSink(fail=True),
        flush_interval_ms=20,
        on_scheduled_failure=stuck_handler,
        shutdown_timeout_seconds=0.05,
    )
    try:
        manager.register_dirty(make_dirty_account())
        assert entered.wait(timeout=2)

        with caplog.at_level(logging.WARNING, logger="ormkit.domain.change_manager"):
            started = time.monotonic()
            manager.shutdown()
            elapsed = time.monotonic() - started
    finally:
        release.set()

    assert elapsed < 1.0
    assert manager.state is ManagerState.STOPPED
    assert "did not stop within" in caplog.text


def test_shutdown_flushes_pending_entities_exactly_once() -> None:
    sink: RecordingSink[Account] = RecordingSink()
    accounts = [make_dirty_account(index) for index in range(4)]
    manager = ChangeManager(sink, batch_size=10, flush_interval_ms=100_000)
    for account in accounts:
        manager.register_dirty(account)

    manager.shutdown()

    assert sink.calls == 1
    assert sink.batches[0] == accounts
    assert manager.dirty_count() == 0
    assert manager.state is ManagerState.STOPPED
    assert all(not account.is_dirty() for account in accounts)


def test_shutdown_is_idempotent(
    change_manager: ChangeManager[Account],
    recording_sink: RecordingSink[Account],
) -> None:
    change_manager.register_dirty(make_dirty_account())

    change_manager.shutdown()
    change_manager.shutdown()

    assert recording_sink.calls == 1
    assert not change_manager.is_running


def test_shutdown_propagates_final_flush_failure_and_still_stops() -> None:
    sink: RecordingSink[Account] = RecordingSink(fail=True)
    manager = ChangeManager(sink, batch_size=10, flush_interval_ms=100_000)
    manager.register_dirty(make_dirty_account())

    with pytest.raises(FlushFailure):
        manager.shutdown()

    assert manager.state is ManagerState.STOPPED


def test_register_after_shutdown_still_flushes_synchronously() -> None:
    sink: RecordingSink[Account] = RecordingSink()
    manager = ChangeManager(sink, batch_size=1, flush_interval_ms=100_000)
    manager.shutdown()
    account = make_dirty_account()

    manager.register_dirty(account)

    assert sink.batches == [[account]]
    assert not account.is_dirty()


def test_concurrent_registration_flushes_every_entity_once() -> None:
    sink: RecordingSink[Account] = RecordingSink(delay_seconds=0.001)
    accounts = [make_dirty_account(index) for index in range(200)]
    chunks = [accounts[index::4] for index in range(4)]

    with ChangeManager(sink, batch_size=7, flush_interval_ms=10) as manager:

        def register(chunk: list[Account]) -> None:
            for account in chunk:
                manager.register_dirty(account)

        threads = [threading.Thread(target=register, args=(chunk,)) for chunk in chunks]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    flushed = sink.flushed
    assert len(flushed) == len(accounts)
    assert {id(account) for account in flushed} == {id(account) for account in accounts}
    assert all(not account.is_dirty() for account in accounts)


def test_entity_changed_during_flush_lands_in_next_batch() -> None:
    started = threading.Event()
    release = threading.Event()
    batches: list[list[Account]] = []
    account = make_dirty_account()

    def slow_sink(entities: list[Account]) -> None:
        batches.append(list(entities))
        started.set()
        release.wait(timeout=2)

    with ChangeManager(slow_sink, batch_size=10, flush_interval_ms=100_000) as manager:
        manager.register_dirty(account)
        flusher = threading.Thread(target=manager.flush)
        flusher.start()
        assert started.wait(timeout=2)

        manager.register_dirty(account)
        assert manager.dirty_count() == 1

        release.set()
        flusher.join()

    assert batches == [[account], [account]]


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"batch_size": 0}, "batch_size"),
        ({"flush_interval_ms": 0}, "flush_interval_ms"),
        ({"flush_interval_ms": -5}, "flush_interval_ms"),
    ],
)
def test_constructor_rejects_invalid_settings(kwargs: dict[str, int], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        ChangeManager(RecordingSink(), **kwargs)


def test_constructor_rejects_missing_sink() -> None:
    with pytest.raises(ValueError, match="update_sink"):
        ChangeManager(None)  # type: ignore[arg-type]


def test_from_config_uses_configured_values() -> None:
    config = ChangeManagerConfig(batch_size=4, flush_interval_ms=1234)

    with ChangeManager.from_config(RecordingSink(), config, name="cfg") as manager:
        assert manager.batch_size == 4
        assert manager.flush_interval_ms == 1234
        assert manager.name == "cfg"
        assert manager.state is ManagerState.RUNNING


def test_from_config_validates() -> None:
    with pytest.raises(ConfigurationError):
        ChangeManager.from_config(RecordingSink(), ChangeManagerConfig(batch_size=0))
