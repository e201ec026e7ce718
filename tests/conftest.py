from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ormkit.adapters.sqlalchemy import ConnectionPool
from ormkit.config import DatabaseConfig
from ormkit.domain import ChangeManager
from ormkit.sql import ColumnType, Constraint, CreateTableBuilder
from tests.helpers.entities import Account, RecordingSink

if TYPE_CHECKING:
    from collections.abc import Iterator

ACCOUNTS_TABLE = "accounts"


@pytest.fixture
def sqlite_config() -> DatabaseConfig:
    return DatabaseConfig.sqlite()


@pytest.fixture
def sqlite_pool(sqlite_config: DatabaseConfig) -> Iterator[ConnectionPool]:
    pool = ConnectionPool(sqlite_config)
    try:
        yield pool
    finally:
        pool.close()


@pytest.fixture
def accounts_table(sqlite_pool: ConnectionPool) -> str:
    statement = (
        CreateTableBuilder()
        .create_table(ACCOUNTS_TABLE)
        .if_not_exists()
        .column("id", "INTEGER", Constraint.PRIMARY_KEY)
        .column("name", ColumnType.VARCHAR.sized(50), Constraint.NOT_NULL)
        .column("balance", ColumnType.INT, Constraint.NOT_NULL, "DEFAULT 0")
        .build()
    )
    with sqlite_pool.begin() as connection:
        statement.execute(connection)
    return ACCOUNTS_TABLE


@pytest.fixture
def recording_sink() -> RecordingSink[Account]:
    return RecordingSink()


@pytest.fixture
def change_manager(recording_sink: RecordingSink[Account]) -> Iterator[ChangeManager[Account]]:
    manager = ChangeManager(recording_sink, batch_size=3, flush_interval_ms=100_000)
    try:
        yield manager
    finally:
        manager.shutdown()
