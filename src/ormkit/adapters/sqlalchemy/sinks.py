"""Update sinks that persist change-manager batches into a table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ormkit.errors import BuilderError
from ormkit.sql import InsertBuilder, UpdateBuilder

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.engine import Connection

    from ormkit.adapters.sqlalchemy.pool import ConnectionPool
    from ormkit.domain.ports.persistence import UpdateSink
    from ormkit.sql import Statement

log = logging.getLogger(__name__)

type RowMapper[T] = Callable[[T], Mapping[str, object]]


def table_update_sink[T](
    pool: ConnectionPool,
    table: str,
    *,
    key_column: str,
    to_row: RowMapper[T],
) -> UpdateSink[T]:
    """UPDATE one row per entity, all in a single transaction."""

    def sink(entities: Sequence[T]) -> None:
        with pool.begin() as connection:
            for entity in entities:
                update_statement(table, key_column, to_row(entity)).execute(connection)
        log.debug("Updated %d rows in %s", len(entities), table)

    return sink


def table_upsert_sink[T](
    pool: ConnectionPool,
    table: str,
    *,
    key_column: str,
    to_row: RowMapper[T],
) -> UpdateSink[T]:
    """Like :func:`table_update_sink`, inserting rows the UPDATE did not match."""

    def sink(entities: Sequence[T]) -> None:
        with pool.begin() as connection:
            inserted = sum(_upsert(connection, table, key_column, to_row(e)) for e in entities)
        log.debug("Upserted %d rows in %s (%d inserted)", len(entities), table, inserted)

    return sink


def update_statement(table: str, key_column: str, row: Mapping[str, object]) -> Statement:
    if key_column not in row:
        raise BuilderError(f"Row for {table} is missing key column {key_column!r}")
    builder = UpdateBuilder().update(table)
    for column, value in row.items():
        if column != key_column:
            builder.set(column, value)
    return builder.where_equals(key_column, row[key_column]).build()


def _upsert(connection: Connection, table: str, key_column: str, row: Mapping[str, object]) -> int:
    result = update_statement(table, key_column, row).execute(connection)
    if result.rowcount:
        return 0
    InsertBuilder().insert_into(table).values(dict(row)).build().execute(connection)
    return 1
