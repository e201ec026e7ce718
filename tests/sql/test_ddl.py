from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ormkit.errors import BuilderError
from ormkit.sql import ColumnType, Constraint, CreateTableBuilder, StatementFactory
from ormkit.sql.types import default, varchar_not_null

if TYPE_CHECKING:
    from ormkit.adapters.sqlalchemy import ConnectionPool


def test_create_table_with_keys_and_options() -> None:
    statement = (
        CreateTableBuilder()
        .create_table("orders")
        .if_not_exists()
        .add_id_column()
        .column("user_id", ColumnType.INT, Constraint.NOT_NULL)
        .column("note", varchar_not_null(100), default("none"))
        .foreign_key("user_id", "users", "id", on_delete="CASCADE")
        .unique_key("uq_orders_note", "user_id", "note")
        .index("idx_orders_user", "user_id")
        .mysql_defaults()
        .build()
    )

    assert statement.sql == (
        "CREATE TABLE IF NOT EXISTS orders (\n"
        "  id INT AUTO_INCREMENT PRIMARY KEY,\n"
        "  user_id INT NOT NULL,\n"
        "  note VARCHAR(100) NOT NULL DEFAULT 'none',\n"
        "  FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE,\n"
        "  CONSTRAINT uq_orders_note UNIQUE (user_id, note),\n"
        "  INDEX idx_orders_user (user_id)\n"
        ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_general_ci"
    )


def test_create_table_without_options_is_portable() -> None:
    statement = (
        CreateTableBuilder()
        .create_table("tags")
        .column("id", ColumnType.INT, Constraint.NOT_NULL)
        .column("label", ColumnType.TEXT)
        .primary_key("id")
        .build()
    )

    assert statement.sql == (
        "CREATE TABLE tags (\n  id INT NOT NULL,\n  label TEXT,\n  PRIMARY KEY (id)\n)"
    )


def test_create_table_requires_columns() -> None:
    with pytest.raises(BuilderError):
        CreateTableBuilder().create_table("empty").build()


def test_standard_table_preset() -> None:
    sql = StatementFactory().create_standard_table("things").build().sql

    assert sql.startswith("CREATE TABLE IF NOT EXISTS things (\n")
    assert "  id INT AUTO_INCREMENT PRIMARY KEY,\n" in sql
    assert "created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP" in sql
    assert "updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP" in sql


def test_ddl_executes_on_sqlite(sqlite_pool: ConnectionPool, accounts_table: str) -> None:
    with sqlite_pool.connect() as connection:
        statement = StatementFactory().select("COUNT(*)").from_(accounts_table).build()
        assert statement.execute(connection).scalar_one() == 0
