"""CREATE TABLE builder."""

from __future__ import annotations

from typing import Self

from ormkit.errors import BuilderError

from .statement import Statement, non_blank, require_name
from .types import ColumnType, Constraint


class CreateTableBuilder:
    """Builds a ``CREATE TABLE`` statement.

    Table options (``ENGINE``, ``DEFAULT CHARSET``, ``COLLATE``) are only emitted when set,
    which keeps the default output valid for SQLite and PostgreSQL. ``mysql_defaults()``
    applies the usual InnoDB/utf8mb4 options. ``index()`` renders MySQL's inline index
    syntax and has no portable equivalent.
    """

    def __init__(self) -> None:
        self._table: str | None = None
        self._if_not_exists = False
        self._columns: dict[str, list[str]] = {}
        self._primary_keys: list[str] = []
        self._foreign_keys: list[str] = []
        self._unique_keys: list[str] = []
        self._indexes: list[str] = []
        self._engine: str | None = None
        self._charset: str | None = None
        self._collate: str | None = None

    def create_table(self, table: str) -> Self:
        self._table = require_name(table, "Table name")
        return self

    def if_not_exists(self) -> Self:
        self._if_not_exists = True
        return self

    def column(self, name: str, column_type: str, *attributes: str) -> Self:
        require_name(name, "Column name")
        require_name(column_type, "Column type")
        self._columns[name] = [column_type, *non_blank(attributes)]
        return self

    def add_id_column(self) -> Self:
        return self.column(
            "id", ColumnType.INT, Constraint.AUTO_INCREMENT, Constraint.PRIMARY_KEY
        )

    def add_created_at_column(self) -> Self:
        return self.column("created_at", ColumnType.TIMESTAMP, Constraint.DEFAULT_CURRENT_TIMESTAMP)

    def add_updated_at_column(self) -> Self:
        return self.column(
            "updated_at",
            ColumnType.TIMESTAMP,
            Constraint.DEFAULT_CURRENT_TIMESTAMP,
            Constraint.ON_UPDATE_CURRENT_TIMESTAMP,
        )

    def add_timestamps(self) -> Self:
        return self.add_created_at_column().add_updated_at_column()

    def primary_key(self, *columns: str) -> Self:
        names = non_blank(columns)
        if names:
            self._primary_keys.append(f"PRIMARY KEY ({', '.join(names)})")
        return self

    def foreign_key(
        self,
        column: str,
        ref_table: str,
        ref_column: str,
        *,
        on_delete: str | None = None,
        on_update: str | None = None,
    ) -> Self:
        require_name(column, "Foreign key column")
        require_name(ref_table, "Referenced table")
        require_name(ref_column, "Referenced column")
        clause = f"FOREIGN KEY ({column}) REFERENCES {ref_table} ({ref_column})"
        if on_delete and on_delete.strip():
            clause += f" ON DELETE {on_delete}"
        if on_update and on_update.strip():
            clause += f" ON UPDATE {on_update}"
        self._foreign_keys.append(clause)
        return self

    def unique_key(self, name: str, *columns: str) -> Self:
        names = non_blank(columns)
        if names:
            self._unique_keys.append(f"CONSTRAINT {name} UNIQUE ({', '.join(names)})")
        return self

    def index(self, name: str, *columns: str) -> Self:
        names = non_blank(columns)
        if names:
            self._indexes.append(f"INDEX {name} ({', '.join(names)})")
        return self

    def engine(self, engine: str) -> Self:
        if engine and engine.strip():
            self._engine = engine
        return self

    def charset(self, charset: str) -> Self:
        if charset and charset.strip():
            self._charset = charset
        return self

    def collate(self, collate: str) -> Self:
        if collate and collate.strip():
            self._collate = collate
        return self

    def mysql_defaults(self) -> Self:
        return self.engine("InnoDB").charset("utf8mb4").collate("utf8mb4_general_ci")

    def build(self) -> Statement:
        if self._table is None:
            raise BuilderError("CREATE TABLE requires a table; call create_table() first")
        if not self._columns:
            raise BuilderError("CREATE TABLE requires at least one column")

        definitions = [f"  {name} {' '.join(parts)}" for name, parts in self._columns.items()]
        constraints = (*self._primary_keys, *self._foreign_keys, *self._unique_keys, *self._indexes)
        definitions.extend(f"  {clause}" for clause in constraints)

        head = "CREATE TABLE IF NOT EXISTS" if self._if_not_exists else "CREATE TABLE"
        sql = f"{head} {self._table} (\n" + ",\n".join(definitions) + "\n)"
        if self._engine:
            sql += f" ENGINE={self._engine}"
        if self._charset:
            sql += f" DEFAULT CHARSET={self._charset}"
        if self._collate:
            sql += f" COLLATE={self._collate}"
        return Statement(sql)
