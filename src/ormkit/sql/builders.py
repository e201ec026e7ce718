"""Fluent builders for SELECT, INSERT, UPDATE and DELETE statements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Self

from ormkit.errors import BuilderError

from .statement import (
    ParameterNames,
    Params,
    Statement,
    WhereClauseMixin,
    WhereCondition,
    non_blank,
    require_name,
)

log = logging.getLogger(__name__)

type JoinType = Literal["INNER", "LEFT", "RIGHT"]

_DESCENDING = frozenset({"DESC", "DESCENDING"})


@dataclass(frozen=True, slots=True)
class _Join:
    join_type: JoinType
    table: str
    on_condition: str

    def render(self) -> str:
        return f"{self.join_type} JOIN {self.table} ON {self.on_condition}"


class SelectBuilder(WhereClauseMixin):
    def __init__(self) -> None:
        self._columns: list[str] = ["*"]
        self._table: str | None = None
        self._joins: list[_Join] = []
        self._where: list[WhereCondition] = []
        self._group_by: list[str] = []
        self._having: list[tuple[str, str, object]] = []
        self._order_by: list[tuple[str, str]] = []
        self._limit: int | None = None
        self._offset: int | None = None

    def select(self, *columns: str) -> Self:
        self._columns = list(columns) if columns else ["*"]
        return self

    def from_(self, table: str) -> Self:
        self._table = require_name(table, "Table name")
        return self

    def join(self, table: str, on_condition: str) -> Self:
        return self._add_join("INNER", table, on_condition)

    def left_join(self, table: str, on_condition: str) -> Self:
        return self._add_join("LEFT", table, on_condition)

    def right_join(self, table: str, on_condition: str) -> Self:
        return self._add_join("RIGHT", table, on_condition)

    def group_by(self, *columns: str) -> Self:
        self._group_by.extend(non_blank(columns))
        return self

    def having(self, expression: str, operator: str, value: object) -> Self:
        require_name(expression, "HAVING expression")
        require_name(operator, "HAVING operator")
        self._having.append((expression, operator, value))
        return self

    def order_by(self, column: str, direction: str = "ASC") -> Self:
        if column and column.strip():
            normalized = "DESC" if direction and direction.upper() in _DESCENDING else "ASC"
            self._order_by.append((column, normalized))
        return self

    def limit(self, limit: int) -> Self:
        if limit < 0:
            raise BuilderError("LIMIT must not be negative")
        self._limit = limit
        return self

    def offset(self, offset: int) -> Self:
        if offset < 0:
            raise BuilderError("OFFSET must not be negative")
        self._offset = offset
        return self

    def build(self) -> Statement:
        if self._table is None:
            raise BuilderError("SELECT requires a table; call from_() first")

        params = ParameterNames()
        sql = f"SELECT {', '.join(self._columns)} FROM {self._table}"
        for join in self._joins:
            sql += " " + join.render()
        sql += self._render_where(params)
        if self._group_by:
            sql += " GROUP BY " + ", ".join(self._group_by)
            if self._having:
                rendered = [
                    f"{expression} {operator} {params.bind(value)}"
                    for expression, operator, value in self._having
                ]
                sql += " HAVING " + " AND ".join(rendered)
        if self._order_by:
            ordering = (f"{column} {direction}" for column, direction in self._order_by)
            sql += " ORDER BY " + ", ".join(ordering)
        if self._limit is not None:
            sql += f" LIMIT {params.bind(self._limit)}"
            if self._offset is not None:
                sql += f" OFFSET {params.bind(self._offset)}"
        return Statement(sql, params.values)

    def _add_join(self, join_type: JoinType, table: str, on_condition: str) -> Self:
        require_name(table, "JOIN table")
        require_name(on_condition, "JOIN condition")
        self._joins.append(_Join(join_type, table, on_condition))
        return self


class InsertBuilder:
    """Single-row inserts via ``value()``, batches via ``columns()`` + ``add_row()``."""

    def __init__(self) -> None:
        self._table: str | None = None
        self._values: dict[str, object] = {}
        self._columns: list[str] = []
        self._rows: list[tuple[object, ...]] = []

    def insert_into(self, table: str) -> Self:
        self._table = require_name(table, "Table name")
        return self

    def value(self, column: str, value: object) -> Self:
        self._values[require_name(column, "Column name")] = value
        return self

    def values(self, mapping: dict[str, object]) -> Self:
        for column, value in mapping.items():
            self.value(column, value)
        return self

    def columns(self, *columns: str) -> Self:
        names = non_blank(columns)
        if not names:
            raise BuilderError("columns() requires at least one column name")
        self._columns = names
        return self

    def add_row(self, *values: object) -> Self:
        if not self._columns:
            raise BuilderError("Call columns() before add_row()")
        if len(values) != len(self._columns):
            raise BuilderError(
                f"Expected {len(self._columns)} values per row, got {len(values)}"
            )
        self._rows.append(values)
        return self

    def build(self) -> Statement:
        if self._table is None:
            raise BuilderError("INSERT requires a table; call insert_into() first")

        if self._rows:
            names = [f"p{index}" for index in range(1, len(self._columns) + 1)]
            placeholders = ", ".join(f":{name}" for name in names)
            sql = f"INSERT INTO {self._table} ({', '.join(self._columns)}) VALUES ({placeholders})"
            batch: list[Params] = [dict(zip(names, row, strict=True)) for row in self._rows]
            return Statement(sql, batch)

        if not self._values:
            raise BuilderError("INSERT requires at least one value() or add_row()")
        params = ParameterNames()
        placeholders = ", ".join(params.bind(value) for value in self._values.values())
        sql = f"INSERT INTO {self._table} ({', '.join(self._values)}) VALUES ({placeholders})"
        return Statement(sql, params.values)


class UpdateBuilder(WhereClauseMixin):
    def __init__(self) -> None:
        self._table: str | None = None
        self._assignments: dict[str, object] = {}
        self._where: list[WhereCondition] = []

    def update(self, table: str) -> Self:
        self._table = require_name(table, "Table name")
        return self

    def set(self, column: str, value: object) -> Self:
        self._assignments[require_name(column, "SET column")] = value
        return self

    def build(self) -> Statement:
        if self._table is None:
            raise BuilderError("UPDATE requires a table; call update() first")
        if not self._assignments:
            raise BuilderError("UPDATE requires at least one set()")
        if not self._where:
            log.warning("UPDATE on %s has no WHERE clause and will touch every row", self._table)

        params = ParameterNames()
        assignments = ", ".join(
            f"{column} = {params.bind(value)}" for column, value in self._assignments.items()
        )
        sql = f"UPDATE {self._table} SET {assignments}" + self._render_where(params)
        return Statement(sql, params.values)


class DeleteBuilder(WhereClauseMixin):
    def __init__(self) -> None:
        self._table: str | None = None
        self._where: list[WhereCondition] = []
        self._limit: int | None = None

    def delete_from(self, table: str) -> Self:
        self._table = require_name(table, "Table name")
        return self

    def limit(self, limit: int) -> Self:
        if limit < 0:
            raise BuilderError("LIMIT must not be negative")
        self._limit = limit
        return self

    def build(self) -> Statement:
        if self._table is None:
            raise BuilderError("DELETE requires a table; call delete_from() first")
        if not self._where:
            log.warning("DELETE on %s has no WHERE clause and will remove every row", self._table)

        params = ParameterNames()
        sql = f"DELETE FROM {self._table}" + self._render_where(params)
        if self._limit is not None:
            sql += f" LIMIT {params.bind(self._limit)}"
        return Statement(sql, params.values)
