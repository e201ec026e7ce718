"""Built SQL statements and the helpers builders share."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Self

from sqlalchemy import text

from ormkit.errors import BuilderError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import CursorResult, TextClause
    from sqlalchemy.engine import Connection

log = logging.getLogger(__name__)

type LogicalOperator = Literal["AND", "OR"]
type Params = dict[str, object]


@dataclass(frozen=True, slots=True)
class Statement:
    """SQL text with named bind parameters.

    ``params`` is a single mapping, or a list of mappings for an executemany batch.
    """

    sql: str
    params: Params | list[Params] = field(default_factory=dict)

    @property
    def is_batch(self) -> bool:
        return isinstance(self.params, list)

    def to_text(self) -> TextClause:
        return text(self.sql)

    def execute(self, connection: Connection) -> CursorResult[object]:
        log.debug("Executing SQL: %s", self.sql)
        return connection.execute(self.to_text(), self.params)

    def __str__(self) -> str:
        return self.sql


class ParameterNames:
    """Hands out ``p1``, ``p2``, ... and collects the bound values."""

    def __init__(self) -> None:
        self.values: Params = {}

    def bind(self, value: object) -> str:
        name = f"p{len(self.values) + 1}"
        self.values[name] = value
        return f":{name}"


@dataclass(frozen=True, slots=True)
class WhereCondition:
    column: str
    operator: str
    value: object
    logical_operator: LogicalOperator = "AND"

    def render(self, params: ParameterNames) -> str:
        return f"{self.column} {self.operator} {params.bind(self.value)}"


class WhereClauseMixin:
    """``where``/``or_where`` family shared by SELECT, UPDATE and DELETE builders."""

    _where: list[WhereCondition]

    def where(
        self,
        column: str,
        operator: str,
        value: object,
        logical_operator: LogicalOperator = "AND",
    ) -> Self:
        require_name(column, "WHERE column")
        require_name(operator, "WHERE operator")
        self._where.append(WhereCondition(column, operator, value, logical_operator))
        return self

    def where_equals(self, column: str, value: object) -> Self:
        return self.where(column, "=", value)

    def or_where(self, column: str, operator: str, value: object) -> Self:
        return self.where(column, operator, value, "OR")

    def or_where_equals(self, column: str, value: object) -> Self:
        return self.or_where(column, "=", value)

    def _render_where(self, params: ParameterNames) -> str:
        if not self._where:
            return ""
        parts: list[str] = []
        for index, condition in enumerate(self._where):
            if index:
                parts.append(condition.logical_operator)
            parts.append(condition.render(params))
        return " WHERE " + " ".join(parts)


def require_name(value: str | None, what: str) -> str:
    if value is None or not value.strip():
        raise BuilderError(f"{what} must not be blank")
    return value


def non_blank(values: Iterable[str | None]) -> list[str]:
    return [value for value in values if value is not None and value.strip()]
