"""SQL statement builders producing text with named bind parameters."""

from __future__ import annotations

from .builders import DeleteBuilder, InsertBuilder, SelectBuilder, UpdateBuilder
from .ddl import CreateTableBuilder
from .factory import StatementFactory
from .statement import Statement, WhereCondition
from .types import ColumnType, Constraint

__all__ = [
    "ColumnType",
    "Constraint",
    "CreateTableBuilder",
    "DeleteBuilder",
    "InsertBuilder",
    "SelectBuilder",
    "Statement",
    "StatementFactory",
    "UpdateBuilder",
    "WhereCondition",
]
