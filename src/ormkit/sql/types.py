"""Column types, constraints and shorthand column definitions for DDL."""

from __future__ import annotations

from enum import StrEnum

from ormkit.errors import BuilderError


class ColumnType(StrEnum):
    INT = "INT"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    MEDIUMINT = "MEDIUMINT"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"
    TINYTEXT = "TINYTEXT"
    MEDIUMTEXT = "MEDIUMTEXT"
    LONGTEXT = "LONGTEXT"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"
    YEAR = "YEAR"
    BINARY = "BINARY"
    VARBINARY = "VARBINARY"
    BLOB = "BLOB"
    TINYBLOB = "TINYBLOB"
    MEDIUMBLOB = "MEDIUMBLOB"
    LONGBLOB = "LONGBLOB"
    ENUM = "ENUM"
    SET = "SET"
    JSON = "JSON"

    def sized(self, size: int) -> str:
        return f"{self.value}({size})"

    def precision(self, precision: int, scale: int) -> str:
        return f"{self.value}({precision},{scale})"

    def values(self, *values: str) -> str:
        if self not in (ColumnType.ENUM, ColumnType.SET):
            raise BuilderError("Only ENUM and SET columns take a value list")
        quoted = ",".join(_quote(value) for value in values)
        return f"{self.value}({quoted})"


class Constraint(StrEnum):
    NOT_NULL = "NOT NULL"
    NULL = "NULL"
    AUTO_INCREMENT = "AUTO_INCREMENT"
    PRIMARY_KEY = "PRIMARY KEY"
    UNIQUE = "UNIQUE"
    UNSIGNED = "UNSIGNED"
    ZEROFILL = "ZEROFILL"
    CASCADE = "CASCADE"
    RESTRICT = "RESTRICT"
    SET_NULL = "SET NULL"
    NO_ACTION = "NO ACTION"
    DEFAULT_NULL = "DEFAULT NULL"
    DEFAULT_CURRENT_TIMESTAMP = "DEFAULT CURRENT_TIMESTAMP"
    ON_UPDATE_CURRENT_TIMESTAMP = "ON UPDATE CURRENT_TIMESTAMP"


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def default(value: str | float) -> str:
    """``DEFAULT`` clause; strings are quoted, numbers are not."""

    if isinstance(value, str):
        return f"DEFAULT {_quote(value)}"
    return f"DEFAULT {value}"


def comment(text: str) -> str:
    return f"COMMENT {_quote(text)}"


def pk_int() -> str:
    return f"{ColumnType.INT} {Constraint.AUTO_INCREMENT} {Constraint.PRIMARY_KEY}"


def pk_bigint() -> str:
    return f"{ColumnType.BIGINT} {Constraint.AUTO_INCREMENT} {Constraint.PRIMARY_KEY}"


def varchar_null(size: int) -> str:
    return f"{ColumnType.VARCHAR.sized(size)} {Constraint.NULL}"


def varchar_not_null(size: int) -> str:
    return f"{ColumnType.VARCHAR.sized(size)} {Constraint.NOT_NULL}"


def int_not_null() -> str:
    return f"{ColumnType.INT} {Constraint.NOT_NULL}"


def int_null() -> str:
    return f"{ColumnType.INT} {Constraint.NULL}"


def timestamp_default_current() -> str:
    return f"{ColumnType.TIMESTAMP} {Constraint.DEFAULT_CURRENT_TIMESTAMP}"


def timestamp_default_current_on_update() -> str:
    return (
        f"{ColumnType.TIMESTAMP} {Constraint.DEFAULT_CURRENT_TIMESTAMP} "
        f"{Constraint.ON_UPDATE_CURRENT_TIMESTAMP}"
    )
