"""Entry point handing out fresh builders, plus common table presets."""

from __future__ import annotations

from .builders import DeleteBuilder, InsertBuilder, SelectBuilder, UpdateBuilder
from .ddl import CreateTableBuilder
from .types import (
    ColumnType,
    Constraint,
    default,
    pk_int,
    timestamp_default_current,
    timestamp_default_current_on_update,
)


class StatementFactory:
    def select(self, *columns: str) -> SelectBuilder:
        return SelectBuilder().select(*columns)

    def insert_into(self, table: str) -> InsertBuilder:
        return InsertBuilder().insert_into(table)

    def update(self, table: str) -> UpdateBuilder:
        return UpdateBuilder().update(table)

    def delete_from(self, table: str) -> DeleteBuilder:
        return DeleteBuilder().delete_from(table)

    def create_table(self, table: str) -> CreateTableBuilder:
        return CreateTableBuilder().create_table(table)

    def create_standard_table(self, table: str) -> CreateTableBuilder:
        """``id`` primary key plus ``created_at``/``updated_at`` timestamps."""

        return (
            self.create_table(table)
            .if_not_exists()
            .column("id", pk_int())
            .add_created_at_column()
            .add_updated_at_column()
        )

    def create_user_table(self, table: str) -> CreateTableBuilder:
        return (
            self.create_table(table)
            .if_not_exists()
            .column("id", pk_int())
            .column(
                "username", ColumnType.VARCHAR.sized(50), Constraint.NOT_NULL, Constraint.UNIQUE
            )
            .column("password", ColumnType.VARCHAR.sized(255), Constraint.NOT_NULL)
            .column("email", ColumnType.VARCHAR.sized(100), Constraint.NOT_NULL, Constraint.UNIQUE)
            .column("status", ColumnType.TINYINT.sized(1), Constraint.NOT_NULL, default(1))
            .column("created_at", timestamp_default_current())
            .column("updated_at", timestamp_default_current_on_update())
        )
