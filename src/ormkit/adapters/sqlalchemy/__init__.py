"""SQLAlchemy adapter: pooled connections, database bootstrap and table sinks."""

from __future__ import annotations

from .bootstrap import database_name, drop_database, ensure_database_exists, server_uri
from .pool import ConnectionPool, PoolInfo, PoolRegistry, engine_options
from .sinks import table_update_sink, table_upsert_sink, update_statement

__all__ = [
    "ConnectionPool",
    "PoolInfo",
    "PoolRegistry",
    "database_name",
    "drop_database",
    "engine_options",
    "ensure_database_exists",
    "server_uri",
    "table_update_sink",
    "table_upsert_sink",
    "update_statement",
]
