"""Client facade over a connection pool, statement builders, caches and change managers."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Literal

from ormkit.adapters.sqlalchemy.bootstrap import ensure_database_exists
from ormkit.adapters.sqlalchemy.pool import PoolRegistry
from ormkit.cache import CacheManager
from ormkit.config.change_manager import ChangeManagerConfig
from ormkit.config.database import DatabaseConfig
from ormkit.config.errors import ConfigurationError
from ormkit.domain.change_manager import ChangeManager
from ormkit.errors import DatabaseError, OrmError
from ormkit.sql import StatementFactory

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from sqlalchemy.engine import Connection, Result

    from ormkit.adapters.sqlalchemy.pool import ConnectionPool, PoolInfo
    from ormkit.domain.model.dirty import DirtyTracker
    from ormkit.domain.ports.persistence import FlushFailureHandler, UpdateSink
    from ormkit.sql import (
        CreateTableBuilder,
        DeleteBuilder,
        InsertBuilder,
        SelectBuilder,
        Statement,
        UpdateBuilder,
    )

log = logging.getLogger(__name__)


class OrmClient:
    """One database, its pool and everything built on top of it.

    Create with :meth:`builder` or call :meth:`initialize` with a :class:`DatabaseConfig`
    before use. :meth:`close` releases managers, pools and caches in that order.
    """

    def __init__(self, name: str = "default", *, cache_manager: CacheManager | None = None) -> None:
        self.name = name
        self._pools = PoolRegistry()
        self._cache_manager = cache_manager or CacheManager()
        self._statements = StatementFactory()
        self._managers: list[ChangeManager[DirtyTracker]] = []
        self._lock = threading.Lock()
        self._config: DatabaseConfig | None = None
        self._closed = False

    @staticmethod
    def builder() -> ClientBuilder:
        return ClientBuilder()

    def initialize(self, config: DatabaseConfig, *, verify: bool = True) -> OrmClient:
        if self._closed:
            raise ConfigurationError(f"Client {self.name!r} is closed")
        config.validate()
        try:
            if config.auto_create_database:
                ensure_database_exists(config)
            self._pools.register(self.name, config, verify=verify)
        except DatabaseError as exc:
            raise ConfigurationError(f"Failed to initialize client {self.name!r}: {exc}") from exc
        self._config = config
        log.info("Initialized client %s", self.name)
        return self

    @property
    def initialized(self) -> bool:
        return self._config is not None and not self._closed

    @property
    def config(self) -> DatabaseConfig:
        if self._config is None:
            raise ConfigurationError(f"Client {self.name!r} is not initialized")
        return self._config

    @property
    def pool(self) -> ConnectionPool:
        self._require_initialized()
        return self._pools.get(self.name)

    @property
    def cache_manager(self) -> CacheManager:
        return self._cache_manager

    def select(self, *columns: str) -> SelectBuilder:
        self._require_initialized()
        return self._statements.select(*columns)

    def insert_into(self, table: str) -> InsertBuilder:
        self._require_initialized()
        return self._statements.insert_into(table)

    def update(self, table: str) -> UpdateBuilder:
        self._require_initialized()
        return self._statements.update(table)

    def delete_from(self, table: str) -> DeleteBuilder:
        self._require_initialized()
        return self._statements.delete_from(table)

    def create_table(self, table: str) -> CreateTableBuilder:
        self._require_initialized()
        return self._statements.create_table(table)

    def execute(self, statement: Statement) -> Result[Any]:
        """Run ``statement`` in its own transaction.

        Rows of a SELECT are buffered, so the result stays readable after the commit.
        """

        with self.pool.begin() as connection:
            result = statement.execute(connection)
            if result.returns_rows:
                return result.freeze()()
            return result

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        with self.pool.connect() as connection:
            yield connection

    def pool_info(self) -> PoolInfo:
        return self.pool.info()

    def create_change_manager[T: DirtyTracker](
        self,
        update_sink: UpdateSink[T],
        config: ChangeManagerConfig | None = None,
        *,
        name: str | None = None,
        on_scheduled_failure: FlushFailureHandler | None = None,
    ) -> ChangeManager[T]:
        """Start a change manager that is shut down together with this client."""

        if self._closed:
            raise ConfigurationError(f"Client {self.name!r} is closed")
        manager = ChangeManager.from_config(
            update_sink,
            config or ChangeManagerConfig(),
            name=name or self.name,
            on_scheduled_failure=on_scheduled_failure,
        )
        with self._lock:
            self._managers.append(manager)  # type: ignore[arg-type]
        return manager

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            managers = list(self._managers)
            self._managers.clear()

        for manager in managers:
            try:
                manager.shutdown()
            except OrmError:
                log.exception("Failed to shut down %r", manager)
        self._pools.close_all()
        self._cache_manager.shutdown()
        log.info("Closed client %s", self.name)

    def __enter__(self) -> OrmClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise ConfigurationError(
                f"Client {self.name!r} is not initialized; call initialize() first"
            )


class ClientBuilder:
    """Fluent construction of an initialized :class:`OrmClient`."""

    def __init__(self) -> None:
        self._name = "default"
        self._config: DatabaseConfig | None = None
        self._pool: dict[str, object] = {}
        self._verify = True
        self._cache_manager: CacheManager | None = None

    def name(self, name: str) -> ClientBuilder:
        self._name = name
        return self

    def config(self, config: DatabaseConfig) -> ClientBuilder:
        self._config = config
        return self

    def mysql(  # noqa: PLR0913
        self,
        host: str,
        port: int,
        database: str,
        username: str,
        password: str,
    ) -> ClientBuilder:
        self._config = DatabaseConfig.mysql(host, port, database, username, password)
        return self

    def sqlite(self, path: str | None = None) -> ClientBuilder:
        self._config = DatabaseConfig.sqlite(path)
        return self

    def pool(
        self,
        *,
        size: int | None = None,
        max_overflow: int | None = None,
        timeout_seconds: float | None = None,
        recycle_seconds: int | None = None,
    ) -> ClientBuilder:
        options = {
            "pool_size": size,
            "max_overflow": max_overflow,
            "pool_timeout_seconds": timeout_seconds,
            "pool_recycle_seconds": recycle_seconds,
        }
        self._pool.update({key: value for key, value in options.items() if value is not None})
        return self

    def pool_name(self, pool_name: str) -> ClientBuilder:
        self._pool["pool_name"] = pool_name
        return self

    def auto_create_database(self, enabled: bool = True) -> ClientBuilder:  # noqa: FBT001, FBT002
        self._pool["auto_create_database"] = enabled
        return self

    def verify(self, enabled: bool = True) -> ClientBuilder:  # noqa: FBT001, FBT002
        self._verify = enabled
        return self

    def cache_manager(self, cache_manager: CacheManager) -> ClientBuilder:
        self._cache_manager = cache_manager
        return self

    def build(self) -> OrmClient:
        if self._config is None:
            raise ConfigurationError(
                "No database configured; call config(), mysql() or sqlite() first"
            )
        config = self._config
        if self._pool:
            config = replace(config, **self._pool)  # type: ignore[arg-type]
        client = OrmClient(self._name, cache_manager=self._cache_manager)
        return client.initialize(config, verify=self._verify)
