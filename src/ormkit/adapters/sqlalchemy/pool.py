"""Connection pooling on top of SQLAlchemy engines."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool, StaticPool

from ormkit.errors import DatabaseError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Connection, Engine

    from ormkit.config.database import DatabaseConfig

log = logging.getLogger(__name__)

_MEMORY_DATABASES = frozenset({None, "", ":memory:"})


@dataclass(frozen=True, slots=True)
class PoolInfo:
    name: str
    size: int
    checked_in: int
    checked_out: int
    overflow: int

    def __str__(self) -> str:
        return (
            f"Pool[{self.name}] - size: {self.size}, checked in: {self.checked_in}, "
            f"checked out: {self.checked_out}, overflow: {self.overflow}"
        )


def engine_options(config: DatabaseConfig) -> dict[str, object]:
    """Translate a :class:`DatabaseConfig` into ``create_engine`` keyword arguments.

    SQLite ignores the sizing knobs; in-memory SQLite shares one connection across threads
    so that background flushes see the same database as the caller.
    """

    options: dict[str, object] = {"echo": config.echo, "pool_pre_ping": config.pool_pre_ping}
    if config.pool_name:
        options["pool_logging_name"] = config.pool_name
    if config.is_sqlite:
        if make_url(config.uri).database in _MEMORY_DATABASES:
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout_seconds,
        pool_recycle=config.pool_recycle_seconds,
    )
    return options


class ConnectionPool:
    """A named, closable SQLAlchemy engine handing out pooled connections."""

    def __init__(self, config: DatabaseConfig, *, engine: Engine | None = None) -> None:
        self.config = config.validate()
        self.name = config.pool_name or f"ormkit-{make_url(config.uri).get_backend_name()}"
        if engine is None:
            try:
                engine = create_engine(config.uri, **engine_options(config))
            except (SQLAlchemyError, ImportError) as exc:
                raise DatabaseError(f"Failed to create connection pool {self.name}: {exc}") from exc
        self._engine: Engine = engine
        self._closed = False
        log.debug("Created connection pool %s", self.name)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def engine(self) -> Engine:
        if self._closed:
            raise DatabaseError(f"Connection pool {self.name} is closed")
        return self._engine

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Yield a pooled connection; the caller controls transactions."""

        try:
            connection = self.engine.connect()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to get a connection from pool {self.name}") from exc
        with connection:
            yield connection

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Yield a connection inside a transaction, committed on success."""

        engine = self.engine
        try:
            with engine.begin() as connection:
                yield connection
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Transaction on pool {self.name} failed: {exc}") from exc

    def ping(self) -> None:
        with self.connect() as connection:
            try:
                connection.execute(text("SELECT 1"))
            except SQLAlchemyError as exc:
                raise DatabaseError(f"Pool {self.name} failed its connection check") from exc

    def info(self) -> PoolInfo:
        pool = self.engine.pool
        if isinstance(pool, QueuePool):
            return PoolInfo(
                name=self.name,
                size=pool.size(),
                checked_in=pool.checkedin(),
                checked_out=pool.checkedout(),
                overflow=max(pool.overflow(), 0),
            )
        return PoolInfo(name=self.name, size=0, checked_in=0, checked_out=0, overflow=0)

    def close(self) -> None:
        if self._closed:
            return
        self._engine.dispose()
        self._closed = True
        log.info("Closed connection pool %s", self.name)


class PoolRegistry:
    """Named connection pools owned by one client."""

    def __init__(self) -> None:
        self._pools: dict[str, ConnectionPool] = {}
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        config: DatabaseConfig,
        *,
        verify: bool = True,
        engine: Engine | None = None,
    ) -> ConnectionPool:
        """Create a pool for ``config`` under ``name``, replacing (and closing) any previous one."""

        pool = ConnectionPool(config, engine=engine)
        if verify:
            try:
                pool.ping()
            except DatabaseError:
                pool.close()
                raise
        with self._lock:
            previous = self._pools.get(name)
            self._pools[name] = pool
        if previous is not None:
            previous.close()
        log.info("Registered connection pool %s as %r", pool.name, name)
        return pool

    def get(self, name: str) -> ConnectionPool:
        with self._lock:
            pool = self._pools.get(name)
        if pool is None:
            raise DatabaseError(f"No connection pool registered as {name!r}")
        if pool.closed:
            raise DatabaseError(f"Connection pool {name!r} is closed")
        return pool

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._pools)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._pools

    def close(self, name: str) -> None:
        with self._lock:
            pool = self._pools.pop(name, None)
        if pool is not None:
            pool.close()

    def close_all(self) -> None:
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
        for pool in pools:
            pool.close()
        log.debug("Closed %d connection pools", len(pools))
