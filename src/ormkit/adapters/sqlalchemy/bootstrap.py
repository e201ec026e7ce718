"""Create or drop the target database before a pool connects to it."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Final

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError

from ormkit.errors import DatabaseError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from ormkit.config.database import DatabaseConfig

log = logging.getLogger(__name__)

type EngineFactory = Callable[[str], Engine]

_DATABASE_NAME: Final = re.compile(r"^\w+$")


def database_name(uri: str) -> str | None:
    return make_url(uri).database or None


def server_uri(uri: str) -> str:
    """The same URI without its database component."""

    url = make_url(uri)
    server = URL.create(
        url.drivername,
        username=url.username,
        password=url.password,
        host=url.host,
        port=url.port,
        query=url.query,
    )
    return server.render_as_string(hide_password=False)


def ensure_database_exists(
    config: DatabaseConfig,
    *,
    engine_factory: EngineFactory = create_engine,
) -> bool:
    """Create the configured MySQL database if it is missing.

    Other backends create their databases on connect (SQLite) or need an administrator
    (PostgreSQL), so they are skipped.
    """

    if not config.is_mysql:
        log.info("Skipping database creation for non-MySQL URI")
        return True

    name = database_name(config.uri)
    if name is None:
        raise DatabaseError("Cannot determine the database name from the configured URI")
    _check_name(name)

    _execute_on_server(
        config,
        f"CREATE DATABASE IF NOT EXISTS `{name}` "
        "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci",
        engine_factory,
    )
    log.info("Database %s created or already present", name)
    return True


def drop_database(
    config: DatabaseConfig,
    name: str,
    *,
    engine_factory: EngineFactory = create_engine,
) -> bool:
    if not config.is_mysql:
        log.warning("drop_database only supports MySQL URIs")
        return False
    _check_name(name)
    try:
        _execute_on_server(config, f"DROP DATABASE IF EXISTS `{name}`", engine_factory)
    except DatabaseError:
        log.exception("Failed to drop database %s", name)
        return False
    log.info("Dropped database %s", name)
    return True


def _check_name(name: str) -> None:
    if not _DATABASE_NAME.match(name):
        raise DatabaseError(f"Refusing to use database name {name!r}")


def _execute_on_server(config: DatabaseConfig, sql: str, engine_factory: EngineFactory) -> None:
    try:
        engine = engine_factory(server_uri(config.uri))
    except (SQLAlchemyError, ImportError) as exc:
        raise DatabaseError(f"Cannot reach database server: {exc}") from exc
    try:
        with engine.begin() as connection:
            connection.execute(text(sql))
    except SQLAlchemyError as exc:
        raise DatabaseError(f"Database statement failed: {exc}") from exc
    finally:
        engine.dispose()
