# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from ormkit.adapters.sqlalchemy import ConnectionPool, ensure_database_exists
from ormkit.config import ConfigurationError, DatabaseConfig, configure_logging
from ormkit.errors import DatabaseError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inspect and prepare an ormkit database")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--env-prefix",
        type=str,
        default="ORMKIT_",
        help="Prefix of the environment variables holding the database settings",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("ping", help="Open the pool and run SELECT 1")
    subparsers.add_parser("pool-info", help="Print connection pool statistics")
    subparsers.add_parser(
        "create-database",
        help="Create the configured MySQL database if it does not exist",
    )

    return parser.parse_args(list(argv))


def _ping(config: DatabaseConfig) -> None:
    pool = ConnectionPool(config)
    try:
        pool.ping()
        print(f"OK {pool.info()}")
    finally:
        pool.close()


def _pool_info(config: DatabaseConfig) -> None:
    pool = ConnectionPool(config)
    try:
        print(pool.info())
    finally:
        pool.close()


def _create_database(config: DatabaseConfig) -> None:
    ensure_database_exists(config)
    print("Database ready")


_COMMANDS = {
    "ping": _ping,
    "pool-info": _pool_info,
    "create-database": _create_database,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Command line entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.debug else logging.INFO)

    try:
        config = DatabaseConfig.from_environment(prefix=parsed_args.env_prefix)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)

    try:
        _COMMANDS[parsed_args.command](config)
    except DatabaseError:
        log.exception("Command %s failed", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
