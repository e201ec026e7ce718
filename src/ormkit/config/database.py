"""Database and connection-pool configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from sqlalchemy.engine import URL

from .env import env_bool, env_float, env_int, optional_env_var, require_env_var
from .errors import ConfigurationError

DEFAULT_ENV_PREFIX: Final[str] = "ORMKIT_"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Connection URI plus the pool settings handed to SQLAlchemy's ``create_engine``."""

    uri: str
    pool_size: int = 10
    max_overflow: int = 0
    pool_timeout_seconds: float = 30.0
    pool_recycle_seconds: int = 1800
    pool_pre_ping: bool = True
    pool_name: str | None = None
    echo: bool = False
    auto_create_database: bool = False

    def validate(self) -> DatabaseConfig:
        if not self.uri or not self.uri.strip():
            raise ConfigurationError("Database URI must not be blank")
        if self.pool_size < 1:
            raise ConfigurationError(f"pool_size must be >= 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ConfigurationError(f"max_overflow must be >= 0, got {self.max_overflow}")
        if self.pool_timeout_seconds <= 0:
            raise ConfigurationError(
                f"pool_timeout_seconds must be > 0, got {self.pool_timeout_seconds}"
            )
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")

    @property
    def is_mysql(self) -> bool:
        return self.uri.startswith("mysql")

    @classmethod
    def from_environment(cls, *, prefix: str = DEFAULT_ENV_PREFIX) -> DatabaseConfig:
        defaults = cls(uri="")
        config = cls(
            uri=require_env_var(f"{prefix}DATABASE_URI"),
            pool_size=env_int(f"{prefix}POOL_SIZE", defaults.pool_size),
            max_overflow=env_int(f"{prefix}MAX_OVERFLOW", defaults.max_overflow),
            pool_timeout_seconds=env_float(f"{prefix}POOL_TIMEOUT", defaults.pool_timeout_seconds),
            pool_recycle_seconds=env_int(f"{prefix}POOL_RECYCLE", defaults.pool_recycle_seconds),
            pool_name=optional_env_var(f"{prefix}POOL_NAME"),
            echo=env_bool(f"{prefix}DB_ECHO", defaults.echo),
            auto_create_database=env_bool(
                f"{prefix}AUTO_CREATE_DATABASE", defaults.auto_create_database
            ),
        )
        return config.validate()

    @classmethod
    def mysql(  # noqa: PLR0913
        cls,
        host: str,
        port: int,
        database: str,
        username: str,
        password: str,
        **pool: object,
    ) -> DatabaseConfig:
        url = URL.create(
            "mysql+pymysql",
            username=username,
            password=password,
            host=host,
            port=port,
            database=database,
        )
        return cls(uri=url.render_as_string(hide_password=False), **pool)  # type: ignore[arg-type]

    @classmethod
    def sqlite(cls, path: str | None = None, **pool: object) -> DatabaseConfig:
        location = path or ":memory:"
        return cls(uri=f"sqlite+pysqlite:///{location}", **pool)  # type: ignore[arg-type]
