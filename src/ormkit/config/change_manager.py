"""Write-behind batching configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .database import DEFAULT_ENV_PREFIX
from .env import env_float, env_int
from .errors import ConfigurationError

DEFAULT_BATCH_SIZE = 3
DEFAULT_FLUSH_INTERVAL_MS = 5000
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class ChangeManagerConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS
    shutdown_timeout_seconds: float = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS

    def validate(self) -> ChangeManagerConfig:
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.flush_interval_ms <= 0:
            raise ConfigurationError(
                f"flush_interval_ms must be > 0, got {self.flush_interval_ms}"
            )
        if self.shutdown_timeout_seconds <= 0:
            raise ConfigurationError(
                f"shutdown_timeout_seconds must be > 0, got {self.shutdown_timeout_seconds}"
            )
        return self

    @classmethod
    def from_environment(cls, *, prefix: str = DEFAULT_ENV_PREFIX) -> ChangeManagerConfig:
        config = cls(
            batch_size=env_int(f"{prefix}BATCH_SIZE", DEFAULT_BATCH_SIZE),
            flush_interval_ms=env_int(f"{prefix}FLUSH_INTERVAL_MS", DEFAULT_FLUSH_INTERVAL_MS),
            shutdown_timeout_seconds=env_float(
                f"{prefix}SHUTDOWN_TIMEOUT", DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
            ),
        )
        return config.validate()
