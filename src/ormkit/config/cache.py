"""Memory cache configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class CacheConfig:
    sweep_interval_seconds: float = 60.0
    default_ttl_seconds: float | None = None

    def validate(self) -> CacheConfig:
        if self.sweep_interval_seconds <= 0:
            raise ConfigurationError(
                f"sweep_interval_seconds must be > 0, got {self.sweep_interval_seconds}"
            )
        if self.default_ttl_seconds is not None and self.default_ttl_seconds <= 0:
            raise ConfigurationError(
                f"default_ttl_seconds must be > 0, got {self.default_ttl_seconds}"
            )
        return self
