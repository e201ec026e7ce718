"""Application configuration helpers."""

from __future__ import annotations

from ormkit.common.logging import configure_logging

from .cache import CacheConfig
from .change_manager import ChangeManagerConfig
from .database import DatabaseConfig
from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError

__all__ = [
    "CacheConfig",
    "ChangeManagerConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "configure_logging",
    "require_env_var",
    "require_env_vars",
]
