"""Configuration error definitions."""

from __future__ import annotations

from ormkit.errors import OrmError


class ConfigurationError(OrmError):
    """Raised when configuration values are invalid."""

    default_code = "CONFIG_ERROR"


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""
