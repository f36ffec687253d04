"""Application configuration helpers."""

from __future__ import annotations

from .business_rules import BusinessRules, get_business_rules
from .env import optional_int_env, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "BusinessRules",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "get_business_rules",
    "get_database_config",
    "get_storage_config",
    "optional_int_env",
    "require_env_vars",
]
