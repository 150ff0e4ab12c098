"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError
from .logging import configure_logging, level_for_verbosity
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .triage import TriageConfig, get_triage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "TriageConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "get_triage_config",
    "level_for_verbosity",
    "optional_env_var",
]
