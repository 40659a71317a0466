"""Configuration - YAML settings, CLI overrides, validation, and credentials."""

from jofsync.config.credentials import keychain_credentials, resolve_credentials
from jofsync.config.exceptions import AuthenticationError, ConfigurationError
from jofsync.config.loader import (
    DEFAULT_SETTINGS,
    apply_overrides,
    build_config,
    default_config_path,
    load_settings,
)
from jofsync.config.models import Credentials, SyncConfig, resolve_placement

__all__ = [
    "DEFAULT_SETTINGS",
    "AuthenticationError",
    "ConfigurationError",
    "Credentials",
    "SyncConfig",
    "apply_overrides",
    "build_config",
    "default_config_path",
    "keychain_credentials",
    "load_settings",
    "resolve_credentials",
    "resolve_placement",
]
