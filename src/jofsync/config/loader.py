"""Configuration loading for jofsync."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from jofsync.config.credentials import resolve_credentials
from jofsync.config.exceptions import ConfigurationError
from jofsync.config.models import Credentials, SyncConfig

CONFIG_FILENAME = ".jofsync.yaml"
CONFIG_ENV_VAR = "JOFSYNC_CONFIG"

# Sections of the YAML file that are flattened into one settings dict
SECTIONS = ("jira", "omnifocus")

DEFAULT_SETTINGS: dict[str, Any] = {
    "hostname": "https://please-configure-me.atlassian.net",
    "usekeychain": False,
    "username": "",
    "password": "",
    "filter": "resolution = Unresolved and issue in watchedissues()",
    "ssl_verify": True,
    "current_user": None,
    "tag": "Office",
    "project": "Jira",
    "flag": True,
    "inbox": False,
    "newproj": False,
    "folder": "Jira",
    "descsync": False,
    "notify": True,
}


def default_config_path() -> Path:
    """Return the config path from JOFSYNC_CONFIG, else ~/.jofsync.yaml."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILENAME


def load_settings(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load flattened settings from a YAML file on top of the defaults.

    A missing file yields the defaults, which fail validation until a
    hostname is configured.

    Args:
        config_path: Path to the YAML file. Defaults to default_config_path().

    Returns:
        Settings dictionary.

    Raises:
        ConfigurationError: If the file is unreadable, not valid YAML, or not a mapping.
    """
    config_path = Path(config_path) if config_path is not None else default_config_path()
    settings = dict(DEFAULT_SETTINGS)

    if not config_path.exists():
        return settings

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e

    if data is None:
        return settings
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a YAML mapping, got {type(data).__name__}"
        )

    for key, value in data.items():
        if key in SECTIONS:
            if not isinstance(value, dict):
                raise ConfigurationError(f"Section '{key}' must be a mapping")
            settings.update(value)
        else:
            settings[key] = value
    return settings


def apply_overrides(settings: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Return settings with every non-None override applied."""
    merged = dict(settings)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    return merged


def build_config(settings: dict[str, Any]) -> tuple[SyncConfig, Credentials]:
    """Validate settings and resolve credentials.

    Returns:
        The run configuration and the JIRA credentials.

    Raises:
        ConfigurationError: If settings are invalid.
        AuthenticationError: If credentials cannot be resolved.
    """
    # Validate everything that does not need credentials before touching the keychain
    config = SyncConfig.from_dict(settings)
    credentials = resolve_credentials(settings)
    return config, credentials
