"""Validation and sanitization of user-supplied settings."""

from __future__ import annotations

import re
from typing import Any

from jofsync.config.exceptions import ConfigurationError

HOSTNAME_PATTERN = re.compile(r"^https?://[\w\-.]+(:\d+)?(/[\w\-.]*)*$")
USERNAME_PATTERN = re.compile(r"^[\w\-.@]+$")
MAX_NAME_LENGTH = 255

# Quotes, statement separators, escapes, NUL and line breaks
_JQL_UNSAFE = re.compile(r"['\";\\\x00\n\r]")


def validate_hostname(hostname: Any) -> str:
    """Validate a JIRA base URL.

    Returns:
        The stripped hostname.

    Raises:
        ConfigurationError: If empty, malformed, not HTTPS, or ending in '/'.
    """
    value = str(hostname or "").strip()
    if not value:
        raise ConfigurationError("Hostname cannot be empty")
    if value.endswith("/"):
        raise ConfigurationError("Hostname cannot end with '/'")
    if not HOSTNAME_PATTERN.match(value):
        raise ConfigurationError(f"Invalid hostname format: {value}")
    if not value.startswith("https://"):
        raise ConfigurationError(f"JIRA hostname must use HTTPS: {value}")
    return value


def validate_username(username: Any) -> str:
    """Validate a JIRA username (letters, digits, _ - . @)."""
    value = str(username or "").strip()
    if not value:
        raise ConfigurationError("Username cannot be empty")
    if not USERNAME_PATTERN.match(value):
        raise ConfigurationError(f"Invalid username format: {value}")
    return value


def validate_name(name: Any, what: str) -> str:
    """Validate an OmniFocus project, folder, or tag name."""
    value = str(name or "").strip()
    if not value:
        raise ConfigurationError(f"{what} name cannot be empty")
    if len(value) > MAX_NAME_LENGTH:
        raise ConfigurationError(f"{what} name too long (max {MAX_NAME_LENGTH} characters)")
    return value


def optional_name(name: Any, what: str) -> str | None:
    """Like validate_name, but empty values mean 'not set'."""
    if name is None or not str(name).strip():
        return None
    return validate_name(name, what)


def sanitize_jql(jql: Any) -> str:
    """Strip characters that could break out of the configured filter."""
    if jql is None:
        return ""
    return _JQL_UNSAFE.sub("", str(jql))
