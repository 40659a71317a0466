"""Credential resolution from the config file or the macOS keychain."""

from __future__ import annotations

import logging
import re
import subprocess
from typing import Any
from urllib.parse import urlsplit

from jofsync.config.exceptions import AuthenticationError, ConfigurationError
from jofsync.config.models import Credentials
from jofsync.config.validation import validate_hostname, validate_username

logger = logging.getLogger("jofsync.config")

KEYCHAIN_TIMEOUT = 30
_ACCOUNT_PATTERN = re.compile(r'"acct"<blob>="(.*)"')


def _run_security(*args: str) -> str:
    """Run the macOS ``security`` tool.

    Raises:
        subprocess.CalledProcessError: If the item is not found
        FileNotFoundError: If ``security`` is not installed
    """
    result = subprocess.run(
        ["security", *args],
        capture_output=True,
        text=True,
        check=True,
        timeout=KEYCHAIN_TIMEOUT,
    )
    return result.stdout.strip()


def keychain_credentials(hostname: str) -> Credentials:
    """Look up the internet password stored for the JIRA host.

    Args:
        hostname: JIRA base URL

    Returns:
        Credentials with the keychain item's account and password

    Raises:
        AuthenticationError: If the keychain has no usable item for the host
    """
    host = urlsplit(hostname).hostname or hostname
    hint = (
        f"Password for {host} not found in keychain; add it using "
        f"'security add-internet-password -a <username> -s {host} -w <password>'"
    )
    logger.debug("Looking up keychain item for %s", host)
    try:
        attributes = _run_security("find-internet-password", "-s", host)
        password = _run_security("find-internet-password", "-s", host, "-w")
    except FileNotFoundError as e:
        raise AuthenticationError("Keychain lookup requires the macOS 'security' tool") from e
    except subprocess.TimeoutExpired as e:
        raise AuthenticationError(f"Keychain lookup for {host} timed out") from e
    except subprocess.CalledProcessError as e:
        raise AuthenticationError(hint) from e

    match = _ACCOUNT_PATTERN.search(attributes)
    if not match or not match.group(1) or not password:
        raise AuthenticationError(hint)
    return Credentials(username=match.group(1), password=password)


def resolve_credentials(data: dict[str, Any]) -> Credentials:
    """Resolve JIRA credentials from settings.

    Uses the keychain when ``usekeychain`` is set, otherwise the username
    and password from the settings.

    Raises:
        ConfigurationError: If username or password is missing
        AuthenticationError: If the keychain lookup fails
    """
    if data.get("usekeychain"):
        return keychain_credentials(validate_hostname(data.get("hostname")))

    if not str(data.get("username") or "").strip():
        raise ConfigurationError("Username is required (set in config file or use --usekeychain)")
    username = validate_username(data["username"])

    password = str(data.get("password") or "")
    if not password:
        raise ConfigurationError("Password is required (set in config file or use --usekeychain)")
    return Credentials(username=username, password=password)
