"""Configuration models for jofsync."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from jofsync.config.exceptions import ConfigurationError
from jofsync.config.validation import (
    optional_name,
    sanitize_jql,
    validate_hostname,
    validate_name,
)
from jofsync.omnifocus.models import Inbox, NewProject, Placement, ProjectTask

PLACEHOLDER_HOST = "please-configure-me"


@dataclass(frozen=True)
class Credentials:
    """Resolved basic-auth credentials for JIRA."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class SyncConfig:
    """Settings for one sync run.

    Attributes:
        hostname: JIRA base URL (https, no trailing slash).
        filter: Sanitized JQL selecting the tickets to sync.
        placement: Where new tasks are created.
        current_user: Identity compared with ticket assignees, or None to
            ask JIRA who the credentials belong to.
        tag: OmniFocus tag for new tasks, if any.
        flag: Flag new and existing tasks.
        descsync: Copy the ticket description into new task notes.
        ssl_verify: Verify the JIRA server certificate.
        notify: Send desktop notifications.
    """

    hostname: str
    filter: str
    placement: Placement
    current_user: str | None = None
    tag: str | None = None
    flag: bool = False
    descsync: bool = False
    ssl_verify: bool = True
    notify: bool = True

    @property
    def search_project(self) -> str | None:
        """Project to search for existing tasks, or None for the whole document."""
        if isinstance(self.placement, ProjectTask):
            return self.placement.project
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """Create config from flattened settings.

        Args:
            data: Settings from the YAML file merged with CLI overrides.

        Returns:
            Validated configuration.

        Raises:
            ConfigurationError: If settings are missing or invalid.
        """
        hostname = validate_hostname(data.get("hostname"))
        if PLACEHOLDER_HOST in hostname:
            raise ConfigurationError("Please configure your JIRA hostname in ~/.jofsync.yaml")

        jql = sanitize_jql(data.get("filter")).strip()
        if not jql:
            raise ConfigurationError("JQL filter cannot be empty")

        return cls(
            hostname=hostname,
            filter=jql,
            placement=resolve_placement(data),
            current_user=optional_name(data.get("current_user"), "Current user"),
            tag=optional_name(data.get("tag"), "Tag"),
            flag=bool(data.get("flag", False)),
            descsync=bool(data.get("descsync", False)),
            ssl_verify=bool(data.get("ssl_verify", True)),
            notify=bool(data.get("notify", True)),
        )


def resolve_placement(data: dict[str, Any]) -> Placement:
    """Turn the inbox/newproj/project/folder settings into a Placement.

    Raises:
        ConfigurationError: If both inbox and newproj are set, or the
            project/folder the choice needs is missing.
    """
    inbox = bool(data.get("inbox", False))
    newproj = bool(data.get("newproj", False))
    if inbox and newproj:
        raise ConfigurationError("Choose either inbox or newproj, not both")
    if inbox:
        return Inbox()
    if newproj:
        if optional_name(data.get("folder"), "Folder") is None:
            raise ConfigurationError("A folder is required when creating tasks as projects")
        return NewProject(folder=validate_name(data["folder"], "Folder"))
    if optional_name(data.get("project"), "Project") is None:
        raise ConfigurationError("A project is required unless inbox or newproj is set")
    return ProjectTask(project=validate_name(data["project"], "Project"))
