"""Data models for the JIRA client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Assignee:
    """The user a ticket is assigned to.

    Server/Data Center identifies users by ``name``; Cloud by ``accountId``.
    """

    name: str | None = None
    account_id: str | None = None
    email: str | None = None
    display_name: str | None = None

    @classmethod
    def from_field(cls, data: dict[str, Any] | None) -> Assignee | None:
        """Build from the ``assignee`` field of an issue, or None if unassigned."""
        if not data:
            return None
        return cls(
            name=data.get("name"),
            account_id=data.get("accountId"),
            email=data.get("emailAddress"),
            display_name=data.get("displayName"),
        )

    def matches(self, identity: str | Assignee) -> bool:
        """Check whether this assignee is the given user.

        A string is compared with every identifier. Another Assignee matches
        when any identifier both sides know is equal.
        """
        if isinstance(identity, Assignee):
            pairs = (
                (self.name, identity.name),
                (self.account_id, identity.account_id),
                (self.email, identity.email),
            )
            return any(mine is not None and mine == theirs for mine, theirs in pairs)
        return identity in {self.name, self.account_id, self.email}

    def __str__(self) -> str:
        return self.name or self.account_id or self.email or self.display_name or "?"


@dataclass(frozen=True)
class TicketStatus:
    """The two fields needed to decide whether a task should be retired."""

    resolution: str | None = None
    assignee: Assignee | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolution is not None


@dataclass(frozen=True)
class Ticket:
    """An open JIRA issue, as returned by the configured filter."""

    key: str
    summary: str
    description: str | None = None
    resolution: str | None = None
    assignee: Assignee | None = None
    due_date: date | None = None

    @property
    def task_name(self) -> str:
        """Name of the OmniFocus task that represents this ticket."""
        return f"{self.key}: {self.summary}"
