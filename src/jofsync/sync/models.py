"""Data models for the Reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Retirement(str, Enum):
    """What to do with the task of a ticket that already has one."""

    COMPLETE = "complete"
    DELETE = "delete"
    KEEP = "keep"


@dataclass
class SyncReport:
    """Outcome of one sync run.

    Attributes:
        created: Tickets that got a new task.
        refreshed: Tickets whose existing task had its flag refreshed.
        reopened: Tickets whose completed task was marked incomplete again.
        completed: Tickets whose task was marked complete.
        deleted: Tickets whose task was deleted.
        untouched: Tracked tickets still open and assigned to the current user.
        missing: Tracked tickets JIRA did not return (deleted or not visible).
        errors: One message per failed ticket or failed pass.
    """

    created: list[str] = field(default_factory=list)
    refreshed: list[str] = field(default_factory=list)
    reopened: list[str] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    untouched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    @property
    def changed(self) -> bool:
        """Whether the run created, re-opened, completed, or deleted anything."""
        return bool(self.created or self.reopened or self.completed or self.deleted)

    def summary(self) -> str:
        """One-line summary for logs and notifications."""
        parts = [
            f"{len(self.created)} created",
            f"{len(self.reopened)} re-opened",
            f"{len(self.completed)} completed",
            f"{len(self.deleted)} removed",
        ]
        if self.missing:
            parts.append(f"{len(self.missing)} missing from JIRA")
        if self.errors:
            parts.append(f"{len(self.errors)} error(s)")
        return ", ".join(parts)
