"""Data models for the OmniFocus task store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Inbox:
    """Create new tasks in the OmniFocus inbox."""


@dataclass(frozen=True)
class ProjectTask:
    """Create new tasks inside an existing project."""

    project: str


@dataclass(frozen=True)
class NewProject:
    """Create one new project per ticket inside an existing folder."""

    folder: str


Placement = Inbox | ProjectTask | NewProject


@dataclass(frozen=True)
class Task:
    """An OmniFocus task or project as seen by jofsync.

    Attributes:
        id: OmniFocus persistent identifier; the handle for later updates.
        name: Task name.
        note: Full note text.
        flagged: Whether the task is flagged.
        completed: Whether the task is completed.
        due_date: Due date, if any.
        kind: "task" or "project".
    """

    id: str
    name: str
    note: str = ""
    flagged: bool = False
    completed: bool = False
    due_date: date | None = None
    kind: str = "task"

    @classmethod
    def from_script(cls, data: dict[str, Any]) -> Task:
        """Build from the JSON object the automation scripts return."""
        due = data.get("dueDate")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            note=data.get("note") or "",
            flagged=bool(data.get("flagged", False)),
            completed=bool(data.get("completed", False)),
            due_date=date.fromisoformat(due) if due else None,
            kind=data.get("kind", "task"),
        )


@dataclass(frozen=True)
class NewTaskRequest:
    """Everything needed to create a task for a ticket.

    Attributes:
        name: Task name ("KEY: summary").
        note: Note whose first line is the ticket URL.
        flagged: Whether to flag the new task.
        placement: Where to create it.
        tag: Tag name to attach, if any.
        due_date: Due date, if the ticket has one.
    """

    name: str
    note: str
    flagged: bool
    placement: Placement
    tag: str | None = None
    due_date: date | None = None

    def to_script(self) -> dict[str, Any]:
        """Serialize for the create script."""
        placement: dict[str, Any]
        match self.placement:
            case Inbox():
                placement = {"kind": "inbox"}
            case ProjectTask(project=project):
                placement = {"kind": "project", "project": project}
            case NewProject(folder=folder):
                placement = {"kind": "new_project", "folder": folder}
        return {
            "name": self.name,
            "note": self.note,
            "flagged": self.flagged,
            "tag": self.tag,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "placement": placement,
        }
