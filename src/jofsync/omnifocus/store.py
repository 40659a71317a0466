"""OmniFocusStore - Reads and writes OmniFocus tasks through osascript."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any

from jofsync.links import format_ticket_url, parse_ticket_id
from jofsync.omnifocus import scripts
from jofsync.omnifocus.exceptions import (
    AutomationError,
    AutomationUnavailableError,
    ContainerNotFoundError,
)
from jofsync.omnifocus.models import NewTaskRequest, Task

logger = logging.getLogger("jofsync.omnifocus")

DEFAULT_TIMEOUT = 60.0

_ERROR_KINDS: dict[str, type[AutomationError]] = {
    "missing_container": ContainerNotFoundError,
    "unavailable": AutomationUnavailableError,
}


class OmniFocusStore:
    """Task store backed by the OmniFocus scripting dictionary.

    Every operation runs one JXA script via ``osascript -l JavaScript`` and
    exchanges JSON with it. Tasks are found by name when deciding whether a
    ticket already has a task, and by the ticket URL on the first line of
    the note when retiring.
    """

    def __init__(
        self,
        hostname: str,
        timeout: float = DEFAULT_TIMEOUT,
        osascript: str = "osascript",
    ) -> None:
        """Initialize the task store.

        Args:
            hostname: JIRA base URL used in task notes
            timeout: Seconds to wait for each automation call
            osascript: Path to the osascript binary
        """
        self.hostname = hostname
        self.timeout = timeout
        self.osascript = osascript

    def _run_script(self, source: str, args: dict[str, Any]) -> Any:
        """Run a JXA script and return its result.

        Args:
            source: Script source from ``jofsync.omnifocus.scripts``
            args: JSON-serializable arguments passed as ``argv[0]``

        Returns:
            The ``result`` value the script reported

        Raises:
            AutomationUnavailableError: If osascript cannot run or times out
            ContainerNotFoundError: If a named project/folder/tag is missing
            AutomationError: If the script itself failed
        """
        try:
            result = subprocess.run(
                [self.osascript, "-l", "JavaScript", "-e", source, json.dumps(args)],
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise AutomationUnavailableError(
                f"{self.osascript} not found; OmniFocus automation requires macOS"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise AutomationUnavailableError(
                f"OmniFocus did not respond within {self.timeout} seconds"
            ) from e
        except subprocess.CalledProcessError as e:
            raise AutomationUnavailableError(
                f"osascript exited with {e.returncode}: {(e.stderr or '').strip()}"
            ) from e

        return _decode(result.stdout)

    def find(self, name: str, project: str | None = None) -> Task | None:
        """Find a task by exact name.

        Searches the given project when one is set, otherwise the whole
        document. If the scripted query fails, falls back to scanning every
        task in the document.

        Args:
            name: Exact, case-sensitive task name
            project: Project to search, or None for the whole document

        Returns:
            The first matching task, or None

        Raises:
            ContainerNotFoundError: If the project does not exist
        """
        logger.debug("Checking for existing task: %s", name)
        args = {"name": name, "project": project, "mode": "query"}
        try:
            data = self._run_script(scripts.FIND_TASK, args)
        except (ContainerNotFoundError, AutomationUnavailableError):
            raise
        except AutomationError as e:
            logger.debug("Scripted query failed (%s), falling back to full scan", e)
            data = self._run_script(scripts.FIND_TASK, {**args, "mode": "scan"})

        task = Task.from_script(data) if data else None
        logger.debug("Task exists = %s", task is not None)
        return task

    def exists(self, name: str, project: str | None = None) -> bool:
        """Check whether a task with this exact name exists in scope."""
        return self.find(name, project) is not None

    def create(self, request: NewTaskRequest) -> Task:
        """Create a task, or a project when placement is NewProject.

        Raises:
            ContainerNotFoundError: If the project, folder, or tag is missing
        """
        logger.debug("Creating task: %s", request.name)
        data = self._run_script(scripts.CREATE_TASK, request.to_script())
        task = Task.from_script(data)
        logger.info("Created %s: %s", task.kind, task.name)
        return task

    def update(
        self,
        task: Task,
        flagged: bool | None = None,
        completed: bool | None = None,
    ) -> Task:
        """Set the flag and/or completion state of an existing task.

        Args:
            task: Task handle from find() or create()
            flagged: New flag state, or None to leave it
            completed: New completion state, or None to leave it

        Returns:
            The task as it is after the update
        """
        logger.debug("Updating %s (flagged=%s, completed=%s)", task.name, flagged, completed)
        data = self._run_script(
            scripts.UPDATE_TASK,
            {"id": task.id, "kind": task.kind, "flagged": flagged, "completed": completed},
        )
        return Task.from_script(data)

    def list_tracked_ids(self, hostname: str | None = None) -> set[str]:
        """Collect ticket keys from the notes of all incomplete tasks.

        Args:
            hostname: JIRA base URL to look for; defaults to the store's

        Returns:
            Keys of tickets that still have an open task
        """
        hostname = hostname or self.hostname
        logger.debug("Extracting JIRA keys from OmniFocus tasks")
        items = self._run_script(scripts.LIST_OPEN_NOTES, {"hostname": hostname})
        if not isinstance(items, list):
            raise AutomationError(f"Expected a list of notes, got {type(items).__name__}")

        keys = set()
        for item in items:
            key = parse_ticket_id(hostname, item.get("note"))
            if key is not None:
                keys.add(key)
        logger.debug("Found %d JIRA key(s) in OmniFocus tasks", len(keys))
        return keys

    def complete(self, key: str) -> bool:
        """Mark the task for a ticket complete.

        Returns:
            True if a task was found, False otherwise
        """
        logger.debug("Marking task complete for %s", key)
        data = self._run_script(
            scripts.RETIRE_TASK,
            {"url": format_ticket_url(self.hostname, key), "action": "complete"},
        )
        if not data:
            return False
        logger.info("Marked complete: %s", data["name"])
        return True

    def delete(self, key: str) -> bool:
        """Delete the task for a ticket.

        Returns:
            True if a task was found and removed, False otherwise
        """
        logger.debug("Removing task for %s", key)
        data = self._run_script(
            scripts.RETIRE_TASK,
            {"url": format_ticket_url(self.hostname, key), "action": "delete"},
        )
        if not data:
            return False
        logger.info("Removed: %s", data["name"])
        return True


def _decode(stdout: str) -> Any:
    """Unwrap the ``{"ok": ..., "result": ...}`` envelope."""
    try:
        envelope = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise AutomationError(f"Unreadable automation output: {stdout[:200]!r}") from e

    if not isinstance(envelope, dict) or "ok" not in envelope:
        raise AutomationError(f"Unexpected automation output: {stdout[:200]!r}")

    if not envelope["ok"]:
        error_class = _ERROR_KINDS.get(envelope.get("kind", ""), AutomationError)
        raise error_class(envelope.get("error") or "OmniFocus automation failed")

    return envelope.get("result")
