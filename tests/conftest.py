"""Shared pytest fixtures and configuration."""

import dataclasses
import logging

import pytest

from jofsync.jira import Assignee
from jofsync.links import first_line, format_ticket_url, parse_ticket_id
from jofsync.omnifocus import (
    AutomationError,
    ContainerNotFoundError,
    NewProject,
    ProjectTask,
    Task,
)


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: talks to a real JIRA server or OmniFocus (local only)")


@pytest.fixture(autouse=True)
def reset_jofsync_logger():
    """Drop handlers and level that setup_logging() installed during a test."""
    yield
    logger = logging.getLogger("jofsync")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def hostname() -> str:
    """JIRA base URL used throughout the tests."""
    return "https://test.atlassian.net"


class FakeIssueSource:
    """In-memory stand-in for JiraClient."""

    def __init__(self, tickets=None, statuses=None) -> None:
        self.tickets = dict(tickets or {})
        self.statuses = dict(statuses or {})
        self.open_error: Exception | None = None
        self.status_error: Exception | None = None
        self.open_calls: list[str] = []
        self.status_calls: list[set[str]] = []
        self.myself = Assignee(name="alice")
        self.myself_calls = 0
        self.myself_error: Exception | None = None

    def fetch_open(self, jql):
        self.open_calls.append(jql)
        if self.open_error is not None:
            raise self.open_error
        return dict(self.tickets)

    def fetch_status_bulk(self, keys):
        keys = set(keys)
        self.status_calls.append(keys)
        if self.status_error is not None:
            raise self.status_error
        return {key: self.statuses[key] for key in keys if key in self.statuses}

    def fetch_myself(self):
        self.myself_calls += 1
        if self.myself_error is not None:
            raise self.myself_error
        return self.myself


class FakeTaskStore:
    """In-memory stand-in for OmniFocusStore with the same matching rules."""

    def __init__(self, hostname, projects=("Jira",), folders=("Jira",), tags=("Office",)) -> None:
        self.hostname = hostname
        self.projects = set(projects)
        self.folders = set(folders)
        self.tags = set(tags)
        # (task, containing project or None)
        self.items: list[tuple[Task, str | None]] = []
        self.failing: set[str] = set()
        self._next_id = 1

    @property
    def tasks(self) -> list[Task]:
        return [task for task, _ in self.items]

    def add(self, name, note="", completed=False, flagged=False, project=None) -> Task:
        task = Task(
            id=f"t{self._next_id}", name=name, note=note, completed=completed, flagged=flagged
        )
        self._next_id += 1
        self.items.append((task, project))
        return task

    def _replace(self, old: Task, new: Task) -> None:
        self.items = [(new if t.id == old.id else t, p) for t, p in self.items]

    def find(self, name, project=None):
        if name in self.failing:
            raise AutomationError(f"scripting failed for {name}")
        if project is not None and project not in self.projects:
            raise ContainerNotFoundError(f"Project '{project}' not found")
        for task, container in self.items:
            if task.name == name and (project is None or container == project):
                return task
        return None

    def create(self, request):
        if request.tag is not None and request.tag not in self.tags:
            raise ContainerNotFoundError(f"Tag '{request.tag}' not found")
        project = None
        kind = "task"
        match request.placement:
            case ProjectTask(project=name):
                if name not in self.projects:
                    raise ContainerNotFoundError(f"Project '{name}' not found")
                project = name
            case NewProject(folder=folder):
                if folder not in self.folders:
                    raise ContainerNotFoundError(f"Folder '{folder}' not found")
                kind = "project"
        task = self.add(request.name, request.note, flagged=request.flagged, project=project)
        if kind == "project" or request.due_date is not None:
            updated = dataclasses.replace(task, kind=kind, due_date=request.due_date)
            self._replace(task, updated)
            task = updated
        return task

    def update(self, task, flagged=None, completed=None):
        changes = {}
        if flagged is not None:
            changes["flagged"] = flagged
        if completed is not None:
            changes["completed"] = completed
        updated = dataclasses.replace(task, **changes)
        self._replace(task, updated)
        return updated

    def list_tracked_ids(self, hostname=None):
        hostname = hostname or self.hostname
        keys = set()
        for task, _ in self.items:
            if task.completed:
                continue
            key = parse_ticket_id(hostname, task.note)
            if key is not None:
                keys.add(key)
        return keys

    def _match(self, key):
        url = format_ticket_url(self.hostname, key)
        matches = [t for t, _ in self.items if first_line(t.note) == url]
        open_matches = [t for t in matches if not t.completed]
        return (open_matches or matches or [None])[0]

    def complete(self, key):
        task = self._match(key)
        if task is None:
            return False
        self.update(task, completed=True)
        return True

    def delete(self, key):
        task = self._match(key)
        if task is None:
            return False
        self.items = [(t, p) for t, p in self.items if t.id != task.id]
        return True


@pytest.fixture
def issue_source() -> FakeIssueSource:
    """Empty in-memory JIRA."""
    return FakeIssueSource()


@pytest.fixture
def task_store(hostname: str) -> FakeTaskStore:
    """In-memory OmniFocus with a 'Jira' project, a 'Jira' folder, and an 'Office' tag."""
    return FakeTaskStore(hostname)
