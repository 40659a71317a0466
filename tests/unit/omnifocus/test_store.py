"""Unit tests for OmniFocusStore."""

import json
import subprocess
from datetime import date
from unittest.mock import patch

import pytest

from jofsync.omnifocus import (
    AutomationError,
    AutomationUnavailableError,
    ContainerNotFoundError,
    Inbox,
    NewProject,
    NewTaskRequest,
    OmniFocusStore,
    ProjectTask,
    Task,
    scripts,
)
from jofsync.omnifocus.store import _decode

HOST = "https://test.atlassian.net"


@pytest.fixture
def store() -> OmniFocusStore:
    """Create an OmniFocusStore for the test host."""
    return OmniFocusStore(HOST)


def _task_data(**overrides: object) -> dict:
    data = {
        "id": "abc123",
        "name": "TEST-1: Fix it",
        "note": f"{HOST}/browse/TEST-1\n",
        "flagged": False,
        "completed": False,
        "dueDate": None,
        "kind": "task",
    }
    data.update(overrides)
    return data


def _completed(stdout: str) -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=0, stdout=stdout, stderr="")


@pytest.mark.unit
class TestRunScript:
    """Tests for _run_script."""

    def test_invokes_osascript_with_json_argument(self, store: OmniFocusStore) -> None:
        """Runs JXA with the arguments as a single JSON string."""
        with patch("jofsync.omnifocus.store.subprocess.run") as mock_run:
            mock_run.return_value = _completed('{"ok": true, "result": 42}')

            result = store._run_script("source", {"a": 1})

        assert result == 42
        cmd = mock_run.call_args.args[0]
        assert cmd[:4] == ["osascript", "-l", "JavaScript", "-e"]
        assert cmd[4] == "source"
        assert json.loads(cmd[5]) == {"a": 1}
        assert mock_run.call_args.kwargs["timeout"] == store.timeout

    def test_missing_osascript(self, store: OmniFocusStore) -> None:
        """A missing osascript binary means automation is unavailable."""
        with patch("jofsync.omnifocus.store.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(AutomationUnavailableError, match="macOS"):
                store._run_script("source", {})

    def test_timeout(self, store: OmniFocusStore) -> None:
        """A hung OmniFocus means automation is unavailable."""
        with patch(
            "jofsync.omnifocus.store.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="osascript", timeout=60),
        ):
            with pytest.raises(AutomationUnavailableError, match="did not respond"):
                store._run_script("source", {})

    def test_osascript_failure(self, store: OmniFocusStore) -> None:
        """A non-zero osascript exit carries stderr into the error."""
        error = subprocess.CalledProcessError(1, "osascript", stderr="Not authorized\n")
        with patch("jofsync.omnifocus.store.subprocess.run", side_effect=error):
            with pytest.raises(AutomationUnavailableError, match="Not authorized"):
                store._run_script("source", {})


@pytest.mark.unit
class TestDecode:
    """Tests for the script output envelope."""

    def test_result(self) -> None:
        assert _decode('{"ok": true, "result": {"x": 1}}') == {"x": 1}

    def test_null_result(self) -> None:
        assert _decode('{"ok": true, "result": null}') is None

    def test_not_json(self) -> None:
        with pytest.raises(AutomationError, match="Unreadable"):
            _decode("execution error: something")

    def test_missing_ok(self) -> None:
        with pytest.raises(AutomationError, match="Unexpected"):
            _decode('{"result": 1}')

    @pytest.mark.parametrize(
        ("kind", "error_class"),
        [
            ("missing_container", ContainerNotFoundError),
            ("unavailable", AutomationUnavailableError),
            ("script", AutomationError),
        ],
    )
    def test_error_kinds(self, kind: str, error_class: type) -> None:
        """Failure kinds map to exception types."""
        stdout = json.dumps({"ok": False, "kind": kind, "error": "boom"})

        with pytest.raises(error_class, match="boom") as exc_info:
            _decode(stdout)

        assert type(exc_info.value) is error_class


@pytest.mark.unit
class TestFind:
    """Tests for find and exists."""

    def test_returns_task(self, store: OmniFocusStore) -> None:
        """A match is returned as a Task."""
        with patch.object(store, "_run_script", return_value=_task_data()) as mock_run:
            task = store.find("TEST-1: Fix it", "Jira")

        assert task == Task(
            id="abc123", name="TEST-1: Fix it", note=f"{HOST}/browse/TEST-1\n"
        )
        mock_run.assert_called_once_with(
            scripts.FIND_TASK, {"name": "TEST-1: Fix it", "project": "Jira", "mode": "query"}
        )

    def test_no_match(self, store: OmniFocusStore) -> None:
        """None when no task has that name."""
        with patch.object(store, "_run_script", return_value=None):
            assert store.find("TEST-1: Fix it") is None
            assert store.exists("TEST-1: Fix it") is False

    def test_falls_back_to_scan(self, store: OmniFocusStore) -> None:
        """A failed scripted query retries with a full document scan."""
        with patch.object(
            store,
            "_run_script",
            side_effect=[AutomationError("whose failed"), _task_data(completed=True)],
        ) as mock_run:
            task = store.find("TEST-1: Fix it")

        assert task is not None
        assert task.completed
        assert mock_run.call_count == 2
        assert mock_run.call_args_list[1].args[1]["mode"] == "scan"

    def test_missing_project_does_not_fall_back(self, store: OmniFocusStore) -> None:
        """A missing project is reported, not scanned around."""
        with patch.object(
            store, "_run_script", side_effect=ContainerNotFoundError("Project 'Jira' not found")
        ) as mock_run:
            with pytest.raises(ContainerNotFoundError):
                store.find("TEST-1: Fix it", "Jira")

        assert mock_run.call_count == 1

    def test_unavailable_does_not_fall_back(self, store: OmniFocusStore) -> None:
        """An unreachable OmniFocus is reported immediately."""
        with patch.object(
            store, "_run_script", side_effect=AutomationUnavailableError("no osascript")
        ) as mock_run:
            with pytest.raises(AutomationUnavailableError):
                store.find("TEST-1: Fix it")

        assert mock_run.call_count == 1


@pytest.mark.unit
class TestCreateAndUpdate:
    """Tests for create and update."""

    def test_create_sends_request(self, store: OmniFocusStore) -> None:
        """The serialized request is passed to the create script."""
        request = NewTaskRequest(
            name="TEST-1: Fix it",
            note=f"{HOST}/browse/TEST-1\n",
            flagged=True,
            placement=ProjectTask("Jira"),
            tag="Office",
        )
        with patch.object(
            store, "_run_script", return_value=_task_data(flagged=True, id="new1")
        ) as mock_run:
            task = store.create(request)

        assert task.id == "new1"
        assert task.flagged
        mock_run.assert_called_once_with(scripts.CREATE_TASK, request.to_script())

    def test_create_missing_tag(self, store: OmniFocusStore) -> None:
        """A missing tag surfaces as ContainerNotFoundError."""
        request = NewTaskRequest(
            name="TEST-1: Fix it", note="", flagged=False, placement=Inbox(), tag="Nope"
        )
        with patch.object(
            store, "_run_script", side_effect=ContainerNotFoundError("Tag 'Nope' not found")
        ):
            with pytest.raises(ContainerNotFoundError, match="Nope"):
                store.create(request)

    def test_update_passes_handle_and_changes(self, store: OmniFocusStore) -> None:
        """update() identifies the task by id and kind."""
        task = Task(id="abc123", name="TEST-1: Fix it", completed=True, kind="project")
        with patch.object(
            store, "_run_script", return_value=_task_data(kind="project", flagged=True)
        ) as mock_run:
            updated = store.update(task, flagged=True, completed=False)

        assert updated.flagged
        assert not updated.completed
        mock_run.assert_called_once_with(
            scripts.UPDATE_TASK,
            {"id": "abc123", "kind": "project", "flagged": True, "completed": False},
        )


@pytest.mark.unit
class TestListTrackedIds:
    """Tests for list_tracked_ids."""

    def test_parses_keys_from_notes(self, store: OmniFocusStore) -> None:
        """Keys come from the URL on the first line of each note."""
        notes = [
            {"id": "1", "note": f"{HOST}/browse/TEST-1\n\nDescription"},
            {"id": "2", "note": f"{HOST}/browse/TEST-2"},
            {"id": "3", "note": f"See {HOST}/browse/TEST-3"},
            {"id": "4", "note": f"Something\n{HOST}/browse/TEST-4"},
            {"id": "5", "note": f"{HOST}/browse/TEST-1"},
            {"id": "6", "note": None},
        ]
        with patch.object(store, "_run_script", return_value=notes) as mock_run:
            keys = store.list_tracked_ids()

        assert keys == {"TEST-1", "TEST-2"}
        mock_run.assert_called_once_with(scripts.LIST_OPEN_NOTES, {"hostname": HOST})

    def test_other_hostname(self, store: OmniFocusStore) -> None:
        """An explicit hostname overrides the store's."""
        other = "https://other.atlassian.net"
        notes = [{"id": "1", "note": f"{other}/browse/OPS-9"}, {"id": "2", "note": f"{HOST}/browse/TEST-1"}]
        with patch.object(store, "_run_script", return_value=notes):
            assert store.list_tracked_ids(other) == {"OPS-9"}

    def test_empty(self, store: OmniFocusStore) -> None:
        with patch.object(store, "_run_script", return_value=[]):
            assert store.list_tracked_ids() == set()

    def test_unexpected_result(self, store: OmniFocusStore) -> None:
        with patch.object(store, "_run_script", return_value={"oops": True}):
            with pytest.raises(AutomationError, match="list"):
                store.list_tracked_ids()


@pytest.mark.unit
class TestRetire:
    """Tests for complete and delete."""

    def test_complete_found(self, store: OmniFocusStore) -> None:
        """Returns True when a task was completed."""
        with patch.object(store, "_run_script", return_value=_task_data(completed=True)) as mock_run:
            assert store.complete("TEST-1") is True

        mock_run.assert_called_once_with(
            scripts.RETIRE_TASK, {"url": f"{HOST}/browse/TEST-1", "action": "complete"}
        )

    def test_complete_not_found(self, store: OmniFocusStore) -> None:
        """Returns False when no task carries the ticket URL."""
        with patch.object(store, "_run_script", return_value=None):
            assert store.complete("TEST-1") is False

    def test_delete_found(self, store: OmniFocusStore) -> None:
        with patch.object(store, "_run_script", return_value=_task_data()) as mock_run:
            assert store.delete("TEST-2") is True

        mock_run.assert_called_once_with(
            scripts.RETIRE_TASK, {"url": f"{HOST}/browse/TEST-2", "action": "delete"}
        )

    def test_delete_not_found(self, store: OmniFocusStore) -> None:
        with patch.object(store, "_run_script", return_value=None):
            assert store.delete("TEST-2") is False


@pytest.mark.unit
class TestModels:
    """Tests for the store's data models."""

    @pytest.mark.parametrize(
        ("placement", "expected"),
        [
            (Inbox(), {"kind": "inbox"}),
            (ProjectTask("Jira"), {"kind": "project", "project": "Jira"}),
            (NewProject("Work"), {"kind": "new_project", "folder": "Work"}),
        ],
    )
    def test_placement_serialization(self, placement: object, expected: dict) -> None:
        request = NewTaskRequest(name="n", note="", flagged=False, placement=placement)

        assert request.to_script()["placement"] == expected

    def test_request_serialization(self) -> None:
        request = NewTaskRequest(
            name="TEST-1: Fix it",
            note="url\n",
            flagged=True,
            placement=Inbox(),
            tag="Office",
            due_date=date(2026, 3, 1),
        )

        assert request.to_script() == {
            "name": "TEST-1: Fix it",
            "note": "url\n",
            "flagged": True,
            "tag": "Office",
            "dueDate": "2026-03-01",
            "placement": {"kind": "inbox"},
        }

    def test_task_from_script(self) -> None:
        task = Task.from_script(_task_data(dueDate="2026-03-01", flagged=True))

        assert task.due_date == date(2026, 3, 1)
        assert task.flagged
        assert task.kind == "task"

    def test_task_from_script_missing_note(self) -> None:
        task = Task.from_script({"id": 7, "name": "x", "note": None})

        assert task.id == "7"
        assert task.note == ""
