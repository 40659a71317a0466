"""OmniFocus task store - Creates, finds, completes, and deletes tasks via JXA."""

from jofsync.omnifocus.exceptions import (
    AutomationError,
    AutomationUnavailableError,
    ContainerNotFoundError,
)
from jofsync.omnifocus.models import (
    Inbox,
    NewProject,
    NewTaskRequest,
    Placement,
    ProjectTask,
    Task,
)
from jofsync.omnifocus.store import OmniFocusStore

__all__ = [
    "AutomationError",
    "AutomationUnavailableError",
    "ContainerNotFoundError",
    "Inbox",
    "NewProject",
    "NewTaskRequest",
    "OmniFocusStore",
    "Placement",
    "ProjectTask",
    "Task",
]
