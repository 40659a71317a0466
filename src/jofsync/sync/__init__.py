"""Reconciler - Creates and retires OmniFocus tasks to match JIRA."""

from jofsync.sync.models import Retirement, SyncReport
from jofsync.sync.reconciler import Reconciler, decide_retirement

__all__ = [
    "Reconciler",
    "Retirement",
    "SyncReport",
    "decide_retirement",
]
