"""Reconciler - Brings OmniFocus in line with the tickets open in JIRA."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from jofsync.jira import ParseError, RemoteError, UnauthorizedError
from jofsync.links import build_note
from jofsync.omnifocus import (
    AutomationError,
    AutomationUnavailableError,
    ContainerNotFoundError,
    NewTaskRequest,
)
from jofsync.sync.models import Retirement, SyncReport

if TYPE_CHECKING:
    from collections.abc import Callable

    from jofsync.config import SyncConfig
    from jofsync.jira import Assignee, JiraClient, Ticket, TicketStatus
    from jofsync.notify import Notifier
    from jofsync.omnifocus import OmniFocusStore

logger = logging.getLogger("jofsync.sync")

# Failures that mean the whole run cannot succeed
_FATAL = (UnauthorizedError, ContainerNotFoundError, AutomationUnavailableError)


def decide_retirement(status: TicketStatus, current_user: str | Assignee) -> Retirement:
    """Decide what happens to the task of an already-tracked ticket.

    Resolution wins over assignment: a resolved ticket is completed even if
    it was also reassigned.
    """
    if status.is_resolved:
        return Retirement.COMPLETE
    if status.assignee is None:
        return Retirement.DELETE
    if not status.assignee.matches(current_user):
        return Retirement.DELETE
    return Retirement.KEEP


class Reconciler:
    """Runs the two sync passes.

    Pass 1 creates a task for every open ticket that has none, and refreshes
    the flag (and completion state) of tasks that already exist. Pass 2
    completes or deletes tasks whose ticket was resolved, unassigned, or
    reassigned. Nothing is cached between runs; OmniFocus is the state.
    """

    def __init__(
        self,
        config: SyncConfig,
        issue_source: JiraClient,
        task_store: OmniFocusStore,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize the Reconciler.

        Args:
            config: Settings for this run.
            issue_source: Client for open tickets and bulk status.
            task_store: OmniFocus task store.
            notifier: Optional desktop notifier.
        """
        self.config = config
        self.issue_source = issue_source
        self.task_store = task_store
        self.notifier = notifier
        self._me: Assignee | None = None

    def run(self) -> SyncReport:
        """Run the creation pass, then the retirement pass.

        A RemoteError or ParseError fails only the pass it happens in; the
        other pass still runs and the failure is recorded in the report.

        Returns:
            What the run did.

        Raises:
            UnauthorizedError: If JIRA rejects the credentials.
            ContainerNotFoundError: If a configured project/folder/tag is missing.
            AutomationUnavailableError: If OmniFocus cannot be scripted.
        """
        logger.info("Starting JIRA-OmniFocus synchronization")
        report = SyncReport()

        self._run_pass("creation", self.create_missing, report)
        self._run_pass("retirement", self.retire, report)

        logger.info("Synchronization finished: %s", report.summary())
        if self.notifier is not None:
            if report.failed:
                self.notifier.notify("sync_failed", "Sync finished with errors", report.summary())
            elif report.changed:
                self.notifier.notify("sync_completed", "Sync completed", report.summary())
        return report

    def _run_pass(
        self,
        name: str,
        step: Callable[[SyncReport], SyncReport],
        report: SyncReport,
    ) -> None:
        try:
            step(report)
        except _FATAL:
            raise
        except (RemoteError, ParseError) as e:
            logger.error("The %s pass failed: %s", name, e)
            report.errors.append(f"{name} pass: {e}")

    def build_request(self, ticket: Ticket) -> NewTaskRequest:
        """Build the task to create for a ticket."""
        description = ticket.description if self.config.descsync else None
        return NewTaskRequest(
            name=ticket.task_name,
            note=build_note(self.config.hostname, ticket.key, description),
            flagged=self.config.flag,
            placement=self.config.placement,
            tag=self.config.tag,
            due_date=ticket.due_date,
        )

    def create_missing(self, report: SyncReport | None = None) -> SyncReport:
        """Pass 1: make sure every open ticket has a task.

        Args:
            report: Report to add to; a new one is created if omitted.

        Returns:
            The report.
        """
        report = report if report is not None else SyncReport()
        logger.debug("Adding new JIRA tickets to OmniFocus")

        tickets = self.issue_source.fetch_open(self.config.filter)
        if not tickets:
            logger.info("No JIRA issues found")
            return report

        logger.info("Processing %d JIRA issue(s)", len(tickets))
        for key, ticket in tickets.items():
            try:
                self._sync_ticket(ticket, report)
            except _FATAL:
                raise
            except AutomationError as e:
                logger.error("Failed to sync task for %s: %s", key, e)
                report.errors.append(f"{key}: create/refresh failed: {e}")
        return report

    def _sync_ticket(self, ticket: Ticket, report: SyncReport) -> None:
        existing = self.task_store.find(ticket.task_name, self.config.search_project)

        if existing is None:
            self.task_store.create(self.build_request(ticket))
            report.created.append(ticket.key)
            return

        # Notes are only written at creation; only flag and completion are refreshed
        if existing.completed:
            logger.info("%s is open again, marking its task incomplete", ticket.key)
            self.task_store.update(existing, flagged=self.config.flag, completed=False)
            report.reopened.append(ticket.key)
        else:
            logger.debug("Task for %s exists, refreshing flag", ticket.key)
            self.task_store.update(existing, flagged=self.config.flag)
            report.refreshed.append(ticket.key)

    def retire(self, report: SyncReport | None = None) -> SyncReport:
        """Pass 2: complete or delete tasks whose ticket moved on.

        Tracked tickets that JIRA no longer returns are left alone and listed
        in ``report.missing``.

        Args:
            report: Report to add to; a new one is created if omitted.

        Returns:
            The report.
        """
        report = report if report is not None else SyncReport()
        logger.debug("Checking for resolved or reassigned JIRA tickets")

        keys = self.task_store.list_tracked_ids(self.config.hostname)
        if not keys:
            logger.debug("No OmniFocus tasks reference %s", self.config.hostname)
            return report

        logger.info("Checking status of %d JIRA ticket(s)", len(keys))
        statuses = self.issue_source.fetch_status_bulk(keys)
        current_user = self.current_user()

        for key in sorted(keys):
            status = statuses.get(key)
            if status is None:
                logger.warning(
                    "%s has a task but JIRA did not return it (deleted or not visible); "
                    "leaving the task for review",
                    key,
                )
                report.missing.append(key)
                continue
            try:
                self._retire_ticket(key, status, current_user, report)
            except _FATAL:
                raise
            except AutomationError as e:
                logger.error("Failed to retire task for %s: %s", key, e)
                report.errors.append(f"{key}: retire failed: {e}")
        return report

    def current_user(self) -> str | Assignee:
        """The identity assignees are compared with.

        The configured value if there is one, otherwise whoever JIRA says the
        credentials belong to. Looked up at most once per Reconciler.
        """
        if self.config.current_user:
            return self.config.current_user
        if self._me is None:
            self._me = self.issue_source.fetch_myself()
            logger.debug("Comparing assignees with %s", self._me)
        return self._me

    def _retire_ticket(
        self,
        key: str,
        status: TicketStatus,
        current_user: str | Assignee,
        report: SyncReport,
    ) -> None:
        action = decide_retirement(status, current_user)

        match action:
            case Retirement.COMPLETE:
                logger.debug("%s is resolved (%s), marking complete", key, status.resolution)
                if self.task_store.complete(key):
                    report.completed.append(key)
            case Retirement.DELETE:
                if status.assignee is None:
                    logger.debug("%s is unassigned, removing task", key)
                else:
                    logger.debug("%s was reassigned to %s, removing task", key, status.assignee)
                if self.task_store.delete(key):
                    report.deleted.append(key)
            case Retirement.KEEP:
                report.untouched.append(key)
