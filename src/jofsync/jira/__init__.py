"""JIRA client - Reads open tickets and ticket status from the JIRA REST API."""

from jofsync.jira.client import JiraClient
from jofsync.jira.exceptions import (
    JiraError,
    ParseError,
    RemoteError,
    UnauthorizedError,
)
from jofsync.jira.models import Assignee, Ticket, TicketStatus

__all__ = [
    "Assignee",
    "JiraClient",
    "JiraError",
    "ParseError",
    "RemoteError",
    "Ticket",
    "TicketStatus",
    "UnauthorizedError",
]
