"""Ticket URL convention shared by task notes and the JIRA client.

A task created by jofsync carries ``{hostname}/browse/{key}`` as the first
line of its note. That line is the only link between an OmniFocus task and
its JIRA ticket, so it is built and parsed here and nowhere else.
"""

from __future__ import annotations

BROWSE_PATH = "/browse/"


def format_ticket_url(hostname: str, key: str) -> str:
    """Build the browse URL for a ticket.

    Args:
        hostname: JIRA base URL without a trailing slash.
        key: Ticket key, e.g. "PROJ-42".

    Returns:
        The canonical browse URL.
    """
    return f"{hostname}{BROWSE_PATH}{key}"


def build_note(hostname: str, key: str, description: str | None = None) -> str:
    """Build the note for a new task.

    The URL is always the first line. The description, when given, follows
    after a blank line.
    """
    url = format_ticket_url(hostname, key)
    if description:
        return f"{url}\n\n{description}"
    return f"{url}\n"


def first_line(note: str | None) -> str:
    """Return the first line of a note, stripped."""
    if not note:
        return ""
    lines = note.splitlines()
    return lines[0].strip() if lines else ""


def parse_ticket_id(hostname: str, note: str | None) -> str | None:
    """Recover the ticket key from a task note.

    Args:
        hostname: JIRA base URL without a trailing slash.
        note: Full task note.

    Returns:
        The ticket key, or None if the note's first line is not a browse URL
        for this hostname.
    """
    line = first_line(note)
    prefix = f"{hostname}{BROWSE_PATH}"
    if not line.startswith(prefix):
        return None
    key = line[len(prefix) :]
    if not key or any(ch.isspace() for ch in key):
        return None
    return key
