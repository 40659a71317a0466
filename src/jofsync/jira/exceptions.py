"""Custom exceptions for the JIRA client."""


class JiraError(Exception):
    """Base exception for JIRA client errors."""


class RemoteError(JiraError):
    """Non-2xx response, timeout, or connection failure."""


class UnauthorizedError(RemoteError):
    """JIRA rejected the credentials (401/403)."""


class ParseError(JiraError):
    """Response body is not the JSON document we expected."""
