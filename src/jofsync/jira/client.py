"""JiraClient - Reads open tickets and ticket status from the JIRA REST API."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date
from typing import Any

import httpx

from jofsync import __version__
from jofsync.jira.exceptions import ParseError, RemoteError, UnauthorizedError
from jofsync.jira.models import Assignee, Ticket, TicketStatus

logger = logging.getLogger("jofsync.jira")

SEARCH_PATH = "/rest/api/2/search"
MYSELF_PATH = "/rest/api/2/myself"
STATUS_FIELDS = "resolution,assignee"

# Seconds
CONNECT_TIMEOUT = 10.0
READ_TIMEOUT = 30.0

# Keys come back out of task notes, which the user can edit
_ISSUE_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*-\d+$")


class JiraClient:
    """Read-only client for the JIRA search API.

    Uses basic auth over HTTPS. Full tickets are fetched once per run for
    the configured filter; tickets that already have tasks are checked with
    a single bulk query that only asks for resolution and assignee.
    """

    def __init__(
        self,
        hostname: str,
        username: str,
        password: str,
        ssl_verify: bool = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the JIRA client.

        Args:
            hostname: JIRA base URL, e.g. "https://example.atlassian.net"
            username: Account used for basic auth
            password: Password or API token for basic auth
            ssl_verify: Verify the server certificate
            transport: httpx transport override (for testing)
        """
        self.hostname = hostname.rstrip("/")
        self.username = username
        self._password = password
        self.ssl_verify = ssl_verify
        self._transport = transport
        self._client: httpx.Client | None = None

        if not ssl_verify:
            logger.error("SECURITY WARNING: SSL verification is disabled for %s", self.hostname)
            logger.error("Only use this for testing; requests are open to interception.")

    def __repr__(self) -> str:
        return f"JiraClient(hostname={self.hostname!r}, username={self.username!r})"

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.hostname,
                auth=httpx.BasicAuth(self.username, self._password),
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"jofsync/{__version__}",
                },
                timeout=httpx.Timeout(READ_TIMEOUT, connect=CONNECT_TIMEOUT),
                verify=self.ssl_verify,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """Issue a GET request and decode the JSON body.

        Raises:
            UnauthorizedError: If JIRA rejects the credentials
            RemoteError: On transport failure, timeout, or non-2xx status
            ParseError: If the body is not a JSON object
        """
        logger.debug("GET %s %s", path, params)
        try:
            response = self.client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise RemoteError(f"Request to {self.hostname}{path} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RemoteError(f"Request to {self.hostname}{path} failed: {e}") from e

        logger.debug("Response code: %d", response.status_code)

        if response.status_code in (401, 403):
            raise UnauthorizedError(
                f"JIRA rejected the credentials for {self.username} "
                f"(HTTP {response.status_code})"
            )
        if not 200 <= response.status_code < 300:
            raise RemoteError(f"HTTP {response.status_code}: {response.reason_phrase}")

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Failed to parse JIRA response from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object from {path}, got {type(data).__name__}")
        return data

    def _search(
        self,
        jql: str,
        max_results: int,
        fields: str | None = None,
        validate_query: str | None = None,
    ) -> list[dict[str, Any]]:
        """Run a JQL search and return every matching issue.

        Asks for ``max_results`` in one page. Some servers cap the page size
        regardless, so keep reading with ``startAt`` until ``total`` is met.
        """
        issues: list[dict[str, Any]] = []
        params: dict[str, Any] = {"jql": jql, "maxResults": max_results}
        if fields is not None:
            params["fields"] = fields
        if validate_query is not None:
            params["validateQuery"] = validate_query

        while True:
            data = self._get(SEARCH_PATH, params)
            page = data.get("issues")
            if not isinstance(page, list):
                raise ParseError("JIRA search response has no 'issues' array")
            issues.extend(page)

            total = data.get("total")
            if not page or not isinstance(total, int) or len(issues) >= total:
                break
            logger.debug("Read %d of %d issues, requesting next page", len(issues), total)
            params = {**params, "startAt": len(issues)}

        return issues

    def fetch_open(self, jql: str) -> dict[str, Ticket]:
        """Fetch every issue matching the configured filter.

        Args:
            jql: The (sanitized) JQL filter

        Returns:
            Mapping of issue key to Ticket, in the order JIRA returned them
        """
        logger.debug("Starting JIRA issue retrieval")
        issues = self._search(jql, max_results=-1)
        logger.info("Connected to %s, %d issue(s) match the filter", self.hostname, len(issues))

        tickets: dict[str, Ticket] = {}
        for item in issues:
            ticket = _parse_ticket(item)
            logger.debug("Found JIRA issue %s", ticket.key)
            tickets[ticket.key] = ticket
        return tickets

    def fetch_status_bulk(self, keys: Iterable[str]) -> dict[str, TicketStatus]:
        """Fetch resolution and assignee for many issues in one request.

        Args:
            keys: Issue keys to check

        Returns:
            Mapping of issue key to TicketStatus. Keys JIRA does not return
            (deleted or not visible) are absent.
        """
        requested = sorted(set(keys))
        if not requested:
            return {}

        valid = [key for key in requested if _ISSUE_KEY_PATTERN.match(key)]
        for key in requested:
            if key not in valid:
                logger.warning("Skipping malformed issue key from task note: %r", key)
        if not valid:
            return {}

        logger.debug("Batch fetching status for %d JIRA issue(s)", len(valid))
        jql = f"key in ({','.join(valid)})"
        # Strict validation rejects the whole query if any key was deleted
        issues = self._search(
            jql,
            max_results=len(valid),
            fields=STATUS_FIELDS,
            validate_query="warn",
        )

        # JIRA answers with canonical (upper-case) keys; report them as requested
        requested_keys = {key.upper(): key for key in valid}
        statuses: dict[str, TicketStatus] = {}
        for item in issues:
            key, fields = _split_issue(item)
            key = requested_keys.get(key.upper(), key)
            statuses[key] = TicketStatus(
                resolution=_resolution_name(fields.get("resolution")),
                assignee=Assignee.from_field(fields.get("assignee")),
            )
        logger.debug("Batch fetch complete, retrieved %d status(es)", len(statuses))
        return statuses

    def fetch_myself(self) -> Assignee:
        """Fetch the identity of the authenticated user.

        Cloud search results identify assignees by ``accountId`` only, so
        comparing them with the login name or email does not work.

        Raises:
            ParseError: If the response carries no usable identity
        """
        data = self._get(MYSELF_PATH, {})
        me = Assignee.from_field(data)
        if me is None or not (me.name or me.account_id or me.email):
            raise ParseError("JIRA returned no identity for the current user")
        logger.debug("Authenticated as %s", me)
        return me


def _split_issue(item: Any) -> tuple[str, dict[str, Any]]:
    """Return (key, fields) for a raw search result item."""
    if not isinstance(item, dict) or not isinstance(item.get("key"), str):
        raise ParseError(f"Malformed issue in JIRA response: {item!r}")
    fields = item.get("fields") or {}
    if not isinstance(fields, dict):
        raise ParseError(f"Malformed fields for issue {item['key']}")
    return item["key"], fields


def _resolution_name(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, dict):
        return str(value.get("name") or "Resolved")
    return str(value)


def _parse_due_date(key: str, value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Ignoring unparseable due date %r on %s", value, key)
        return None


def _parse_ticket(item: Any) -> Ticket:
    key, fields = _split_issue(item)
    return Ticket(
        key=key,
        summary=str(fields.get("summary") or ""),
        description=fields.get("description") or None,
        resolution=_resolution_name(fields.get("resolution")),
        assignee=Assignee.from_field(fields.get("assignee")),
        due_date=_parse_due_date(key, fields.get("duedate")),
    )
