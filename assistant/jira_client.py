"""
Minimal Jira Cloud REST client (v3) and the direct Jira tool logic.

Used when the Atlassian MCP proxy is not reachable, and by the /api/jira
endpoint of the chat server.
"""

import logging
import re

import httpx

from assistant.config import ConfigError, Settings, get_settings
from assistant.envelope import error_message, fail, ok
from assistant.http_client import build_client

logger = logging.getLogger(__name__)

ISSUE_FIELDS = "id,key,summary,description,status,priority,assignee,reporter,created,updated,issuetype"

_RE_ISSUE_KEY = re.compile(r"^[A-Z]+-\d+$")


class JiraError(RuntimeError):
    """Non-2xx response from the Jira API."""


def build_jql(query: str) -> str:
    """Turn a natural-language query into basic JQL."""
    lower = query.lower()

    if _RE_ISSUE_KEY.match(query.upper()):
        return f'key = "{query.upper()}"'

    jql = f'text ~ "{query}"'
    if "bug" in lower:
        jql += " AND issuetype = Bug"
    if "open" in lower or "active" in lower:
        jql += " AND status != Done"
    if "my" in lower or "assigned to me" in lower:
        jql += " AND assignee = currentUser()"
    return jql + " ORDER BY updated DESC"


class JiraClient:
    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not (base_url and email and api_token):
            raise ConfigError("JIRA_BASE_URL, JIRA_EMAIL and JIRA_API_TOKEN must be set")
        self._client = build_client(
            base_url.rstrip("/") + "/rest/api/3",
            auth=(email, api_token),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs) -> "JiraClient":
        settings = settings or get_settings()
        return cls(settings.jira_base_url, settings.jira_email, settings.jira_api_token, **kwargs)

    def _request(self, endpoint: str, params: dict | None = None) -> dict:
        response = self._client.get(endpoint, params=params)
        if not response.is_success:
            raise JiraError(f"Jira API error: {response.status_code} {response.reason_phrase}")
        return response.json()

    def search_issues(self, query: str, max_results: int = 10) -> dict:
        """Search issues; returns {issues, total, maxResults}."""
        return self._request(
            "/search",
            {"jql": build_jql(query), "maxResults": max_results, "fields": ISSUE_FIELDS},
        )

    def get_issue(self, issue_key: str) -> dict:
        return self._request(f"/issue/{issue_key}", {"fields": ISSUE_FIELDS})

    def close(self) -> None:
        self._client.close()


def flatten_issue(issue: dict) -> dict:
    """Lift REST `fields` to the top level so cards read one shape."""
    fields = issue.get("fields") or {}
    flat = {"id": issue.get("id"), "key": issue.get("key")}
    for name in ISSUE_FIELDS.split(","):
        if name in ("id", "key"):
            continue
        if name in fields:
            flat[name] = fields[name]
    flat["issueType"] = fields.get("issuetype")
    return flat


def search_issues(query: str, max_results: int = 10, **client_kwargs) -> dict:
    """Envelope for a Jira issue search."""
    client = None
    try:
        client = JiraClient.from_settings(**client_kwargs)
        result = client.search_issues(query, max_results)
        issues = [flatten_issue(i) for i in result.get("issues") or []]
        return ok(
            "search_issues",
            query=query,
            issues=issues,
            total=result.get("total", len(issues)),
            maxResults=result.get("maxResults", max_results),
        )
    except Exception as e:
        logger.warning("[jira] search failed: %s", e)
        return fail("search_issues", error_message(e), query=query)
    finally:
        if client is not None:
            client.close()


def get_issue(issue_key: str, **client_kwargs) -> dict:
    """Envelope for a single Jira issue."""
    client = None
    try:
        client = JiraClient.from_settings(**client_kwargs)
        return ok("get_issue", issue=flatten_issue(client.get_issue(issue_key)))
    except Exception as e:
        logger.warning("[jira] get_issue %s failed: %s", issue_key, e)
        return fail("get_issue", error_message(e), issueKey=issue_key)
    finally:
        if client is not None:
            client.close()


def execute_jira_action(action: str, query: str | None = None, issue_key: str | None = None, **client_kwargs) -> dict:
    """Dispatch for the /api/jira endpoint: action is "search" or "getIssue"."""
    if action == "search":
        if not query:
            return fail("search_issues", "query is required for search")
        return search_issues(query, **client_kwargs)
    if action == "getIssue":
        if not issue_key:
            return fail("get_issue", "issueKey is required for getIssue")
        return get_issue(issue_key, **client_kwargs)
    return fail(action or "unknown", f"Unsupported action: {action}")
