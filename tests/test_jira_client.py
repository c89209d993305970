import httpx
import pytest

from assistant import jira_client
from assistant.config import ConfigError
from assistant.jira_client import JiraClient, build_jql

ISSUE = {
    "id": "10001",
    "key": "PROJ-1",
    "fields": {
        "summary": "Login fails",
        "status": {"name": "In Progress", "statusCategory": {"key": "indeterminate"}},
        "priority": {"name": "High"},
        "issuetype": {"name": "Bug"},
        "assignee": {"displayName": "Ann"},
    },
}


def test_build_jql_issue_key():
    assert build_jql("proj-123") == 'key = "PROJ-123"'


def test_build_jql_text_with_filters():
    assert build_jql("open bugs") == (
        'text ~ "open bugs" AND issuetype = Bug AND status != Done ORDER BY updated DESC'
    )
    assert build_jql("issues assigned to me") == (
        'text ~ "issues assigned to me" AND assignee = currentUser() ORDER BY updated DESC'
    )
    assert build_jql("login") == 'text ~ "login" ORDER BY updated DESC'


def test_client_requires_credentials():
    with pytest.raises(ConfigError):
        JiraClient("https://example.atlassian.net", "", "token")


@pytest.fixture
def seen():
    return []


@pytest.fixture
def transport(seen):
    def handler(request: httpx.Request):
        seen.append(request)
        if request.url.path == "/rest/api/3/search":
            return httpx.Response(200, json={"issues": [ISSUE], "total": 1, "maxResults": 10})
        if request.url.path == "/rest/api/3/issue/PROJ-1":
            return httpx.Response(200, json=ISSUE)
        return httpx.Response(404, json={"errorMessages": ["Issue does not exist"]})

    return httpx.MockTransport(handler)


def test_search_issues_envelope(jira_env, transport, seen):
    env = jira_client.search_issues("open bugs", transport=transport)
    assert env["success"] is True
    assert env["action"] == "search_issues"
    assert env["total"] == 1
    issue = env["issues"][0]
    assert issue["key"] == "PROJ-1"
    assert issue["summary"] == "Login fails"
    assert issue["issueType"] == {"name": "Bug"}
    request = seen[0]
    assert request.url.params["jql"].startswith('text ~ "open bugs"')
    assert request.headers["Authorization"].startswith("Basic ")


def test_get_issue_envelope(jira_env, transport):
    env = jira_client.get_issue("PROJ-1", transport=transport)
    assert env["action"] == "get_issue"
    assert env["issue"]["status"]["name"] == "In Progress"


def test_http_error_maps_to_failure(jira_env, transport):
    env = jira_client.get_issue("PROJ-404", transport=transport)
    assert env["success"] is False
    assert env["error"] == "Jira API error: 404 Not Found"
    assert env["issueKey"] == "PROJ-404"


def test_missing_credentials_is_failure_envelope(transport):
    env = jira_client.search_issues("anything", transport=transport)
    assert env["success"] is False
    assert "JIRA_BASE_URL" in env["error"]


def test_execute_jira_action(jira_env, transport):
    assert jira_client.execute_jira_action("search", query="login", transport=transport)["success"]
    assert jira_client.execute_jira_action("getIssue", issue_key="PROJ-1", transport=transport)["issue"]
    assert jira_client.execute_jira_action("search")["error"] == "query is required for search"
    assert jira_client.execute_jira_action("delete")["error"] == "Unsupported action: delete"
