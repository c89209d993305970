import pytest

_ENV_VARS = (
    "OPENAI_API_KEY",
    "AWS_DEFAULT_REGION",
    "GITHUB_TOKEN",
    "GITHUB_OWNER",
    "GITHUB_REPO",
    "JIRA_BASE_URL",
    "JIRA_EMAIL",
    "JIRA_API_TOKEN",
    "ATLASSIAN_MCP_URL",
    "ATLASSIAN_MCP_TRANSPORT",
    "ATLASSIAN_MCP_API_URL",
    "ATLASSIAN_MCP_API_KEY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def jira_env(monkeypatch):
    monkeypatch.setenv("JIRA_BASE_URL", "https://example.atlassian.net")
    monkeypatch.setenv("JIRA_EMAIL", "dev@example.com")
    monkeypatch.setenv("JIRA_API_TOKEN", "secret")
