import asyncio
import json

import httpx
import pytest

from assistant import mcp_client
from assistant.config import ConfigError, Settings
from assistant.tools import JIRA_FALLBACK_TOOLS


class UnreachableClient:
    def __init__(self, connections):
        self.connections = connections

    async def get_tools(self):
        raise ConnectionError("connection refused")


class WorkingClient:
    last_connections = None

    def __init__(self, connections):
        WorkingClient.last_connections = connections

    async def get_tools(self):
        return ["getJiraIssue", "searchJiraIssuesUsingJql"]


def test_loads_mcp_tools(monkeypatch):
    monkeypatch.setattr(mcp_client, "MultiServerMCPClient", WorkingClient)
    tools = asyncio.run(mcp_client.load_atlassian_tools(Settings()))
    assert tools == ["getJiraIssue", "searchJiraIssuesUsingJql"]
    assert WorkingClient.last_connections == {
        "atlassian": {"transport": "streamable_http", "url": "http://localhost:3000/mcp"},
    }


def test_stdio_connection_runs_mcp_remote():
    conn = mcp_client._connection(Settings(atlassian_mcp_transport="stdio"))
    assert conn["command"] == "npx"
    assert conn["args"] == ["-y", "mcp-remote", "https://mcp.atlassian.com/v1/sse"]


def test_falls_back_to_direct_jira_tools(monkeypatch):
    monkeypatch.setattr(mcp_client, "MultiServerMCPClient", UnreachableClient)
    settings = Settings(jira_base_url="https://x.atlassian.net", jira_email="a@b.c", jira_api_token="t")
    tools = asyncio.run(mcp_client.load_atlassian_tools(settings))
    assert tools == JIRA_FALLBACK_TOOLS


def test_no_jira_tools_without_credentials(monkeypatch):
    monkeypatch.setattr(mcp_client, "MultiServerMCPClient", UnreachableClient)
    assert asyncio.run(mcp_client.load_atlassian_tools(Settings())) == []


def test_atlassian_mcp_chat_posts_prompt():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"reply": "ok"})

    reply = mcp_client.atlassian_mcp_chat(
        "list my issues", api_key="key", endpoint="https://mcp.example.com/chat",
        transport=httpx.MockTransport(handler),
    )
    assert reply == {"reply": "ok"}
    assert seen[0].headers["Authorization"] == "Bearer key"
    assert json.loads(seen[0].content) == {"prompt": "list my issues"}


def test_atlassian_mcp_chat_requires_key():
    with pytest.raises(ConfigError):
        mcp_client.atlassian_mcp_chat("hi")
