"""
Atlassian MCP client.

Loads the Jira/Confluence tools exposed by the Atlassian MCP server (directly
over HTTP, or through the `mcp-remote` stdio proxy) as LangChain tools.
Falls back to the direct Jira REST tools from tools.py when the server is
unreachable, so the chat keeps working.

Usage:
    tools = await load_atlassian_tools()
"""

import logging

import httpx
from langchain_mcp_adapters.client import MultiServerMCPClient

from assistant.config import ConfigError, Settings, get_settings
from assistant.http_client import build_client

logger = logging.getLogger(__name__)

_atlassian_tools: list | None = None


def _connection(settings: Settings) -> dict:
    transport = settings.atlassian_mcp_transport
    if transport == "stdio":
        return {
            "transport": "stdio",
            "command": "npx",
            "args": ["-y", "mcp-remote", settings.atlassian_mcp_remote],
        }
    return {"transport": transport, "url": settings.atlassian_mcp_url}


def _fallback_tools(settings: Settings) -> list:
    if not settings.has_jira_credentials:
        logger.warning("[mcp_client] Jira REST credentials not set; Jira tools disabled")
        return []
    from assistant.tools import JIRA_FALLBACK_TOOLS
    logger.info("[mcp_client] Falling back to direct Jira tools")
    return list(JIRA_FALLBACK_TOOLS)


async def load_atlassian_tools(settings: Settings | None = None) -> list:
    """Load LangChain tools from the Atlassian MCP server.

    Returns the MCP tools, or the direct Jira tools (possibly none) when the
    server cannot be reached.
    """
    settings = settings or get_settings()
    try:
        client = MultiServerMCPClient({"atlassian": _connection(settings)})
        tools = await client.get_tools()
        logger.info("[mcp_client] Loaded %d Atlassian MCP tools", len(tools))
        return tools
    except Exception as e:
        logger.warning("[mcp_client] Could not connect to Atlassian MCP server: %s", e)
        return _fallback_tools(settings)


async def get_atlassian_tools() -> list:
    """Atlassian tools, loaded once per process."""
    global _atlassian_tools
    if _atlassian_tools is None:
        _atlassian_tools = await load_atlassian_tools()
    return _atlassian_tools


def reset_atlassian_tools() -> None:
    global _atlassian_tools
    _atlassian_tools = None


def atlassian_mcp_chat(
    prompt: str,
    api_key: str | None = None,
    endpoint: str | None = None,
    transport: httpx.BaseTransport | None = None,
):
    """Send a prompt to the hosted Atlassian MCP chat endpoint and return its JSON reply."""
    settings = get_settings()
    api_key = api_key or settings.atlassian_mcp_api_key
    endpoint = endpoint or settings.atlassian_mcp_api_url
    if not api_key:
        raise ConfigError("ATLASSIAN_MCP_API_KEY not set")

    with build_client("", headers={"Authorization": f"Bearer {api_key}"}, transport=transport) as client:
        response = client.post(endpoint, json={"prompt": prompt})
        response.raise_for_status()
        return response.json()
