"""
Environment configuration.

Values come from the process environment, after loading a .env file from the
project root (or chatbot/) with python-dotenv.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent

DEFAULT_REGION = "us-east-1"
DEFAULT_MCP_URL = "http://localhost:3000/mcp"
DEFAULT_MCP_API_URL = "https://api.atlassian.com/mcp/chat"
DEFAULT_MCP_REMOTE = "https://mcp.atlassian.com/v1/sse"


class ConfigError(RuntimeError):
    """Raised when a required setting is missing."""


def load_env() -> None:
    """Load the first .env file found (project root, then chatbot/)."""
    for env_path in [ROOT / ".env", ROOT / "chatbot" / ".env"]:
        if env_path.exists():
            load_dotenv(env_path, override=True)
            return


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = ""
    aws_region: str = DEFAULT_REGION
    github_token: str = ""
    github_owner: str = ""
    github_repo: str = ""
    jira_base_url: str = ""
    jira_email: str = ""
    jira_api_token: str = ""
    atlassian_mcp_url: str = DEFAULT_MCP_URL
    atlassian_mcp_transport: str = "streamable_http"
    atlassian_mcp_remote: str = DEFAULT_MCP_REMOTE
    atlassian_mcp_api_url: str = DEFAULT_MCP_API_URL
    atlassian_mcp_api_key: str = ""
    host: str = "0.0.0.0"
    port: int = 3851

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=_env("OPENAI_API_KEY"),
            aws_region=_env("AWS_DEFAULT_REGION") or DEFAULT_REGION,
            github_token=_env("GITHUB_TOKEN"),
            github_owner=_env("GITHUB_OWNER"),
            github_repo=_env("GITHUB_REPO"),
            jira_base_url=_env("JIRA_BASE_URL").rstrip("/"),
            jira_email=_env("JIRA_EMAIL"),
            jira_api_token=_env("JIRA_API_TOKEN"),
            atlassian_mcp_url=_env("ATLASSIAN_MCP_URL") or DEFAULT_MCP_URL,
            atlassian_mcp_transport=_env("ATLASSIAN_MCP_TRANSPORT") or "streamable_http",
            atlassian_mcp_remote=_env("ATLASSIAN_MCP_REMOTE") or DEFAULT_MCP_REMOTE,
            atlassian_mcp_api_url=_env("ATLASSIAN_MCP_API_URL") or DEFAULT_MCP_API_URL,
            atlassian_mcp_api_key=_env("ATLASSIAN_MCP_API_KEY"),
            host=_env("HOST") or "0.0.0.0",
            port=int(_env("PORT") or 3851),
        )

    @property
    def has_jira_credentials(self) -> bool:
        return bool(self.jira_base_url and self.jira_email and self.jira_api_token)


def get_settings() -> Settings:
    """Read settings from the current environment."""
    return Settings.from_env()
