"""
httpx client builder shared by the GitHub and Jira integrations.

Centralises timeouts and headers; tests pass an httpx.MockTransport.
"""

import httpx

USER_AGENT = "multiplatform-assistant/1.0"
DEFAULT_TIMEOUT = 15.0


def build_client(
    base_url: str,
    *,
    auth: httpx.Auth | tuple[str, str] | None = None,
    headers: dict[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Client:
    """Create an httpx.Client with JSON defaults."""
    merged = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        merged.update(headers)
    return httpx.Client(
        base_url=base_url,
        auth=auth,
        headers=merged,
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        transport=transport,
    )
