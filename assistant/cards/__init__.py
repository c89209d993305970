"""
HTML cards for tool results.

Each tool family has a renderer module; render_tool_result() picks one by
tool name and returns the payload streamed to the chat page as a
`tool-result` event.
"""

import logging

from assistant.cards import account, atlassian, aws, base, github
from assistant.envelope import normalize

logger = logging.getLogger(__name__)

AWS_TOOL = "query_aws_resources"
ACCOUNT_TOOL = "get_aws_account_info"
GITHUB_TOOL = "query_github_resources"


def render_tool_result(tool_name: str, data, search: str = "", page: int = 1) -> dict:
    """
    Render one tool result.

    Returns {tool, action, data, html}; `data` is the normalized envelope so
    the page can post it back to /api/cards for search and pagination.
    Anything that is not AWS or GitHub is treated as a Jira / Confluence
    result, with the tool name standing in for a missing action.
    """
    data = normalize(data)
    action = data.get("action") or tool_name

    try:
        if tool_name == AWS_TOOL:
            html = aws.render(data, search, page)
        elif tool_name == ACCOUNT_TOOL:
            html = account.render(data)
        elif tool_name == GITHUB_TOOL:
            html = github.render(action, data, search, page)
        else:
            html = atlassian.render(tool_name, data, search, page)
    except Exception:
        logger.warning("[cards] could not render %s/%s, showing raw result", tool_name, action, exc_info=True)
        html = base.render("fallback.html", title=f"{tool_name}: {action}", data=data)

    logger.debug("[cards] rendered %s/%s (%d chars)", tool_name, action, len(html))
    return {"tool": tool_name, "action": action, "data": data, "html": html}
