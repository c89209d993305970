"""
Header badge for the AWS account the server is connected to.
"""

from assistant.aws_tools import extract_role_info, format_account_id
from assistant.cards import base
from assistant.config import DEFAULT_REGION
from assistant.envelope import normalize

MAX_NAME_CHARS = 30


def clip(value: str | None, limit: int = MAX_NAME_CHARS) -> str:
    value = value or ""
    return f"{value[:limit]}..." if len(value) > limit else value


def render(info) -> str:
    """Render a get_account_info envelope as the connection badge."""
    info = normalize(info)
    if not info.get("success"):
        return base.render(
            "account.html",
            view="error",
            info=info,
            region=info.get("region") or DEFAULT_REGION,
        )
    return base.render(
        "account.html",
        view="connected",
        info=info,
        masked_id=format_account_id(info.get("accountId") or ""),
        role=extract_role_info(info.get("arn")),
        clip=clip,
    )
