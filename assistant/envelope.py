"""
Tool response envelope: {success, action, error?, ...payload}.

Every tool returns one of these. The cards package switches on `action`.
"""

import json
from datetime import date, datetime

_CREDENTIAL_MARKERS = (
    "Unable to locate credentials",
    "The security token included in the request is invalid",
    "Token has expired",
    "ExpiredToken",
    "credentials",
)


def ok(action: str, **payload) -> dict:
    """Build a success envelope."""
    return {"success": True, "action": action, **payload}


def fail(action: str, error: str, **context) -> dict:
    """Build a failure envelope. Context keys with a None value are dropped."""
    envelope = {"success": False, "action": action, "error": error}
    envelope.update({k: v for k, v in context.items() if v is not None})
    return envelope


def is_credential_error(message: str) -> bool:
    """Substring heuristic for AWS credential problems."""
    return any(marker in message for marker in _CREDENTIAL_MARKERS)


def error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__ or "Unknown error occurred"


def _default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def to_json(envelope: dict) -> str:
    """Serialize an envelope; datetimes become ISO-8601 strings."""
    return json.dumps(envelope, default=_default)


def normalize(data) -> dict:
    """Coerce a raw tool output (dict or JSON text) into an envelope-shaped dict.

    MCP tools return JSON text without a `success` flag; such payloads are
    treated as successful unless they carry an `error`.
    """
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError:
            return {"success": True, "text": data}
    if isinstance(data, list):
        return {"success": True, "results": data}
    if not isinstance(data, dict):
        return {"success": True, "text": str(data)}
    if "success" not in data:
        data = {"success": not data.get("error"), **data}
    return data
