"""
Jinja2 environment, filters and colour helpers shared by the card renderers.
"""

import json
import re
from datetime import date, datetime, timezone

from jinja2 import Environment, PackageLoader, select_autoescape

_RE_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")

_env: Environment | None = None


def parse_date(value) -> datetime | None:
    """Accept datetimes, ISO-8601 strings (Jira's +0000 offsets too) and epoch milliseconds."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        text = str(value).strip().replace("Z", "+00:00")
        text = _RE_COMPACT_OFFSET.sub(r"\1:\2", text)
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def format_datetime(value) -> str:
    dt = parse_date(value)
    if dt is None:
        return str(value) if value else "N/A"
    return dt.strftime("%Y-%m-%d %H:%M:%S %Z")


def format_day(value) -> str:
    dt = parse_date(value)
    if dt is None:
        return str(value) if value else "N/A"
    return dt.strftime("%Y-%m-%d")


def _distance(seconds: float) -> str:
    minutes = seconds / 60
    hours = minutes / 60
    days = hours / 24
    if seconds < 45:
        return "less than a minute"
    if seconds < 90:
        return "1 minute"
    if minutes < 45:
        return f"{round(minutes)} minutes"
    if minutes < 90:
        return "about 1 hour"
    if hours < 24:
        return f"about {round(hours)} hours"
    if hours < 42:
        return "1 day"
    if days < 30:
        return f"{round(days)} days"
    if days < 45:
        return "about 1 month"
    if days < 365:
        return f"{round(days / 30)} months"
    years = days / 365
    return "about 1 year" if years < 1.5 else f"about {round(years)} years"


def time_ago(value, now: datetime | None = None) -> str:
    """Relative time with suffix, e.g. "3 days ago" / "in about 1 hour"."""
    dt = parse_date(value)
    if dt is None:
        return str(value) if value else "N/A"
    now = now or datetime.now(timezone.utc)
    delta = (now - dt).total_seconds()
    if delta >= 0:
        return f"{_distance(delta)} ago"
    return f"in {_distance(-delta)}"


def short_sha(value) -> str:
    return str(value)[:8] if value else ""


def megabytes(value) -> str:
    return f"{(value or 0) / 1024 / 1024:.2f} MB"


def display_value(value) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


# ────────────── Status colours ──────────────

def aws_status_tone(status: str | None) -> str:
    status = status or ""
    if "COMPLETE" in status:
        return "green"
    if "FAILED" in status:
        return "red"
    if "PROGRESS" in status or "PENDING" in status:
        return "yellow"
    return "orange"


_TONE_ICONS = {"green": "✔", "red": "✖", "yellow": "◷", "orange": "!", "blue": "▶", "gray": "○"}


def tone_icon(tone: str) -> str:
    return _TONE_ICONS.get(tone, "!")


def get_env() -> Environment:
    """Shared template environment (autoescaped)."""
    global _env
    if _env is None:
        env = Environment(
            loader=PackageLoader("assistant.cards", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters.update(
            datetime=format_datetime,
            day=format_day,
            ago=time_ago,
            short_sha=short_sha,
            megabytes=megabytes,
            display=display_value,
            aws_tone=aws_status_tone,
            tone_icon=tone_icon,
        )
        _env = env
    return _env


def render(template: str, **context) -> str:
    return get_env().get_template(template).render(**context)
