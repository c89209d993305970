"""
Cards for query_github_resources envelopes.
"""

from assistant.cards import base
from assistant.cards.listing import ResourceList, fields_search
from assistant.envelope import normalize

ITEMS_PER_PAGE = 5
PREVIEW_CHARS = 2000

_repo_search = fields_search(
    lambda r: r["name"], lambda r: r.get("full_name"), lambda r: r.get("description"), lambda r: r.get("language"),
)
_issue_search = fields_search(
    lambda i: i["title"], lambda i: i.get("number"), lambda i: i.get("author"), lambda i: " ".join(i.get("labels") or []),
)

_SEARCH = {
    "list_files": ("files", fields_search(lambda f: f["name"], lambda f: f.get("path"), lambda f: f.get("type"))),
    "list_commits": ("commits", fields_search(
        lambda c: c["message"], lambda c: c["sha"], lambda c: c["author"]["name"],
    )),
    "list_issues": ("issues", _issue_search),
    "list_pull_requests": ("pull_requests", _issue_search),
    "list_branches": ("branches", fields_search(lambda b: b["name"])),
    "search_code": ("results", fields_search(lambda r: r["name"], lambda r: r.get("path"))),
    "list_user_repos": ("repositories", _repo_search),
    "list_org_repos": ("repositories", _repo_search),
    "search_repos": ("repositories", _repo_search),
}


def preview(text: str | None, limit: int = PREVIEW_CHARS) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "\n..."


def first_line(text: str | None) -> str:
    return (text or "").split("\n", 1)[0]


def render(action: str | None, data, search: str = "", page: int = 1) -> str:
    """Render a GitHub envelope; `action` defaults to the envelope's own."""
    data = normalize(data)
    action = action or data.get("action")
    if not data.get("success"):
        return base.render(
            "github.html",
            view="error",
            error=f"Error executing GitHub action: {data.get('error') or 'Unknown error occurred'}",
            details=data.get("details"),
        )

    context = {"view": action, "data": data, "preview": preview, "first_line": first_line}

    if action in _SEARCH:
        key, search_fn = _SEARCH[action]
        if data.get(key) is not None:
            count = data.get("total_count") if action == "search_code" else None
            listing = ResourceList(data[key], search_fn, ITEMS_PER_PAGE, count=count)
            return base.render("github.html", page=listing.page(search, page), **context)
        if action == "list_files" and data.get("file"):
            return base.render("github.html", **{**context, "view": "single_file"})

    if action == "get_file_content" and "content" in data:
        return base.render("github.html", **context)
    if action == "get_commit" and data.get("commit"):
        return base.render("github.html", **context)
    if action == "get_repository_info" and data.get("repository"):
        return base.render("github.html", **context)
    if action == "get_readme":
        return base.render("github.html", **context)

    return base.render("github.html", **{**context, "view": "default"})
