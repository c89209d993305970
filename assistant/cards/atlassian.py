"""
Cards for Jira / Confluence results, from the Atlassian MCP tools or the
direct Jira fallback tools.

MCP payloads come back in several shapes for the same logical result
(REST `fields` objects, flattened issues, `results` vs `pages`), so each
branch picks the first key that is present.
"""

from assistant.cards import base
from assistant.cards.listing import ResourceList, fields_search
from assistant.envelope import normalize

ITEMS_PER_PAGE = 3

ISSUE_LIST_ACTIONS = {"searchJiraIssuesUsingJql", "search_issues", "get_issues", "list_issues"}
ISSUE_DETAIL_ACTIONS = {"getJiraIssue", "get_issue", "show_issue"}
ISSUE_SAVE_ACTIONS = {"editJiraIssue", "createJiraIssue"}
PROJECT_LIST_ACTIONS = {"getVisibleJiraProjects", "list_projects", "get_projects"}
PAGE_LIST_ACTIONS = {"getPagesInConfluenceSpace", "getConfluencePageAncestors", "getConfluencePageDescendants"}
PAGE_SAVE_ACTIONS = {"createConfluencePage", "updateConfluencePage"}
CONFLUENCE_COMMENT_LIST_ACTIONS = {"getConfluencePageFooterComments", "getConfluencePageInlineComments"}
CONFLUENCE_COMMENT_SAVE_ACTIONS = {"createConfluenceFooterComment", "createConfluenceInlineComment"}


# ────────────── Colours ──────────────

def status_tone(status_category: str | None) -> str:
    category = (status_category or "").lower()
    if category == "done":
        return "green"
    if category == "indeterminate":
        return "blue"
    if category in ("new", "to do"):
        return "gray"
    return "yellow"


def priority_tone(priority: str | None) -> str:
    value = (priority or "medium").lower()
    if "highest" in value or "critical" in value:
        return "red"
    if "high" in value:
        return "orange"
    if "lowest" in value or "trivial" in value:
        return "gray"
    if "low" in value:
        return "green"
    return "blue"


# ────────────── Shape helpers ──────────────

def _name(value) -> str | None:
    if isinstance(value, dict):
        return value.get("displayName") or value.get("name") or value.get("key")
    return value


def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _records(items) -> bool:
    """True for a list of objects; anything else is shown as a JSON card."""
    return isinstance(items, list) and all(isinstance(item, dict) for item in items)


def adf_text(value) -> str:
    """Plain text from an Atlassian Document Format node (or a plain string)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "".join(adf_text(node) for node in value)
    if isinstance(value, dict):
        if value.get("type") == "text":
            return value.get("text", "")
        text = adf_text(value.get("content"))
        if value.get("type") in ("paragraph", "heading", "listItem", "codeBlock"):
            text += "\n"
        return text
    return str(value)


def issue_view(issue: dict) -> dict:
    """One flat shape for REST issues (`fields`) and already-flattened issues."""
    fields = _dict(issue.get("fields")) or issue
    status = fields.get("status") or {}
    category = _dict(_dict(status).get("statusCategory")).get("key")
    issue_type = fields.get("issueType") or fields.get("issuetype")
    project = fields.get("project") or {}
    return {
        "key": issue.get("key"),
        "summary": fields.get("summary") or "No summary",
        "description": adf_text(fields.get("description")).strip(),
        "status": _name(status) or "Unknown",
        "status_category": category,
        "priority": _name(fields.get("priority")),
        "issue_type": _name(issue_type) or "unknown",
        "assignee": _name(fields.get("assignee")),
        "reporter": _name(fields.get("reporter")),
        "created": fields.get("created"),
        "updated": fields.get("updated"),
        "project": _name(project) if project else None,
        "labels": fields.get("labels") or [],
        "url": issue.get("url") or issue.get("self"),
    }


def page_view(page: dict) -> dict:
    """Confluence page / search hit in one shape."""
    content = _dict(page.get("content"))
    body = page.get("body")
    storage = _dict(_dict(body).get("storage")).get("value")
    plain = _dict(_dict(body).get("plain")).get("value")
    if isinstance(body, str):
        plain = body
    links = _dict(page.get("_links"))
    space = page.get("space") or content.get("space") or {}
    return {
        "id": page.get("id") or content.get("id"),
        "title": page.get("title") or content.get("title") or "Untitled",
        "space": _name(space) if space else page.get("spaceId"),
        "status": page.get("status") or content.get("status"),
        "body": plain or storage or page.get("excerpt") or "",
        "url": page.get("url") or links.get("webui") or links.get("tinyui"),
        "updated": _dict(page.get("version")).get("createdAt") or page.get("lastModified"),
    }


def comment_view(comment: dict) -> dict:
    body = comment.get("body")
    if isinstance(body, dict) and ("storage" in body or "atlas_doc_format" in body):
        text = _dict(body.get("storage") or body.get("atlas_doc_format")).get("value", "")
    else:
        text = adf_text(body)
    author = comment.get("author") or _dict(comment.get("version")).get("authorId")
    return {
        "author": _name(author) or "Unknown",
        "body": text,
        "created": comment.get("created") or _dict(comment.get("version")).get("createdAt"),
    }


def _first(data: dict, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


# ────────────── Dispatch ──────────────

_issue_search = fields_search(
    lambda i: i["key"], lambda i: i["summary"], lambda i: i["description"], lambda i: i["status"],
    lambda i: i.get("assignee"), lambda i: i.get("project"), lambda i: i.get("issue_type"),
)
_name_search = fields_search(lambda x: x.get("name"), lambda x: x.get("key"), lambda x: x.get("url"))
_project_search = fields_search(
    lambda p: p.get("name"), lambda p: p.get("key"), lambda p: p.get("description"),
    lambda p: _name(p.get("lead")), lambda p: p.get("projectTypeKey"),
)
_page_search = fields_search(lambda p: p["title"], lambda p: p.get("space"), lambda p: p.get("body"))


def _render(**context) -> str:
    return base.render("atlassian.html", status_tone=status_tone, priority_tone=priority_tone, **context)


def _list(view, title, items, search_fn, search, page, count=None, **extra):
    listing = ResourceList(items, search_fn, ITEMS_PER_PAGE, count=count)
    return _render(view=view, title=title, page=listing.page(search, page), **extra)


def render(action: str | None, data, search: str = "", page: int = 1) -> str:
    """Render an Atlassian result; falls back to a JSON card for unknown shapes."""
    data = normalize(data)
    action = data.get("action") or action
    if not data.get("success") and data.get("error"):
        return _render(
            view="error",
            error=data.get("error") or "An error occurred while fetching Atlassian data",
            details=data.get("details"),
        )

    if action in ISSUE_LIST_ACTIONS and _records(data.get("issues")):
        issues = [issue_view(i) for i in data["issues"]]
        return _list("issues", "Jira Issues", issues, _issue_search, search, page,
                     count=data.get("total") or len(issues), query=data.get("query"))

    if action in ISSUE_DETAIL_ACTIONS and (_dict(data.get("issue")) or _dict(data.get("fields"))):
        return _render(view="issue", issue=issue_view(_dict(data.get("issue")) or data))

    if action in ISSUE_SAVE_ACTIONS and (_dict(data.get("issue")) or data.get("key")):
        verb = "created" if action == "createJiraIssue" else "updated"
        return _render(view="issue_saved", verb=verb,
                       issue=issue_view(_dict(data.get("issue")) or data))

    if action == "getTransitionsForJiraIssue" and _records(data.get("transitions")):
        transitions = [
            {"id": t.get("id"), "name": t.get("name"), "to": _name(t.get("to")),
             "category": _dict(_dict(t.get("to")).get("statusCategory")).get("key")}
            for t in data["transitions"]
        ]
        return _list("transitions", "Available Transitions", transitions, _name_search, search, page)

    if action == "transitionJiraIssue":
        return _render(view="message", title="Issue transitioned", data=data)

    if action == "addCommentToJiraIssue" and isinstance(data.get("comment"), dict):
        return _render(view="comment", title="Comment added",
                       comment=comment_view(data["comment"]))

    if action == "getJiraIssueRemoteIssueLinks" and _records(_first(data, "remoteLinks", "links")):
        links = [
            {"title": _dict(link.get("object")).get("title") or link.get("title"),
             "url": _dict(link.get("object")).get("url") or link.get("url"),
             "relationship": link.get("relationship")}
            for link in _first(data, "remoteLinks", "links")
        ]
        return _render(view="remote_links", links=links)

    if action in PROJECT_LIST_ACTIONS and _records(data.get("projects")):
        return _list("projects", "Jira Projects", data["projects"], _project_search, search, page,
                     count=data.get("total") or len(data["projects"]))

    if action == "get_project" and data.get("project"):
        return _render(view="project", project=data["project"])

    if action == "getJiraProjectIssueTypesMetadata" and _records(data.get("issueTypes")):
        return _list("issue_types", "Issue Types", data["issueTypes"], _name_search, search, page)

    if action == "atlassianUserInfo" and (data.get("user") or data.get("accountId")):
        return _render(view="user", user=data.get("user") or data)

    if action == "lookupJiraAccountId" and (data.get("accountId") or data.get("user")):
        user = data.get("user") or {}
        return _render(view="account_lookup",
                       account_id=data.get("accountId") or user.get("accountId"),
                       display_name=data.get("displayName") or user.get("displayName"))

    if action == "getAccessibleAtlassianResources" and _records(data.get("resources")):
        return _list("resources", "Accessible Sites", data["resources"], _name_search, search, page)

    if action == "getConfluenceSpaces" and _records(_first(data, "spaces", "results")):
        spaces = _first(data, "spaces", "results")
        return _list("spaces", "Confluence Spaces", spaces, _name_search, search, page,
                     count=data.get("size") or len(spaces))

    if action == "getConfluencePage" and (_dict(data.get("page")) or data.get("title")):
        return _render(view="page", page_info=page_view(_dict(data.get("page")) or data))

    if action in PAGE_LIST_ACTIONS and _records(_first(data, "pages", "results")):
        pages = [page_view(p) for p in _first(data, "pages", "results")]
        return _list("pages", "Confluence Pages", pages, _page_search, search, page,
                     count=data.get("size") or len(pages))

    if action in PAGE_SAVE_ACTIONS and (_dict(data.get("page")) or data.get("title")):
        verb = "created" if action == "createConfluencePage" else "updated"
        return _render(view="page_saved", verb=verb,
                       page_info=page_view(_dict(data.get("page")) or data))

    if action == "searchConfluenceUsingCql" and _records(data.get("results")):
        results = [page_view(r) for r in data["results"]]
        return _list("pages", "Confluence Search Results", results, _page_search, search, page,
                     count=data.get("totalSize") or len(results))

    if action in CONFLUENCE_COMMENT_LIST_ACTIONS and _records(_first(data, "comments", "results")):
        comments = [comment_view(c) for c in _first(data, "comments", "results")]
        return _list("comments", "Page Comments", comments,
                     fields_search(lambda c: c["author"], lambda c: c["body"]), search, page,
                     count=data.get("size") or len(comments))

    if action in CONFLUENCE_COMMENT_SAVE_ACTIONS and isinstance(data.get("comment"), dict):
        return _render(view="comment", title="Comment added",
                       comment=comment_view(data["comment"]))

    return _render(view="json", action=action, data=data)
