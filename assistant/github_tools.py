"""
Read-only GitHub queries over the REST API (httpx).

Repository-scoped actions need an owner and repo (arguments, or GITHUB_OWNER /
GITHUB_REPO). Discovery actions (list_user_repos, list_org_repos,
search_repos) find the exact owner/repo first.
"""

import base64
import logging

import httpx

from assistant.config import ConfigError, get_settings
from assistant.envelope import error_message, fail, ok
from assistant.http_client import build_client

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
MAX_PER_PAGE = 100

REPO_ACTIONS = (
    "get_repository_info",
    "list_files",
    "get_file_content",
    "list_commits",
    "list_issues",
    "list_pull_requests",
    "list_branches",
    "get_commit",
    "search_code",
    "get_readme",
)
DISCOVERY_ACTIONS = ("list_user_repos", "list_org_repos", "search_repos")
GITHUB_ACTIONS = REPO_ACTIONS + DISCOVERY_ACTIONS


class GitHubError(RuntimeError):
    """Non-2xx response from the GitHub API."""

    def __init__(self, status_code: int, message: str, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class GitHubClient:
    def __init__(self, token: str, transport: httpx.BaseTransport | None = None) -> None:
        if not token:
            raise ConfigError("GitHub token is required")
        self._client = build_client(
            GITHUB_API_URL,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            transport=transport,
        )

    def get(self, path: str, params: dict | None = None):
        params = {k: v for k, v in (params or {}).items() if v is not None}
        response = self._client.get(path, params=params)
        if response.status_code >= 400:
            try:
                details = response.json()
            except ValueError:
                details = response.text
            message = details.get("message") if isinstance(details, dict) else None
            raise GitHubError(response.status_code, message or f"GitHub API error: {response.status_code}", details)
        return response.json()

    def close(self) -> None:
        self._client.close()


def _per_page(limit: int | None) -> int:
    return min(limit or 30, MAX_PER_PAGE)


def _contents_path(owner: str, repo: str, path: str | None) -> str:
    base = f"/repos/{owner}/{repo}/contents"
    return f"{base}/{path.strip('/')}" if path and path.strip("/") else base


def _decode(content: str | None) -> str:
    return base64.b64decode(content or "").decode("utf-8", errors="replace")


def _repo_summary(repo: dict) -> dict:
    return {
        "name": repo.get("name"),
        "full_name": repo.get("full_name"),
        "description": repo.get("description"),
        "private": repo.get("private"),
        "fork": repo.get("fork"),
        "language": repo.get("language"),
        "stargazers_count": repo.get("stargazers_count"),
        "forks_count": repo.get("forks_count"),
        "watchers_count": repo.get("watchers_count"),
        "updated_at": repo.get("updated_at"),
        "url": repo.get("html_url"),
    }


def _issue_summary(item: dict) -> dict:
    return {
        "number": item.get("number"),
        "title": item.get("title"),
        "body": item.get("body"),
        "state": item.get("state"),
        "author": (item.get("user") or {}).get("login"),
        "created_at": item.get("created_at"),
        "updated_at": item.get("updated_at"),
        "url": item.get("html_url"),
    }


# ────────────── Repository-scoped actions ──────────────

def _list_files(gh: GitHubClient, owner, repo, path, branch) -> dict:
    data = gh.get(_contents_path(owner, repo, path), {"ref": branch})
    if isinstance(data, list):
        return ok(
            "list_files",
            path=path or "root",
            files=[
                {
                    "name": item.get("name"),
                    "path": item.get("path"),
                    "type": item.get("type"),
                    "size": item.get("size"),
                    "download_url": item.get("download_url"),
                }
                for item in data
            ],
        )
    file_info = {
        "name": data.get("name"),
        "path": data.get("path"),
        "type": data.get("type"),
        "size": data.get("size"),
        "content": data.get("content") if data.get("type") == "file" else None,
    }
    if file_info["content"] is None:
        return ok("list_files", path=path, file=file_info,
                  message="Content not available for this type of resource.")
    return ok("list_files", path=path, file=file_info)


def _get_file_content(gh, owner, repo, path, branch) -> dict:
    if not path:
        raise ValueError("Path is required for get_file_content action")
    data = gh.get(_contents_path(owner, repo, path), {"ref": branch})
    if not isinstance(data, dict) or "content" not in data:
        raise ValueError("File not found or is a directory")
    return ok("get_file_content", path=path, content=_decode(data["content"]),
              size=data.get("size"), sha=data.get("sha"))


def _list_commits(gh, owner, repo, limit, branch) -> dict:
    data = gh.get(f"/repos/{owner}/{repo}/commits", {"per_page": _per_page(limit), "sha": branch})
    commits = []
    for c in data:
        author = (c.get("commit") or {}).get("author") or {}
        commits.append({
            "sha": c.get("sha"),
            "message": (c.get("commit") or {}).get("message"),
            "author": author,
            "date": author.get("date"),
            "url": c.get("html_url"),
        })
    return ok("list_commits", commits=commits)


def _get_commit(gh, owner, repo, sha) -> dict:
    if not sha:
        raise ValueError("SHA is required for get_commit action")
    data = gh.get(f"/repos/{owner}/{repo}/commits/{sha}")
    return ok("get_commit", commit={
        "sha": data.get("sha"),
        "message": (data.get("commit") or {}).get("message"),
        "author": (data.get("commit") or {}).get("author"),
        "stats": data.get("stats"),
        "files": [
            {
                "filename": f.get("filename"),
                "status": f.get("status"),
                "additions": f.get("additions"),
                "deletions": f.get("deletions"),
                "changes": f.get("changes"),
            }
            for f in data.get("files") or []
        ],
    })


def _list_issues(gh, owner, repo, state, limit) -> dict:
    data = gh.get(f"/repos/{owner}/{repo}/issues", {"state": state, "per_page": _per_page(limit)})
    issues = []
    for item in data:
        summary = _issue_summary(item)
        summary["labels"] = [
            label if isinstance(label, str) else label.get("name")
            for label in item.get("labels") or []
        ]
        issues.append(summary)
    return ok("list_issues", issues=issues)


def _list_pull_requests(gh, owner, repo, state, limit) -> dict:
    data = gh.get(f"/repos/{owner}/{repo}/pulls", {"state": state, "per_page": _per_page(limit)})
    pulls = []
    for pr in data:
        summary = _issue_summary(pr)
        summary["head"] = (pr.get("head") or {}).get("ref")
        summary["base"] = (pr.get("base") or {}).get("ref")
        pulls.append(summary)
    return ok("list_pull_requests", pull_requests=pulls)


def _get_repository_info(gh, owner, repo) -> dict:
    data = gh.get(f"/repos/{owner}/{repo}")
    return ok("get_repository_info", repository={
        "name": data.get("name"),
        "full_name": data.get("full_name"),
        "description": data.get("description"),
        "private": data.get("private"),
        "fork": data.get("fork"),
        "created_at": data.get("created_at"),
        "updated_at": data.get("updated_at"),
        "language": data.get("language"),
        "size": data.get("size"),
        "stargazers_count": data.get("stargazers_count"),
        "watchers_count": data.get("watchers_count"),
        "forks_count": data.get("forks_count"),
        "open_issues_count": data.get("open_issues_count"),
        "default_branch": data.get("default_branch"),
        "topics": data.get("topics") or [],
        "license": (data.get("license") or {}).get("name"),
        "url": data.get("html_url"),
    })


def _search_code(gh, owner, repo, query, limit) -> dict:
    if not query:
        raise ValueError("Query is required for search_code action")
    data = gh.get("/search/code", {"q": f"{query} repo:{owner}/{repo}", "per_page": _per_page(limit)})
    return ok(
        "search_code",
        query=query,
        results=[
            {
                "name": item.get("name"),
                "path": item.get("path"),
                "sha": item.get("sha"),
                "url": item.get("html_url"),
                "repository": (item.get("repository") or {}).get("full_name"),
            }
            for item in data.get("items") or []
        ],
        total_count=data.get("total_count", 0),
    )


def _list_branches(gh, owner, repo, limit) -> dict:
    data = gh.get(f"/repos/{owner}/{repo}/branches", {"per_page": _per_page(limit)})
    return ok("list_branches", branches=[
        {
            "name": b.get("name"),
            "commit": {"sha": (b.get("commit") or {}).get("sha"), "url": (b.get("commit") or {}).get("url")},
            "protected": b.get("protected"),
        }
        for b in data
    ])


def _get_readme(gh, owner, repo, branch) -> dict:
    try:
        data = gh.get(f"/repos/{owner}/{repo}/readme", {"ref": branch})
    except GitHubError as e:
        if e.status_code == 404:
            return ok("get_readme", message="README not found in repository")
        raise
    return ok("get_readme", readme={
        "name": data.get("name"),
        "path": data.get("path"),
        "content": _decode(data.get("content")),
        "size": data.get("size"),
        "download_url": data.get("download_url"),
    })


# ────────────── Discovery actions ──────────────

def _list_user_repos(gh, owner, limit) -> dict:
    params = {"per_page": _per_page(limit), "sort": "updated"}
    data = gh.get(f"/users/{owner}/repos" if owner else "/user/repos", params)
    repos = [_repo_summary(r) for r in data]
    return ok("list_user_repos", owner=owner or "authenticated user",
              total_count=len(repos), repositories=repos)


def _list_org_repos(gh, owner, limit) -> dict:
    if not owner:
        raise ValueError("owner (organization) is required for list_org_repos action")
    data = gh.get(f"/orgs/{owner}/repos", {"per_page": _per_page(limit), "sort": "updated"})
    repos = [_repo_summary(r) for r in data]
    return ok("list_org_repos", organization=owner, total_count=len(repos), repositories=repos)


def _search_repos(gh, owner, query, limit) -> dict:
    if not query:
        raise ValueError("Query is required for search_repos action")
    q = f"{query} user:{owner}" if owner else query
    data = gh.get("/search/repositories", {"q": q, "per_page": _per_page(limit)})
    return ok(
        "search_repos",
        query=query,
        total_count=data.get("total_count", 0),
        repositories=[_repo_summary(r) for r in data.get("items") or []],
    )


def query_resources(
    action: str,
    owner: str | None = None,
    repo: str | None = None,
    path: str | None = None,
    sha: str | None = None,
    limit: int | None = 30,
    state: str | None = "open",
    query: str | None = None,
    branch: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> dict:
    """Run one read-only GitHub query and return its envelope."""
    gh = None
    try:
        settings = get_settings()
        gh = GitHubClient(settings.github_token, transport=transport)
        state = state or "open"

        if action == "list_user_repos":
            return _list_user_repos(gh, owner, limit)
        if action == "list_org_repos":
            return _list_org_repos(gh, owner or settings.github_owner, limit)
        if action == "search_repos":
            return _search_repos(gh, owner, query, limit)

        owner = owner or settings.github_owner
        repo = repo or settings.github_repo
        if action in REPO_ACTIONS and (not owner or not repo):
            raise ValueError(
                "GitHub owner and repository must be provided either as parameters "
                "or configured in environment variables"
            )

        if action == "list_files":
            return _list_files(gh, owner, repo, path, branch)
        if action == "get_file_content":
            return _get_file_content(gh, owner, repo, path, branch)
        if action == "list_commits":
            return _list_commits(gh, owner, repo, limit, branch)
        if action == "get_commit":
            return _get_commit(gh, owner, repo, sha)
        if action == "list_issues":
            return _list_issues(gh, owner, repo, state, limit)
        if action == "list_pull_requests":
            return _list_pull_requests(gh, owner, repo, state, limit)
        if action == "get_repository_info":
            return _get_repository_info(gh, owner, repo)
        if action == "search_code":
            return _search_code(gh, owner, repo, query, limit)
        if action == "list_branches":
            return _list_branches(gh, owner, repo, limit)
        if action == "get_readme":
            return _get_readme(gh, owner, repo, branch)

        raise ValueError(f"Unsupported action: {action}")

    except Exception as e:
        message = error_message(e)
        logger.warning("[github] %s failed: %s", action, message)
        return fail(action, message, details=getattr(e, "details", None))
    finally:
        if gh is not None:
            gh.close()
