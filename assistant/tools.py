"""
LangChain tools exposed to the chat model.

Tools 1-2: AWS (account identity, resource queries) via boto3.
Tool 3:    GitHub resource queries via the REST API.
Tools 4-5: Direct Jira search / issue lookup, used when the Atlassian MCP
           proxy is unavailable (see mcp_client.py).

Each tool returns the envelope as JSON text; the UI renders it as a card.
"""

from typing import Literal, Optional

from langchain_core.tools import tool

from assistant import aws_tools, github_tools, jira_client
from assistant.envelope import to_json

AWSAction = Literal[
    "list_resources",
    "get_resource",
    "list_stacks",
    "describe_stack",
    "describe_stack_resources",
    "list_log_groups",
    "list_s3_buckets",
]

GitHubAction = Literal[
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
    "list_user_repos",
    "list_org_repos",
    "search_repos",
]


# ────────────── Tool 1: get_aws_account_info ──────────────

@tool
def get_aws_account_info(region: Optional[str] = None) -> str:
    """Get AWS account information using STS GetCallerIdentity.
    Returns the AWS account ID, user ARN, and user ID of the current credentials.

    Args:
        region: AWS region to use (defaults to us-east-1)
    """
    return to_json(aws_tools.get_account_info(region))


# ────────────── Tool 2: query_aws_resources ──────────────

@tool
def query_aws_resources(
    action: AWSAction,
    resource_type: Optional[str] = None,
    resource_identifier: Optional[str] = None,
    stack_name: Optional[str] = None,
    region: Optional[str] = None,
) -> str:
    """Query AWS resources and CloudFormation stacks. Read-only.
    Lists resources, gets specific resource details, and describes CloudFormation stacks.
    Supports EC2 instances, S3 buckets, Lambda functions, RDS databases and other AWS services.

    Args:
        action: list_resources, get_resource, list_stacks, describe_stack,
            describe_stack_resources, list_log_groups, or list_s3_buckets
        resource_type: AWS resource type in CloudFormation format
            (e.g. AWS::EC2::Instance, AWS::S3::Bucket, AWS::Lambda::Function)
        resource_identifier: Specific resource identifier for get_resource
        stack_name: CloudFormation stack name for describe_stack / describe_stack_resources
        region: AWS region to query (defaults to us-east-1)
    """
    return to_json(aws_tools.query_resources(
        action,
        resource_type=resource_type,
        resource_identifier=resource_identifier,
        stack_name=stack_name,
        region=region,
    ))


# ────────────── Tool 3: query_github_resources ──────────────

@tool
def query_github_resources(
    action: GitHubAction,
    owner: Optional[str] = None,
    repo: Optional[str] = None,
    path: Optional[str] = None,
    sha: Optional[str] = None,
    limit: int = 30,
    state: Literal["open", "closed", "all"] = "open",
    query: Optional[str] = None,
    branch: Optional[str] = None,
) -> str:
    """Query GitHub repositories and resources. Read-only.
    Use search_repos / list_user_repos / list_org_repos first to find the exact owner/repo.

    Args:
        action: The GitHub action to perform
        owner: Repository owner (username or organization)
        repo: Repository name
        path: File or directory path
        sha: Commit SHA
        limit: Number of items to return (max 100)
        state: Issue / pull request state
        query: Search query for search_code or search_repos
        branch: Branch name (defaults to the default branch)
    """
    return to_json(github_tools.query_resources(
        action,
        owner=owner,
        repo=repo,
        path=path,
        sha=sha,
        limit=limit,
        state=state,
        query=query,
        branch=branch,
    ))


# ────────────── Tools 4-5: direct Jira (MCP fallback) ──────────────

@tool
def search_jira_issues(query: str) -> str:
    """Search for Jira issues using natural language. Use this when users ask about
    finding tickets, bugs, or specific topics.

    Args:
        query: Search query, e.g. "login bugs" or "payment issues", or an issue key
    """
    return to_json(jira_client.search_issues(query))


@tool
def get_jira_issue(issue_key: str) -> str:
    """Get detailed information about a specific Jira issue by its key.

    Args:
        issue_key: Jira issue key in format like PROJ-123
    """
    return to_json(jira_client.get_issue(issue_key))


BASE_TOOLS = [get_aws_account_info, query_aws_resources, query_github_resources]
JIRA_FALLBACK_TOOLS = [search_jira_issues, get_jira_issue]
