"""
LangGraph chat assistant for read-only AWS, GitHub and Jira/Confluence queries.

Architecture: 1 Agent, 3 tool families
  - Agent: tool-calling chat model (StateGraph: agent <-> tools)
  - AWS: get_aws_account_info, query_aws_resources (boto3)
  - GitHub: query_github_resources (REST via httpx)
  - Atlassian: MCP tools, or search_jira_issues / get_jira_issue as fallback

Every tool returns a {success, action, ...} envelope that the cards package
renders for the chat UI.
"""
