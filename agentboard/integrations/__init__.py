"""External integrations."""

from agentboard.integrations.github import GitHubClient, IssueInfo, PullRequestInfo, RepoInfo, parse_github_url

__all__ = ["GitHubClient", "IssueInfo", "PullRequestInfo", "RepoInfo", "parse_github_url"]
