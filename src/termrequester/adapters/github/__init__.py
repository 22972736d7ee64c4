"""GitHub Issues adapter."""

from __future__ import annotations

from .client import GitHubAPIError, GitHubClient
from .schema import GitHubIssue, GitHubIssueSearch, GitHubLabel, IssueState
from .tracker import GitHubIssueTracker, issue_status, search_queries

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "GitHubIssue",
    "GitHubIssueSearch",
    "GitHubIssueTracker",
    "GitHubLabel",
    "IssueState",
    "issue_status",
    "search_queries",
]
