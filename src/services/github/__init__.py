"""GitHub service."""

from src.services.github.service import (
    GitHubPullRequestSource,
    get_file_contents,
    get_pr_diff,
    get_pr_files,
    get_pull_request,
)

__all__ = [
    "GitHubPullRequestSource",
    "get_file_contents",
    "get_pr_diff",
    "get_pr_files",
    "get_pull_request",
]
