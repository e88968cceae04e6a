"""GitHub service - business logic layer."""

import asyncio
from typing import Optional

from src.core.logging import get_logger
from src.services.github.client import (
    fetch_file_contents,
    fetch_pr_diff,
    fetch_pr_files,
    fetch_pull_request,
    pull_request_to_dict,
)
from src.services.reviewer.schemas import ChangedFile, FileContent, PullRequestMetadata

logger = get_logger("github.service")


def get_pull_request(owner: str, repo: str, pr_number: int) -> PullRequestMetadata:
    """Get pull request metadata by owner/repo and number."""
    logger.info(f"Fetching PR: {owner}/{repo}#{pr_number}")
    pr = fetch_pull_request(owner, repo, pr_number)
    return PullRequestMetadata(**pull_request_to_dict(pr))


def get_pr_files(owner: str, repo: str, pr_number: int) -> list[ChangedFile]:
    """Get every changed file from a PR."""
    pr = fetch_pull_request(owner, repo, pr_number)
    files = [ChangedFile(**f) for f in fetch_pr_files(pr)]
    logger.info(f"Found {len(files)} files in PR")
    return files


def get_pr_diff(owner: str, repo: str, pr_number: int) -> str:
    """Get the raw unified diff of a PR."""
    diff = fetch_pr_diff(owner, repo, pr_number)
    logger.info(f"Fetched diff for {owner}/{repo}#{pr_number}: {len(diff)} chars")
    return diff


def get_file_contents(owner: str, repo: str, path: str, ref: str) -> Optional[FileContent]:
    """Get full file contents from repository at a commit SHA."""
    logger.debug(f"Fetching file: {owner}/{repo}/{path}@{ref}")
    result = fetch_file_contents(owner, repo, path, ref)
    return FileContent(**result) if result else None


class GitHubPullRequestSource:
    """Pull request source backed by the GitHub REST API.

    PyGithub is synchronous, so each call runs in a worker thread.
    """

    async def fetch_pr_metadata(self, owner: str, repo: str, pull_number: int) -> PullRequestMetadata:
        return await asyncio.to_thread(get_pull_request, owner, repo, pull_number)

    async def fetch_all_changed_files(self, owner: str, repo: str, pull_number: int) -> list[ChangedFile]:
        return await asyncio.to_thread(get_pr_files, owner, repo, pull_number)

    async def fetch_pr_diff(self, owner: str, repo: str, pull_number: int) -> str:
        return await asyncio.to_thread(get_pr_diff, owner, repo, pull_number)

    async def fetch_file_content_at_ref(
        self, owner: str, repo: str, path: str, ref: str
    ) -> Optional[FileContent]:
        return await asyncio.to_thread(get_file_contents, owner, repo, path, ref)
