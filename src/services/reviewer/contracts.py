"""Collaborator contracts consumed by the review pipeline."""

from typing import Optional, Protocol, Sequence

from src.services.reviewer.schemas import (
    CategorizedFindings,
    ChangedFile,
    FileContent,
    FileReview,
    GroupReviewRequest,
    PRContext,
    PullRequestMetadata,
    SummaryResult,
)


class PullRequestSource(Protocol):
    """Read-only access to a pull request on the code host."""

    async def fetch_pr_metadata(self, owner: str, repo: str, pull_number: int) -> PullRequestMetadata:
        """Raise PRNotFoundError when the PR does not exist."""
        ...

    async def fetch_all_changed_files(self, owner: str, repo: str, pull_number: int) -> list[ChangedFile]:
        """Return every changed file, never a partial page."""
        ...

    async def fetch_file_content_at_ref(
        self, owner: str, repo: str, path: str, ref: str
    ) -> Optional[FileContent]:
        """Return None when the file or ref does not exist."""
        ...

    async def fetch_pr_diff(self, owner: str, repo: str, pull_number: int) -> str:
        """Return the raw unified diff of the whole PR."""
        ...


class ReviewCapability(Protocol):
    """LLM-backed review and summarization."""

    async def review_group(self, request: GroupReviewRequest) -> list[FileReview]:
        ...

    async def summarize_findings(
        self, findings: CategorizedFindings, pr: PRContext, notes: Sequence[str]
    ) -> SummaryResult:
        ...
