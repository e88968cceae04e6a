"""Pipeline state schema for the PR reviewer graph."""

from typing import Optional, TypedDict

from src.core.pr_parser import PullRequestRef
from src.services.reviewer.schemas import (
    AggregatedReview,
    ChangedFile,
    DepthPolicy,
    FileGroup,
    FileReview,
    Lens,
    PRContext,
    PullRequestMetadata,
)


class ReviewPipelineState(TypedDict, total=False):
    """State for one review run."""

    # Input (immutable)
    ref: PullRequestRef
    lenses: tuple[Lens, ...]

    # Fetched once per run
    metadata: PullRequestMetadata
    pr: PRContext
    files: list[ChangedFile]

    # Planning
    reviewable: list[ChangedFile]
    skipped: list[str]
    groups: list[FileGroup]
    depth: DepthPolicy

    # Results
    file_reviews: list[FileReview]
    review: Optional[AggregatedReview]
