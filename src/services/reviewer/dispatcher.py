"""Review dispatcher: assemble one review request per group and invoke the reviewer."""

import asyncio
from typing import Sequence

from src.config import ReviewConfig
from src.core.exceptions import ExternalServiceError
from src.core.logging import get_logger
from src.services.reviewer.budget import budget_content
from src.services.reviewer.contracts import PullRequestSource, ReviewCapability
from src.services.reviewer.schemas import (
    BudgetedFile,
    ContentStatus,
    DepthPolicy,
    FileGroup,
    FileReview,
    FileReviewInput,
    Finding,
    GroupReviewRequest,
    Lens,
    PRContext,
)

logger = get_logger("reviewer.dispatcher")


class ReviewDispatcher:
    """Runs group reviews against the review capability.

    Groups share no mutable state, so they can be dispatched concurrently.
    Content is always fetched at the PR head commit SHA.
    """

    def __init__(
        self,
        source: PullRequestSource,
        reviewer: ReviewCapability,
        pr: PRContext,
        config: ReviewConfig,
    ):
        self.source = source
        self.reviewer = reviewer
        self.pr = pr
        self.config = config

    async def dispatch_all(
        self,
        groups: Sequence[FileGroup],
        depth: DepthPolicy,
        lenses: Sequence[Lens],
    ) -> list[FileReview]:
        """Review all groups in parallel with concurrency limit; results keep group order."""
        semaphore = asyncio.Semaphore(self.config.review_concurrency)

        async def dispatch_with_semaphore(group: FileGroup) -> list[FileReview]:
            async with semaphore:
                return await self.dispatch(group, depth, lenses)

        results = await asyncio.gather(*(dispatch_with_semaphore(g) for g in groups))
        return [review for group_reviews in results for review in group_reviews]

    async def dispatch(
        self,
        group: FileGroup,
        depth: DepthPolicy,
        lenses: Sequence[Lens],
    ) -> list[FileReview]:
        """Review one group and return exactly one FileReview per file in it."""
        logger.info(f"Dispatching group {group.key} ({len(group.files)} files, {group.total_chars} chars)")

        inputs = await asyncio.gather(*(self._prepare_file(f, depth) for f in group.files))
        request = GroupReviewRequest(
            group_key=group.key,
            files=tuple(inputs),
            depth=depth,
            lenses=tuple(lenses),
            pr=self.pr,
        )

        try:
            reviews = await self.reviewer.review_group(request)
        except ExternalServiceError:
            # Misconfigured review backend aborts the run
            raise
        except Exception as e:
            logger.error(f"Review failed for group {group.key}: {e}")
            return [_failed_review(item, f"Review failed: {e}") for item in inputs]

        return _reconcile(inputs, reviews, group.key)

    async def _prepare_file(self, budgeted: BudgetedFile, depth: DepthPolicy) -> FileReviewInput:
        file = budgeted.file
        item = FileReviewInput(
            filename=file.filename,
            status=file.status,
            additions=file.additions,
            deletions=file.deletions,
            patch=budgeted.patch,
            patch_truncated=budgeted.patch_truncated,
        )

        if file.status == "removed" or not depth.wants_content(file):
            return item

        try:
            result = await self.source.fetch_file_content_at_ref(
                self.pr.ref.owner, self.pr.ref.repo, file.filename, self.pr.head_sha
            )
        except Exception as e:
            logger.warning(f"Content fetch failed for {file.filename}@{self.pr.head_sha}: {e}")
            result = None

        if result is None:
            logger.warning(f"Content unavailable for {file.filename}, reviewing diff only")
            return item.model_copy(update={"content_status": ContentStatus.UNAVAILABLE})

        content = budget_content(result.content, self.config.max_content_chars)
        if content.truncated:
            logger.warning(
                f"Content for {file.filename} truncated: {content.original_length} -> {len(content.text)} chars"
            )
        return item.model_copy(
            update={
                "content": content.text,
                "content_truncated": content.truncated,
                "content_status": ContentStatus.INCLUDED,
            }
        )


def _failed_review(item: FileReviewInput, error: str) -> FileReview:
    return FileReview(
        filename=item.filename,
        patch_truncated=item.patch_truncated,
        content_truncated=item.content_truncated,
        content_status=item.content_status,
        error=error,
    )


def _reconcile(
    inputs: Sequence[FileReviewInput],
    reviews: Sequence[FileReview],
    group_key: str,
) -> list[FileReview]:
    """Map reviewer output back onto the group's files.

    Findings are re-owned by the file they were returned under. Reviews for
    files outside the group are dropped; files the reviewer left out get
    an empty review.
    """
    expected = {item.filename for item in inputs}
    findings_by_file: dict[str, list[Finding]] = {item.filename: [] for item in inputs}

    for review in reviews:
        if review.filename not in expected:
            logger.warning(f"Reviewer returned {review.filename}, which is not in group {group_key}")
            continue
        for finding in review.findings:
            if finding.filename != review.filename:
                finding = finding.model_copy(update={"filename": review.filename})
            findings_by_file[review.filename].append(finding)

    return [
        FileReview(
            filename=item.filename,
            findings=tuple(findings_by_file[item.filename]),
            patch_truncated=item.patch_truncated,
            content_truncated=item.content_truncated,
            content_status=item.content_status,
        )
        for item in inputs
    ]
