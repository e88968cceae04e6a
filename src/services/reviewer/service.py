"""Reviewer service - orchestration layer."""

from typing import Iterable, Optional

from src.config import ReviewConfig, settings
from src.core.exceptions import ExternalServiceError, InvalidInputError
from src.core.logging import get_logger
from src.core.pr_parser import PullRequestRef, parse_pr_reference, parse_pr_url
from src.services.reviewer.budget import truncate
from src.services.reviewer.contracts import PullRequestSource, ReviewCapability
from src.services.reviewer.filters import filter_files
from src.services.reviewer.graph import create_review_graph
from src.services.reviewer.grouping import paginate_files
from src.services.reviewer.lenses import resolve_lenses
from src.services.reviewer.schemas import AggregatedReview, FilePage, PullRequestDiff

logger = get_logger("reviewer.service")


def _default_source() -> PullRequestSource:
    from src.services.github.service import GitHubPullRequestSource

    return GitHubPullRequestSource()


def _default_reviewer() -> ReviewCapability:
    if not settings.openrouter_api_key:
        raise ExternalServiceError("OpenRouter", "OPENROUTER_API_KEY not configured")
    from src.services.reviewer.llm_reviewer import LLMReviewer

    return LLMReviewer()


async def review_pull_request(
    owner: str,
    repo: str,
    pull_number: int | str,
    lenses: Optional[Iterable[str]] = None,
    *,
    source: Optional[PullRequestSource] = None,
    reviewer: Optional[ReviewCapability] = None,
    config: Optional[ReviewConfig] = None,
) -> AggregatedReview:
    """Review a complete pull request and return the aggregated review.

    Input is validated before any network call. PR/repository lookups and
    file-list failures propagate; everything else ends up in the review.
    """
    ref = PullRequestRef.create(owner, repo, pull_number)
    config = config or ReviewConfig.from_settings()
    resolved_lenses = resolve_lenses(lenses, config.lenses)

    logger.info(f"Starting review: {ref} (lenses: {', '.join(l.name for l in resolved_lenses)})")

    graph = create_review_graph(source or _default_source(), reviewer or _default_reviewer(), config)
    final_state = await graph.ainvoke({"ref": ref, "lenses": resolved_lenses})
    review: AggregatedReview = final_state["review"]

    logger.info(
        f"Review completed: {ref} verdict={review.verdict.value} score={review.quality_score} "
        f"files={len(review.file_reviews)} skipped={len(review.skipped_files)}"
    )
    return review


async def review_pull_request_url(
    url: str,
    lenses: Optional[Iterable[str]] = None,
    **kwargs,
) -> AggregatedReview:
    """Review a pull request given its GitHub URL."""
    ref = parse_pr_url(url)
    return await review_pull_request(ref.owner, ref.repo, ref.pull_number, lenses, **kwargs)


async def review_pull_request_reference(
    text: str,
    lenses: Optional[Iterable[str]] = None,
    **kwargs,
) -> AggregatedReview:
    """Review a pull request named in free text (URL, owner/repo#123, #123)."""
    ref = parse_pr_reference(text or "")
    if ref is None:
        raise InvalidInputError(
            f"No pull request reference found in {text!r}", {"reference": text}
        )
    return await review_pull_request(ref.owner, ref.repo, ref.pull_number, lenses, **kwargs)


async def list_reviewable_files(
    owner: str,
    repo: str,
    pull_number: int | str,
    page: int = 1,
    *,
    source: Optional[PullRequestSource] = None,
    config: Optional[ReviewConfig] = None,
) -> FilePage:
    """Page through the reviewable files of a pull request."""
    ref = PullRequestRef.create(owner, repo, pull_number)
    if page < 1:
        raise InvalidInputError(f"Page must be >= 1, got {page}")
    config = config or ReviewConfig.from_settings()
    source = source or _default_source()

    files = await source.fetch_all_changed_files(ref.owner, ref.repo, ref.pull_number)
    result = filter_files(files, config.skip_patterns, config.trivial_deletion_threshold)
    return paginate_files(
        result.reviewable,
        total_files=len(files),
        page=page,
        per_page=config.files_per_page,
        max_patch_chars=config.max_patch_chars,
    )


async def get_pull_request_diff(
    owner: str,
    repo: str,
    pull_number: int | str,
    *,
    source: Optional[PullRequestSource] = None,
    config: Optional[ReviewConfig] = None,
) -> PullRequestDiff:
    """Fetch the raw unified diff of a pull request, cut to the diff budget."""
    ref = PullRequestRef.create(owner, repo, pull_number)
    config = config or ReviewConfig.from_settings()
    source = source or _default_source()

    raw = await source.fetch_pr_diff(ref.owner, ref.repo, ref.pull_number)
    result = truncate(raw, config.max_diff_chars)
    if result.truncated:
        logger.warning(f"Diff for {ref} truncated: {result.original_length} -> {len(result.text)} chars")
    return PullRequestDiff(
        diff=result.text,
        truncated=result.truncated,
        original_length=result.original_length,
    )
