"""Review HTTP routes."""

from fastapi import APIRouter, Query

from src.core.exceptions import InvalidInputError
from src.core.logging import get_logger
from src.core.schemas.responses import ApiResponse
from src.services.reviewer.schemas import (
    AggregatedReview,
    FilePage,
    PullRequestDiff,
    ReviewRunRequest,
)
from src.services.reviewer.service import (
    get_pull_request_diff,
    list_reviewable_files,
    review_pull_request,
    review_pull_request_reference,
    review_pull_request_url,
)

logger = get_logger("reviewer.routes")

router = APIRouter()


@router.post("/reviews", response_model=ApiResponse[AggregatedReview])
async def create_review(request: ReviewRunRequest) -> ApiResponse[AggregatedReview]:
    """Run a review for a PR given by URL, free-text reference, or owner/repo/number."""
    if request.url:
        review = await review_pull_request_url(request.url, request.lenses)
    elif request.reference:
        review = await review_pull_request_reference(request.reference, request.lenses)
    elif request.owner and request.repo and request.pull_number is not None:
        review = await review_pull_request(
            request.owner, request.repo, request.pull_number, request.lenses
        )
    else:
        raise InvalidInputError(
            "Provide a PR url, a reference such as owner/repo#123, or owner, repo and pull_number"
        )

    return ApiResponse(data=review, message=f"Review completed: {review.verdict.value}")


@router.get("/pulls/{owner}/{repo}/{pull_number}/files", response_model=ApiResponse[FilePage])
async def get_reviewable_files(
    owner: str,
    repo: str,
    pull_number: str,
    page: int = Query(default=1),
) -> ApiResponse[FilePage]:
    """List one page of reviewable files with budgeted patches."""
    file_page = await list_reviewable_files(owner, repo, pull_number, page)
    return ApiResponse(data=file_page)


@router.get("/pulls/{owner}/{repo}/{pull_number}/diff", response_model=ApiResponse[PullRequestDiff])
async def get_diff(owner: str, repo: str, pull_number: str) -> ApiResponse[PullRequestDiff]:
    """Raw unified diff of the PR; check `truncated` for very large PRs."""
    diff = await get_pull_request_diff(owner, repo, pull_number)
    return ApiResponse(data=diff)
