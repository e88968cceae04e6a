"""Depth selector: pick one review depth policy per run."""

from src.config import ReviewConfig
from src.core.logging import get_logger
from src.services.reviewer.schemas import ContentPolicy, DepthPolicy, DepthTier

logger = get_logger("reviewer.depth")

DEPTH_INSTRUCTIONS = {
    DepthTier.DETAILED: (
        "Small pull request. Give line-by-line commentary: correctness, edge cases, "
        "naming, error handling and tests. Full file content is provided for context."
    ),
    DepthTier.STANDARD: (
        "Medium pull request. Focus on the diff. Report bugs, security and performance "
        "problems and notable quality issues; skip minor style nits. Full content is "
        "provided only for smaller files."
    ),
    DepthTier.FOCUSED: (
        "Large pull request. Only report architectural concerns and critical issues "
        "(bugs, security, data loss, severe performance problems). Only diffs are provided."
    ),
}


def select_depth(total_files: int, total_changes: int, config: ReviewConfig) -> DepthPolicy:
    """
    Choose the depth tier from reviewable file count and changed lines.

    A PR is small only when both counts are within the small breakpoints,
    and medium only when both are within the medium breakpoints.
    """
    if total_files <= config.small_pr_max_files and total_changes <= config.small_pr_max_changes:
        policy = DepthPolicy(
            tier=DepthTier.DETAILED,
            content_policy=ContentPolicy.ALWAYS,
            instructions=DEPTH_INSTRUCTIONS[DepthTier.DETAILED],
        )
    elif total_files <= config.medium_pr_max_files and total_changes <= config.medium_pr_max_changes:
        policy = DepthPolicy(
            tier=DepthTier.STANDARD,
            content_policy=ContentPolicy.UNDER_THRESHOLD,
            content_max_changes=config.standard_content_max_changes,
            instructions=DEPTH_INSTRUCTIONS[DepthTier.STANDARD],
        )
    else:
        policy = DepthPolicy(
            tier=DepthTier.FOCUSED,
            content_policy=ContentPolicy.NEVER,
            instructions=DEPTH_INSTRUCTIONS[DepthTier.FOCUSED],
        )

    logger.info(f"Depth {policy.tier.value} for {total_files} files / {total_changes} changed lines")
    return policy
