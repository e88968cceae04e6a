"""LangGraph pipeline for PR review."""

import asyncio
from typing import Literal

from langgraph.graph import END, StateGraph

from src.config import ReviewConfig
from src.core.logging import get_logger
from src.services.reviewer.aggregator import aggregate
from src.services.reviewer.budget import budget_patch
from src.services.reviewer.contracts import PullRequestSource, ReviewCapability
from src.services.reviewer.depth import select_depth
from src.services.reviewer.dispatcher import ReviewDispatcher
from src.services.reviewer.filters import filter_files
from src.services.reviewer.grouping import group_files
from src.services.reviewer.schemas import PRContext
from src.services.reviewer.state import ReviewPipelineState

logger = get_logger("reviewer.graph")


def create_review_graph(
    source: PullRequestSource,
    reviewer: ReviewCapability,
    config: ReviewConfig,
):
    """Create the review pipeline graph."""

    async def fetch_node(state: ReviewPipelineState) -> dict:
        """Fetch PR metadata and the full changed-file list; failures abort the run."""
        ref = state["ref"]
        metadata, files = await asyncio.gather(
            source.fetch_pr_metadata(ref.owner, ref.repo, ref.pull_number),
            source.fetch_all_changed_files(ref.owner, ref.repo, ref.pull_number),
        )
        logger.info(f"Fetched {ref}: '{metadata.title}' at {metadata.head_sha[:7]}, {len(files)} files")

        pr = PRContext(
            ref=ref,
            title=metadata.title,
            body=metadata.body,
            author=metadata.author,
            base_branch=metadata.base_branch,
            head_branch=metadata.head_branch,
            head_sha=metadata.head_sha,
        )
        return {"metadata": metadata, "pr": pr, "files": files}

    def filter_node(state: ReviewPipelineState) -> dict:
        result = filter_files(
            state["files"],
            config.skip_patterns,
            config.trivial_deletion_threshold,
        )
        return {"reviewable": list(result.reviewable), "skipped": list(result.skipped)}

    def plan_node(state: ReviewPipelineState) -> dict:
        """Budget patches, pick the depth and partition files into groups."""
        reviewable = state["reviewable"]
        total_changes = sum(f.changes or (f.additions + f.deletions) for f in reviewable)
        depth = select_depth(len(reviewable), total_changes, config)

        budgeted = [budget_patch(f, config.max_patch_chars) for f in reviewable]
        groups = group_files(
            budgeted,
            config.max_group_chars,
            config.max_group_files,
            config.group_affinity_depth,
        )
        return {"depth": depth, "groups": groups}

    def route_after_plan(state: ReviewPipelineState) -> Literal["dispatch", "aggregate"]:
        if state["groups"]:
            return "dispatch"
        logger.info("No reviewable files, skipping dispatch")
        return "aggregate"

    async def dispatch_node(state: ReviewPipelineState) -> dict:
        dispatcher = ReviewDispatcher(source, reviewer, state["pr"], config)
        file_reviews = await dispatcher.dispatch_all(state["groups"], state["depth"], state["lenses"])
        logger.info(f"Collected {len(file_reviews)} file reviews from {len(state['groups'])} groups")
        return {"file_reviews": file_reviews}

    async def aggregate_node(state: ReviewPipelineState) -> dict:
        review = await aggregate(
            state.get("file_reviews", []),
            state["skipped"],
            state["pr"],
            state["depth"].tier,
            reviewer,
            config.dedup_similarity,
        )
        return {"review": review}

    # Build the graph
    graph = StateGraph(ReviewPipelineState)

    graph.add_node("fetch", fetch_node)
    graph.add_node("filter", filter_node)
    graph.add_node("plan", plan_node)
    graph.add_node("dispatch", dispatch_node)
    graph.add_node("aggregate", aggregate_node)

    graph.set_entry_point("fetch")

    graph.add_edge("fetch", "filter")
    graph.add_edge("filter", "plan")
    graph.add_conditional_edges(
        "plan",
        route_after_plan,
        {
            "dispatch": "dispatch",
            "aggregate": "aggregate",
        },
    )
    graph.add_edge("dispatch", "aggregate")
    graph.add_edge("aggregate", END)

    return graph.compile()
