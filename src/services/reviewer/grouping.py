"""
File Grouper

Partitions reviewable files into bounded groups for independent review
passes, and pages through the reviewable list for browsing.
"""

from typing import Sequence

from src.core.exceptions import InvalidInputError
from src.core.logging import get_logger
from src.services.reviewer.budget import budget_patch
from src.services.reviewer.schemas import BudgetedFile, ChangedFile, FileGroup, FilePage

logger = get_logger("reviewer.grouping")

# File extension to language mapping
EXT_LANGUAGE_MAP = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".swift": "swift",
    ".scala": "scala",
    ".sql": "sql",
    ".sh": "shell",
    ".css": "css",
    ".scss": "css",
    ".html": "html",
    ".vue": "vue",
    ".svelte": "svelte",
    ".md": "docs",
    ".rst": "docs",
    ".yml": "config",
    ".yaml": "config",
    ".json": "config",
    ".toml": "config",
}


def detect_language(filename: str) -> str:
    """Language tag from file extension, "other" when unknown."""
    basename = filename.rsplit("/", 1)[-1]
    if "." not in basename:
        return "other"
    ext = "." + basename.rsplit(".", 1)[-1].lower()
    return EXT_LANGUAGE_MAP.get(ext, "other")


def directory_key(filename: str, depth: int) -> str:
    """Leading directory components of a path, "." for the repo root."""
    parts = filename.split("/")[:-1]
    return "/".join(parts[:depth]) or "."


def affinity_key(filename: str, depth: int) -> str:
    """Bucket key combining directory prefix and language."""
    return f"{directory_key(filename, depth)} [{detect_language(filename)}]"


def group_files(
    files: Sequence[BudgetedFile],
    max_group_chars: int,
    max_group_files: int,
    affinity_depth: int = 2,
) -> list[FileGroup]:
    """
    Partition budgeted files into review groups.

    Files are bucketed by directory prefix and language. Buckets are
    visited in sorted key order and files keep their input order inside a
    bucket. Within a bucket, files accumulate greedily until adding the
    next file would exceed max_group_files or max_group_chars. A file that
    alone exceeds max_group_chars forms a singleton group.
    """
    buckets: dict[str, list[BudgetedFile]] = {}
    for f in files:
        buckets.setdefault(affinity_key(f.filename, affinity_depth), []).append(f)

    groups: list[FileGroup] = []
    for key in sorted(buckets):
        current: list[BudgetedFile] = []
        current_chars = 0

        for f in buckets[key]:
            size = f.diff_size
            if current and (
                len(current) + 1 > max_group_files or current_chars + size > max_group_chars
            ):
                groups.append(FileGroup(key=key, files=tuple(current), total_chars=current_chars))
                current = []
                current_chars = 0

            if size > max_group_chars:
                logger.warning(
                    f"{f.filename} diff ({size} chars) exceeds group budget ({max_group_chars}), "
                    "reviewing alone"
                )
            current.append(f)
            current_chars += size

        if current:
            groups.append(FileGroup(key=key, files=tuple(current), total_chars=current_chars))

    logger.info(f"Grouped {len(files)} files into {len(groups)} groups from {len(buckets)} buckets")
    return groups


def paginate_files(
    reviewable: Sequence[ChangedFile],
    total_files: int,
    page: int,
    per_page: int,
    max_patch_chars: int,
) -> FilePage:
    """Return one 1-based page of reviewable files with budgeted patches."""
    if page < 1:
        raise InvalidInputError(f"Page must be >= 1, got {page}")
    if per_page < 1:
        raise InvalidInputError(f"Page size must be >= 1, got {per_page}")

    start = (page - 1) * per_page
    page_files = []
    for f in reviewable[start : start + per_page]:
        budgeted = budget_patch(f, max_patch_chars)
        page_files.append(f.model_copy(update={"patch": budgeted.patch}))

    return FilePage(
        files=page_files,
        total_files=total_files,
        reviewable_count=len(page_files),
        has_more=start + per_page < len(reviewable),
        page=page,
    )
