"""Reviewability filter: split changed files into reviewable and skipped."""

import fnmatch
from typing import Iterable, Sequence

from src.core.logging import get_logger
from src.services.reviewer.schemas import ChangedFile, FilterResult

logger = get_logger("reviewer.filters")


def matches_skip_pattern(filename: str, patterns: Iterable[str]) -> bool:
    """Return True if filename matches any skip pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*-lock.json"
    - Directory names/prefixes: "vendor/", "dist" (matches any file within that tree)
    """
    basename = filename.rsplit("/", 1)[-1]
    for pattern in patterns:
        pattern = pattern.strip()
        if not pattern:
            continue
        if fnmatch.fnmatchcase(filename, pattern):
            return True
        if fnmatch.fnmatchcase(basename, pattern):
            return True
        # Directory prefix: "vendor" or "vendor/" matches "pkg/vendor/lib.go"
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def is_trivial_deletion(file: ChangedFile, threshold: int) -> bool:
    """A removed file with fewer deleted lines than the threshold."""
    return file.status == "removed" and file.deletions < threshold


def filter_files(
    files: Sequence[ChangedFile],
    skip_patterns: Iterable[str],
    trivial_deletion_threshold: int,
) -> FilterResult:
    """Stable partition of files into reviewable files and skipped filenames."""
    patterns = list(skip_patterns)
    reviewable: list[ChangedFile] = []
    skipped: list[str] = []

    for file in files:
        if matches_skip_pattern(file.filename, patterns):
            logger.debug(f"Skipping {file.filename}: matches skip pattern")
            skipped.append(file.filename)
        elif is_trivial_deletion(file, trivial_deletion_threshold):
            logger.debug(f"Skipping {file.filename}: trivial deletion ({file.deletions} lines)")
            skipped.append(file.filename)
        else:
            reviewable.append(file)

    logger.info(f"Filtered {len(files)} files: {len(reviewable)} reviewable, {len(skipped)} skipped")
    return FilterResult(reviewable=tuple(reviewable), skipped=tuple(skipped))
