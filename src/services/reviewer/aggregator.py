"""
Finding Aggregator

Merges per-file findings, removes near-duplicates, buckets them by
category, and asks the summarization capability for the final verdict.
"""

import re
from difflib import SequenceMatcher
from typing import Iterable, Optional, Sequence

from src.core.exceptions import ExternalServiceError
from src.core.logging import get_logger
from src.services.reviewer.contracts import ReviewCapability
from src.services.reviewer.schemas import (
    AggregatedReview,
    Category,
    CategorizedFindings,
    ContentStatus,
    DepthTier,
    FileReview,
    Finding,
    PRContext,
    Severity,
    SummaryResult,
    Verdict,
)

logger = get_logger("reviewer.aggregator")

NO_CHANGES_SUMMARY = "No reviewable changes found."
VERDICT_OVERRIDE_NOTE = (
    "Verdict changed from APPROVE to REQUEST_CHANGES because critical issues were found."
)
SUMMARY_FALLBACK_NOTE = "Summary generated from finding counts because the summarizer failed."
UNREVIEWED_OVERRIDE_NOTE = (
    "Verdict changed from APPROVE to COMMENT because some files could not be reviewed."
)

_WHITESPACE = re.compile(r"\s+")


def normalize_message(message: str) -> str:
    """Lowercase, collapse whitespace and drop trailing punctuation."""
    return _WHITESPACE.sub(" ", message).strip().rstrip(".!;:").strip().lower()


def messages_similar(a: str, b: str, threshold: float) -> bool:
    """Case-insensitive equality, containment, or high textual overlap."""
    left, right = normalize_message(a), normalize_message(b)
    if left == right:
        return True
    if not left or not right:
        return False
    if left in right or right in left:
        return True
    return SequenceMatcher(None, left, right).ratio() >= threshold


def deduplicate_findings(findings: Iterable[Finding], threshold: float) -> list[Finding]:
    """
    Collapse findings sharing filename, category and a near-identical message.

    The higher-severity instance is kept, in the position of the first
    occurrence. Ties keep the earlier finding.
    """
    kept: list[Finding] = []
    slots: dict[tuple[str, Category], list[int]] = {}

    for finding in findings:
        key = (finding.filename, finding.category)
        duplicate_of = None
        for idx in slots.get(key, []):
            if messages_similar(kept[idx].message, finding.message, threshold):
                duplicate_of = idx
                break

        if duplicate_of is None:
            slots.setdefault(key, []).append(len(kept))
            kept.append(finding)
        elif finding.severity.rank > kept[duplicate_of].severity.rank:
            kept[duplicate_of] = finding

    return kept


def categorize_findings(findings: Sequence[Finding]) -> CategorizedFindings:
    """
    Split findings into output buckets.

    Critical severity goes to critical issues whatever the category. The
    positive category goes to positive notes, and so does positive
    severity in any other category: a "security" finding with positive
    severity praises the code and is not a security concern. Buckets are
    ordered by severity then filename.
    """
    buckets: dict[str, list[Finding]] = {
        "critical_issues": [],
        "security_concerns": [],
        "performance_notes": [],
        "suggestions": [],
        "positive_notes": [],
    }

    for f in findings:
        if f.severity == Severity.CRITICAL:
            buckets["critical_issues"].append(f)
        elif f.category == Category.POSITIVE or f.severity == Severity.POSITIVE:
            buckets["positive_notes"].append(f)
        elif f.category == Category.SECURITY:
            buckets["security_concerns"].append(f)
        elif f.category == Category.PERFORMANCE:
            buckets["performance_notes"].append(f)
        else:
            buckets["suggestions"].append(f)

    return CategorizedFindings(
        **{
            name: tuple(sorted(items, key=lambda f: (-f.severity.rank, f.filename)))
            for name, items in buckets.items()
        }
    )


def context_notes(file_reviews: Sequence[FileReview]) -> list[str]:
    """Caveats about partial context, one per affected file."""
    notes = []
    for review in file_reviews:
        if review.error:
            notes.append(f"{review.filename} was not reviewed: {review.error}")
        if review.patch_truncated:
            notes.append(f"Diff for {review.filename} was truncated; later changes were not reviewed.")
        if review.content_truncated:
            notes.append(f"Full content for {review.filename} was truncated.")
        if review.content_status == ContentStatus.UNAVAILABLE:
            notes.append(f"Full content for {review.filename} was unavailable; reviewed diff only.")
    return notes


def fallback_summary(
    findings: CategorizedFindings,
    files_reviewed: int,
    files_failed: int = 0,
) -> SummaryResult:
    """Deterministic summary used when the summarizer is unavailable.

    files_reviewed counts only files whose review succeeded. Any failed
    file rules out APPROVE.
    """
    critical = len(findings.critical_issues)
    concerns = len(findings.security_concerns) + len(findings.performance_notes)
    suggestions = len(findings.suggestions)

    parts = [f"Reviewed {files_reviewed} file(s)."]
    if files_failed:
        parts.append(f"{files_failed} file(s) could not be reviewed.")
    if critical:
        parts.append(f"Found {critical} critical issue(s).")
    if findings.security_concerns:
        parts.append(f"Found {len(findings.security_concerns)} security concern(s).")
    if findings.performance_notes:
        parts.append(f"Found {len(findings.performance_notes)} performance note(s).")
    if suggestions:
        parts.append(f"{suggestions} suggestion(s).")
    if not (critical or concerns or suggestions or files_failed):
        parts.append("No significant issues found.")

    has_warnings = any(
        f.severity == Severity.WARNING
        for f in findings.security_concerns + findings.performance_notes + findings.suggestions
    )
    if critical:
        verdict = Verdict.REQUEST_CHANGES
    elif concerns or has_warnings or files_failed:
        verdict = Verdict.COMMENT
    else:
        verdict = Verdict.APPROVE

    score = 10 - 3 * critical - concerns - suggestions // 4
    if files_failed and not files_reviewed:
        score = min(score, 5)

    return SummaryResult(summary=" ".join(parts), quality_score=score, verdict=verdict)


def enforce_verdict(
    result: SummaryResult,
    findings: CategorizedFindings,
    files_failed: int = 0,
) -> tuple[Verdict, Optional[str]]:
    """APPROVE is not allowed while critical issues exist or files went unreviewed.

    Returns the final verdict and the override note, if one applied.
    """
    if result.verdict != Verdict.APPROVE:
        return result.verdict, None
    if findings.critical_issues:
        logger.warning(
            f"Summarizer approved despite {len(findings.critical_issues)} critical issue(s), overriding"
        )
        return Verdict.REQUEST_CHANGES, VERDICT_OVERRIDE_NOTE
    if files_failed:
        logger.warning(f"Summarizer approved with {files_failed} unreviewed file(s), overriding")
        return Verdict.COMMENT, UNREVIEWED_OVERRIDE_NOTE
    return result.verdict, None


async def aggregate(
    file_reviews: Sequence[FileReview],
    skipped_files: Sequence[str],
    pr: PRContext,
    depth: DepthTier,
    summarizer: ReviewCapability,
    dedup_similarity: float = 0.9,
) -> AggregatedReview:
    """Build the terminal review from all per-file reviews."""
    deduped_reviews = [
        review.model_copy(
            update={"findings": tuple(deduplicate_findings(review.findings, dedup_similarity))}
        )
        for review in file_reviews
    ]
    flattened = [f for review in deduped_reviews for f in review.findings]
    total = sum(len(r.findings) for r in file_reviews)
    logger.info(f"Deduplicated {total} findings to {len(flattened)}")

    findings = categorize_findings(flattened)
    notes = context_notes(deduped_reviews)
    truncated_files = [
        r.filename for r in deduped_reviews if r.patch_truncated or r.content_truncated
    ]

    failed = sum(1 for r in deduped_reviews if r.error)

    if not deduped_reviews:
        result = SummaryResult(summary=NO_CHANGES_SUMMARY, quality_score=10, verdict=Verdict.COMMENT)
    else:
        try:
            result = await summarizer.summarize_findings(findings, pr, notes)
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Summarization failed: {e}")
            result = fallback_summary(findings, len(deduped_reviews) - failed, failed)
            notes.append(SUMMARY_FALLBACK_NOTE)

    verdict, override_note = enforce_verdict(result, findings, failed)
    if override_note:
        notes.append(override_note)

    return AggregatedReview(
        pr=pr.ref,
        summary=result.summary,
        quality_score=result.quality_score,
        verdict=verdict,
        depth=depth,
        critical_issues=findings.critical_issues,
        security_concerns=findings.security_concerns,
        performance_notes=findings.performance_notes,
        suggestions=findings.suggestions,
        positive_notes=findings.positive_notes,
        file_reviews=tuple(deduped_reviews),
        skipped_files=tuple(skipped_files),
        truncated_files=tuple(truncated_files),
        notes=tuple(notes),
        verdict_overridden=override_note is not None,
    )
