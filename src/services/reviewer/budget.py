"""Character budgets for diff patches and file contents."""

from typing import Optional

from src.core.logging import get_logger
from src.services.reviewer.schemas import BudgetedFile, BudgetedText, ChangedFile

logger = get_logger("reviewer.budget")

TRUNCATION_MARKER = "\n... [truncated]"


def truncate(text: Optional[str], max_chars: int) -> BudgetedText:
    """
    Cut text from the tail so it fits in max_chars.

    The result never exceeds max_chars. When the budget leaves room, the
    kept head ends with a truncation marker; the marker counts against
    the budget.
    """
    text = text or ""
    max_chars = max(0, max_chars)
    if len(text) <= max_chars:
        return BudgetedText(text=text, truncated=False, original_length=len(text))

    if max_chars > len(TRUNCATION_MARKER):
        cut = text[: max_chars - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER
    else:
        cut = text[:max_chars]
    return BudgetedText(text=cut, truncated=True, original_length=len(text))


def budget_patch(file: ChangedFile, max_patch_chars: int) -> BudgetedFile:
    """Apply the patch budget to a changed file."""
    if file.patch is None:
        return BudgetedFile(file=file, patch=None, patch_truncated=False)

    result = truncate(file.patch, max_patch_chars)
    if result.truncated:
        logger.warning(
            f"Patch for {file.filename} truncated: {result.original_length} -> {len(result.text)} chars"
        )
    return BudgetedFile(file=file, patch=result.text, patch_truncated=result.truncated)


def budget_content(content: str, max_content_chars: int) -> BudgetedText:
    """Apply the full-content budget."""
    return truncate(content, max_content_chars)
