"""LLM-backed review and summarization capability."""

from typing import Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, Field

from src.config import settings
from src.core.llm import get_structured_llm
from src.core.logging import get_logger
from src.core.prompts import render_code_review_prompt, render_review_summary_prompt
from src.services.reviewer.schemas import (
    Category,
    CategorizedFindings,
    FileReview,
    Finding,
    GroupReviewRequest,
    PRContext,
    Severity,
    SummaryResult,
)

logger = get_logger("reviewer.llm")

REVIEW_SYSTEM_PROMPT = (
    "You are an expert code reviewer. Report only real, specific observations grounded "
    "in the diff and content you are given. Line numbers refer to the new file."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are summarizing a code review. Don't be overly positive or negative."
)


class IssueOutput(BaseModel):
    severity: Severity
    category: Category
    line: Optional[str] = Field(default=None, description="New-file line number or range")
    message: str


class FileIssuesOutput(BaseModel):
    filename: str
    issues: list[IssueOutput] = Field(default_factory=list)


class GroupReviewOutput(BaseModel):
    """Structured output for one group review."""

    files: list[FileIssuesOutput] = Field(default_factory=list)


class LLMReviewer:
    """Review capability backed by a structured-output chat model."""

    def __init__(self, review_model: str | None = None, summary_model: str | None = None):
        self.review_model = review_model or settings.review_model
        self.summary_model = summary_model or settings.summary_model or self.review_model

    async def review_group(self, request: GroupReviewRequest) -> list[FileReview]:
        if not any(f.patch or f.content for f in request.files):
            logger.info(f"Group {request.group_key} has no diff or content, nothing to send")
            return [FileReview(filename=f.filename) for f in request.files]

        llm = get_structured_llm(GroupReviewOutput, model=self.review_model)
        messages = [
            SystemMessage(content=REVIEW_SYSTEM_PROMPT),
            HumanMessage(content=render_code_review_prompt(request)),
        ]
        output: GroupReviewOutput = await llm.ainvoke(messages)

        reviews = [
            FileReview(
                filename=item.filename,
                findings=tuple(
                    Finding(
                        severity=issue.severity,
                        category=issue.category,
                        line=issue.line,
                        message=issue.message,
                        filename=item.filename,
                    )
                    for issue in item.issues
                    if issue.message.strip()
                ),
            )
            for item in output.files
        ]
        logger.info(
            f"Reviewed group {request.group_key}: "
            f"{sum(len(r.findings) for r in reviews)} findings across {len(reviews)} files"
        )
        return reviews

    async def summarize_findings(
        self,
        findings: CategorizedFindings,
        pr: PRContext,
        notes: Sequence[str],
    ) -> SummaryResult:
        llm = get_structured_llm(SummaryResult, model=self.summary_model)
        messages = [
            SystemMessage(content=SUMMARY_SYSTEM_PROMPT),
            HumanMessage(content=render_review_summary_prompt(pr, findings, notes)),
        ]
        result: SummaryResult = await llm.ainvoke(messages)
        logger.info(f"Generated overall summary (verdict={result.verdict.value})")
        return result
