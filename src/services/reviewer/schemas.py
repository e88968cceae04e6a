"""Pydantic schemas for the review pipeline."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.pr_parser import PullRequestRef


class Severity(str, Enum):
    """How serious a finding is."""

    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"
    POSITIVE = "positive"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 3,
    Severity.WARNING: 2,
    Severity.SUGGESTION: 1,
    Severity.POSITIVE: 0,
}


class Category(str, Enum):
    """What kind of observation a finding is."""

    BUG = "bug"
    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    QUALITY = "quality"
    POSITIVE = "positive"


class Verdict(str, Enum):
    """Overall review outcome."""

    APPROVE = "APPROVE"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"


class DepthTier(str, Enum):
    """Review depth tier."""

    DETAILED = "detailed"
    STANDARD = "standard"
    FOCUSED = "focused"


class ContentPolicy(str, Enum):
    """When full file content is fetched for a review request."""

    ALWAYS = "always"
    UNDER_THRESHOLD = "under_threshold"
    NEVER = "never"


class ContentStatus(str, Enum):
    """Whether full content made it into a file's review request."""

    INCLUDED = "included"
    NOT_REQUESTED = "not_requested"
    UNAVAILABLE = "unavailable"


class PullRequestMetadata(BaseModel):
    """Read-only snapshot of a pull request."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: Optional[str] = None
    state: str
    author: str
    base_branch: str
    head_branch: str
    head_sha: str
    labels: tuple[str, ...] = ()
    created_at: str
    updated_at: str
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


class ChangedFile(BaseModel):
    """One file touched by the pull request."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: str
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: Optional[str] = None


class FileContent(BaseModel):
    """File content at a ref."""

    model_config = ConfigDict(frozen=True)

    content: str
    encoding: str = "utf-8"
    size: int = 0


class BudgetedText(BaseModel):
    """Text after applying a character budget."""

    model_config = ConfigDict(frozen=True)

    text: str
    truncated: bool = False
    original_length: int = 0


class BudgetedFile(BaseModel):
    """A reviewable file with its patch cut to the per-file budget."""

    model_config = ConfigDict(frozen=True)

    file: ChangedFile
    patch: Optional[str] = None
    patch_truncated: bool = False

    @property
    def filename(self) -> str:
        return self.file.filename

    @property
    def diff_size(self) -> int:
        return len(self.patch) if self.patch else 0


class PullRequestDiff(BaseModel):
    """Raw unified diff of a PR after the diff budget."""

    model_config = ConfigDict(frozen=True)

    diff: str
    truncated: bool = False
    original_length: int = 0


class FilterResult(BaseModel):
    """Stable partition of changed files."""

    model_config = ConfigDict(frozen=True)

    reviewable: tuple[ChangedFile, ...] = ()
    skipped: tuple[str, ...] = ()


class FileGroup(BaseModel):
    """A bounded batch of files reviewed in one invocation."""

    model_config = ConfigDict(frozen=True)

    key: str
    files: tuple[BudgetedFile, ...] = ()
    total_chars: int = 0

    @property
    def filenames(self) -> list[str]:
        return [f.filename for f in self.files]


class FilePage(BaseModel):
    """One page of reviewable files."""

    files: list[ChangedFile] = Field(default_factory=list)
    total_files: int = 0
    reviewable_count: int = 0
    has_more: bool = False
    page: int = 1


class DepthPolicy(BaseModel):
    """Review depth chosen once per run."""

    model_config = ConfigDict(frozen=True)

    tier: DepthTier
    content_policy: ContentPolicy
    content_max_changes: int = 0
    instructions: str = ""

    def wants_content(self, file: ChangedFile) -> bool:
        """Whether full content should be fetched for this file."""
        if self.content_policy == ContentPolicy.ALWAYS:
            return True
        if self.content_policy == ContentPolicy.UNDER_THRESHOLD:
            return file.changes <= self.content_max_changes
        return False


class Lens(BaseModel):
    """A named review checklist."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    checklist: tuple[str, ...] = ()


class Finding(BaseModel):
    """One reviewer observation about a file."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    category: Category
    message: str
    filename: str
    line: Optional[str] = None

    @field_validator("line", mode="before")
    @classmethod
    def coerce_line(cls, value):
        if value is None or value == "":
            return None
        return str(value)


class FileReview(BaseModel):
    """Findings for a single file."""

    model_config = ConfigDict(frozen=True)

    filename: str
    findings: tuple[Finding, ...] = ()
    patch_truncated: bool = False
    content_truncated: bool = False
    content_status: ContentStatus = ContentStatus.NOT_REQUESTED
    error: Optional[str] = None


class FileReviewInput(BaseModel):
    """One file inside a group review request."""

    model_config = ConfigDict(frozen=True)

    filename: str
    status: str
    additions: int = 0
    deletions: int = 0
    patch: Optional[str] = None
    patch_truncated: bool = False
    content: Optional[str] = None
    content_truncated: bool = False
    content_status: ContentStatus = ContentStatus.NOT_REQUESTED


class PRContext(BaseModel):
    """PR context passed to the review capability."""

    model_config = ConfigDict(frozen=True)

    ref: PullRequestRef
    title: str
    body: Optional[str] = None
    author: str = ""
    base_branch: str = ""
    head_branch: str = ""
    head_sha: str = ""


class GroupReviewRequest(BaseModel):
    """Everything the review capability needs for one group."""

    model_config = ConfigDict(frozen=True)

    group_key: str
    files: tuple[FileReviewInput, ...]
    depth: DepthPolicy
    lenses: tuple[Lens, ...]
    pr: PRContext


class CategorizedFindings(BaseModel):
    """Deduplicated findings split into output buckets."""

    model_config = ConfigDict(frozen=True)

    critical_issues: tuple[Finding, ...] = ()
    security_concerns: tuple[Finding, ...] = ()
    performance_notes: tuple[Finding, ...] = ()
    suggestions: tuple[Finding, ...] = ()
    positive_notes: tuple[Finding, ...] = ()


class SummaryResult(BaseModel):
    """Output of the summarization capability."""

    summary: str
    quality_score: int = Field(description="Overall code quality from 1 (poor) to 10 (excellent)")
    verdict: Verdict

    @field_validator("quality_score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return max(1, min(10, int(round(float(value)))))


class AggregatedReview(BaseModel):
    """Terminal review artifact for one run."""

    model_config = ConfigDict(frozen=True)

    pr: PullRequestRef
    summary: str
    quality_score: int
    verdict: Verdict
    depth: DepthTier
    critical_issues: tuple[Finding, ...] = ()
    security_concerns: tuple[Finding, ...] = ()
    performance_notes: tuple[Finding, ...] = ()
    suggestions: tuple[Finding, ...] = ()
    positive_notes: tuple[Finding, ...] = ()
    file_reviews: tuple[FileReview, ...] = ()
    skipped_files: tuple[str, ...] = ()
    truncated_files: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    verdict_overridden: bool = False


class ReviewRunRequest(BaseModel):
    """Request schema for triggering a review over HTTP."""

    url: Optional[str] = None
    reference: Optional[str] = Field(
        default=None, description="Free-text reference such as owner/repo#123 or #123"
    )
    owner: Optional[str] = None
    repo: Optional[str] = None
    pull_number: Optional[int | str] = None
    lenses: list[str] = Field(default_factory=list)
