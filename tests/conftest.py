"""Shared fixtures: in-memory collaborators and file factories."""

from typing import Optional

import pytest

from src.config import ReviewConfig
from src.core.exceptions import PRNotFoundError
from src.core.pr_parser import PullRequestRef
from src.services.reviewer.schemas import (
    ChangedFile,
    FileContent,
    FileReview,
    Finding,
    PRContext,
    PullRequestMetadata,
    SummaryResult,
    Verdict,
)

HEAD_SHA = "0123456789abcdef0123456789abcdef01234567"


def _make_file(
    filename: str,
    status: str = "modified",
    additions: int = 5,
    deletions: int = 1,
    patch: Optional[str] = "@@ -1,2 +1,3 @@\n line1\n+new line\n line2",
) -> ChangedFile:
    return ChangedFile(
        filename=filename,
        status=status,
        additions=additions,
        deletions=deletions,
        changes=additions + deletions,
        patch=patch,
    )


def _make_metadata(**overrides) -> PullRequestMetadata:
    data = {
        "title": "Add widget caching",
        "body": "Caches widgets between requests.",
        "state": "open",
        "author": "octocat",
        "base_branch": "main",
        "head_branch": "feature/cache",
        "head_sha": HEAD_SHA,
        "labels": ("enhancement",),
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-02T00:00:00+00:00",
        "additions": 10,
        "deletions": 2,
        "changed_files": 2,
    }
    data.update(overrides)
    return PullRequestMetadata(**data)


class FakeSource:
    """In-memory pull request source that records content fetches."""

    def __init__(
        self,
        files: list[ChangedFile],
        metadata: Optional[PullRequestMetadata] = None,
        contents: Optional[dict[str, str]] = None,
        failing_paths: tuple[str, ...] = (),
        missing: bool = False,
        diff: str = "",
    ):
        self.files = files
        self.metadata = metadata or _make_metadata()
        self.contents = contents or {}
        self.failing_paths = failing_paths
        self.missing = missing
        self.diff = diff
        self.content_calls: list[tuple[str, str]] = []

    async def fetch_pr_metadata(self, owner, repo, pull_number):
        if self.missing:
            raise PRNotFoundError(owner, repo, pull_number)
        return self.metadata

    async def fetch_all_changed_files(self, owner, repo, pull_number):
        if self.missing:
            raise PRNotFoundError(owner, repo, pull_number)
        return list(self.files)

    async def fetch_pr_diff(self, owner, repo, pull_number):
        if self.missing:
            raise PRNotFoundError(owner, repo, pull_number)
        return self.diff

    async def fetch_file_content_at_ref(self, owner, repo, path, ref):
        self.content_calls.append((path, ref))
        if path in self.failing_paths:
            raise RuntimeError("connection reset")
        if path not in self.contents:
            return None
        content = self.contents[path]
        return FileContent(content=content, size=len(content))


class FakeReviewer:
    """Review capability returning canned findings per filename."""

    def __init__(
        self,
        findings: Optional[dict[str, list[dict]]] = None,
        verdict: Verdict = Verdict.COMMENT,
        fail_groups: tuple[str, ...] = (),
        fail_summary: bool = False,
    ):
        self.findings = findings or {}
        self.verdict = verdict
        self.fail_groups = fail_groups
        self.fail_summary = fail_summary
        self.requests = []
        self.summary_calls = []

    async def review_group(self, request):
        self.requests.append(request)
        if request.group_key in self.fail_groups:
            raise RuntimeError("model overloaded")
        return [
            FileReview(
                filename=f.filename,
                findings=tuple(
                    Finding(filename=f.filename, **item) for item in self.findings.get(f.filename, [])
                ),
            )
            for f in request.files
        ]

    async def summarize_findings(self, findings, pr, notes):
        self.summary_calls.append((findings, pr, list(notes)))
        if self.fail_summary:
            raise RuntimeError("summarizer unavailable")
        return SummaryResult(summary="Looks reasonable overall.", quality_score=7, verdict=self.verdict)


@pytest.fixture
def make_file():
    return _make_file


@pytest.fixture
def make_metadata():
    return _make_metadata


@pytest.fixture
def fake_source_cls():
    return FakeSource


@pytest.fixture
def fake_reviewer_cls():
    return FakeReviewer


@pytest.fixture
def config():
    return ReviewConfig()


@pytest.fixture
def pr_context():
    return PRContext(
        ref=PullRequestRef(owner="acme", repo="widgets", pull_number=7),
        title="Add widget caching",
        body="Caches widgets between requests.",
        author="octocat",
        base_branch="main",
        head_branch="feature/cache",
        head_sha=HEAD_SHA,
    )


@pytest.fixture
def head_sha():
    return HEAD_SHA
