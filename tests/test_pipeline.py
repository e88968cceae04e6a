"""End-to-end tests for the review pipeline with in-memory collaborators."""

import pytest

from src.config import ReviewConfig
from src.core.exceptions import ExternalServiceError, InvalidInputError, PRNotFoundError
from src.services.reviewer.budget import TRUNCATION_MARKER
from src.services.reviewer.schemas import ContentStatus, DepthTier, Verdict
from src.services.reviewer import service
from src.services.reviewer.service import (
    get_pull_request_diff,
    list_reviewable_files,
    review_pull_request,
    review_pull_request_reference,
    review_pull_request_url,
)


class ExplodingSource:
    """Source that fails the test if it is ever called."""

    async def fetch_pr_metadata(self, *args):
        raise AssertionError("network call made before validation")

    async def fetch_all_changed_files(self, *args):
        raise AssertionError("network call made before validation")

    async def fetch_file_content_at_ref(self, *args):
        raise AssertionError("network call made before validation")

    async def fetch_pr_diff(self, *args):
        raise AssertionError("network call made before validation")


@pytest.fixture
def files(make_file):
    return [
        make_file("src/app.py"),
        make_file("src/util.py"),
        make_file("web/index.ts"),
        make_file("yarn.lock", additions=400, deletions=300),
        make_file("old/legacy.py", status="removed", additions=0, deletions=2, patch=None),
    ]


class TestReviewPullRequest:
    """Tests for review_pull_request."""

    async def test_every_file_accounted_for(self, files, fake_source_cls, fake_reviewer_cls, config):
        source = fake_source_cls(files, contents={"src/app.py": "print('hi')\n"})
        reviewer = fake_reviewer_cls(
            findings={"src/app.py": [{"severity": "warning", "category": "bug", "message": "Unchecked None"}]}
        )

        review = await review_pull_request("acme", "widgets", 7, source=source, reviewer=reviewer, config=config)

        reviewed = [r.filename for r in review.file_reviews]
        assert sorted(reviewed) == ["src/app.py", "src/util.py", "web/index.ts"]
        assert review.skipped_files == ("yarn.lock", "old/legacy.py")
        assert len(reviewed) + len(review.skipped_files) == len(files)
        assert str(review.pr) == "acme/widgets#7"

    async def test_groups_by_directory_and_language(self, files, fake_source_cls, fake_reviewer_cls, config):
        reviewer = fake_reviewer_cls()

        await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=reviewer, config=config
        )

        keys = sorted(request.group_key for request in reviewer.requests)
        assert len(keys) == 2
        grouped = {request.group_key: [f.filename for f in request.files] for request in reviewer.requests}
        assert ["src/app.py", "src/util.py"] in grouped.values()
        assert ["web/index.ts"] in grouped.values()

    async def test_small_pr_fetches_content_at_head(self, files, fake_source_cls, fake_reviewer_cls, config, head_sha):
        source = fake_source_cls(files, contents={"src/app.py": "print('hi')\n"})
        reviewer = fake_reviewer_cls()

        review = await review_pull_request("acme", "widgets", 7, source=source, reviewer=reviewer, config=config)

        assert review.depth == DepthTier.DETAILED
        assert {ref for _, ref in source.content_calls} == {head_sha}
        statuses = {r.filename: r.content_status for r in review.file_reviews}
        assert statuses["src/app.py"] == ContentStatus.INCLUDED
        assert statuses["src/util.py"] == ContentStatus.UNAVAILABLE

    async def test_large_pr_reviews_diff_only(self, make_file, fake_source_cls, fake_reviewer_cls, config):
        files = [make_file(f"pkg/mod_{i}.py", additions=30, deletions=10) for i in range(50)]
        source = fake_source_cls(files)
        reviewer = fake_reviewer_cls()

        review = await review_pull_request("acme", "widgets", 7, source=source, reviewer=reviewer, config=config)

        assert review.depth == DepthTier.FOCUSED
        assert source.content_calls == []
        assert len(review.file_reviews) == 50
        assert all(len(request.files) <= config.max_group_files for request in reviewer.requests)

    async def test_critical_finding_blocks_approval(self, files, fake_source_cls, fake_reviewer_cls, config):
        reviewer = fake_reviewer_cls(
            findings={"web/index.ts": [{"severity": "critical", "category": "security", "message": "XSS via innerHTML"}]},
            verdict=Verdict.APPROVE,
        )

        review = await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=reviewer, config=config
        )

        assert review.verdict == Verdict.REQUEST_CHANGES
        assert review.verdict_overridden
        assert [f.message for f in review.critical_issues] == ["XSS via innerHTML"]

    async def test_group_failure_does_not_fail_run(self, files, fake_source_cls, fake_reviewer_cls, config):
        reviewer = fake_reviewer_cls(fail_groups=("web [typescript]",))

        review = await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=reviewer, config=config
        )

        errors = {r.filename: r.error for r in review.file_reviews}
        assert errors["web/index.ts"] is not None
        assert errors["src/app.py"] is None
        assert any("web/index.ts" in note for note in review.notes)

    async def test_only_skipped_files(self, make_file, fake_source_cls, fake_reviewer_cls, config):
        files = [make_file("package-lock.json"), make_file("dist/bundle.js")]
        reviewer = fake_reviewer_cls()

        review = await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=reviewer, config=config
        )

        assert review.file_reviews == ()
        assert review.skipped_files == ("package-lock.json", "dist/bundle.js")
        assert review.verdict == Verdict.COMMENT
        assert reviewer.requests == []
        assert reviewer.summary_calls == []

    async def test_lenses_forwarded(self, files, fake_source_cls, fake_reviewer_cls, config):
        reviewer = fake_reviewer_cls()

        await review_pull_request(
            "acme", "widgets", 7, ["Security", "style"],
            source=fake_source_cls(files), reviewer=reviewer, config=config,
        )

        assert all([lens.name for lens in r.lenses] == ["security", "style"] for r in reviewer.requests)

    async def test_missing_pr_propagates(self, fake_source_cls, fake_reviewer_cls, config):
        source = fake_source_cls([], missing=True)

        with pytest.raises(PRNotFoundError) as exc_info:
            await review_pull_request("acme", "widgets", 404, source=source, reviewer=fake_reviewer_cls(), config=config)

        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize(
        "owner,repo,number",
        [("", "widgets", 1), ("acme", "", 1), ("acme", "widgets", 0), ("acme", "widgets", "abc")],
    )
    async def test_invalid_input_rejected_before_fetch(self, fake_reviewer_cls, config, owner, repo, number):
        with pytest.raises(InvalidInputError):
            await review_pull_request(
                owner, repo, number, source=ExplodingSource(), reviewer=fake_reviewer_cls(), config=config
            )

    async def test_unknown_lens_rejected_before_fetch(self, fake_reviewer_cls, config):
        with pytest.raises(InvalidInputError):
            await review_pull_request(
                "acme", "widgets", 7, ["vibes"],
                source=ExplodingSource(), reviewer=fake_reviewer_cls(), config=config,
            )

    async def test_repeat_runs_are_identical(self, files, fake_source_cls, fake_reviewer_cls, config):
        findings = {
            "src/app.py": [{"severity": "suggestion", "category": "style", "message": "Rename x"}],
            "web/index.ts": [{"severity": "warning", "category": "performance", "message": "Debounce input"}],
        }

        first = await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=fake_reviewer_cls(findings), config=config
        )
        second = await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=fake_reviewer_cls(findings), config=config
        )

        assert first == second


class UnconfiguredReviewer:
    """Review backend whose credentials are missing."""

    async def review_group(self, request):
        raise ExternalServiceError("OpenRouter", "OPENROUTER_API_KEY not configured")

    async def summarize_findings(self, findings, pr, notes):
        raise ExternalServiceError("OpenRouter", "OPENROUTER_API_KEY not configured")


class TestUnusableReviewBackend:
    """A review backend that cannot run fails the run instead of approving."""

    async def test_missing_credentials_propagate(self, files, fake_source_cls, config):
        with pytest.raises(ExternalServiceError) as exc_info:
            await review_pull_request(
                "acme", "widgets", 7, source=fake_source_cls(files), reviewer=UnconfiguredReviewer(), config=config
            )

        assert exc_info.value.status_code == 502

    async def test_default_reviewer_checked_before_fetch(self, monkeypatch, config):
        monkeypatch.setattr(service.settings, "openrouter_api_key", None)

        with pytest.raises(ExternalServiceError):
            await review_pull_request("acme", "widgets", 7, source=ExplodingSource(), config=config)

    async def test_transient_failures_never_approve(self, files, fake_source_cls, fake_reviewer_cls, config):
        reviewer = fake_reviewer_cls(
            fail_groups=("src [python]", "web [typescript]"), fail_summary=True
        )

        review = await review_pull_request(
            "acme", "widgets", 7, source=fake_source_cls(files), reviewer=reviewer, config=config
        )

        assert review.verdict == Verdict.COMMENT
        assert all(r.error for r in review.file_reviews)
        assert "Reviewed 0 file(s)." in review.summary


class TestReviewPullRequestUrl:
    """Tests for review_pull_request_url."""

    async def test_review_by_url(self, files, fake_source_cls, fake_reviewer_cls, config):
        review = await review_pull_request_url(
            "https://github.com/acme/widgets/pull/7",
            source=fake_source_cls(files),
            reviewer=fake_reviewer_cls(),
            config=config,
        )

        assert review.pr.owner == "acme"
        assert review.pr.pull_number == 7

    async def test_bad_url_rejected(self, fake_reviewer_cls, config):
        with pytest.raises(InvalidInputError):
            await review_pull_request_url(
                "https://gitlab.com/acme/widgets/merge_requests/7",
                source=ExplodingSource(),
                reviewer=fake_reviewer_cls(),
                config=config,
            )


class TestReviewPullRequestReference:
    """Tests for review_pull_request_reference."""

    async def test_owner_repo_hash(self, files, fake_source_cls, fake_reviewer_cls, config):
        review = await review_pull_request_reference(
            "please look at acme/widgets#7",
            source=fake_source_cls(files),
            reviewer=fake_reviewer_cls(),
            config=config,
        )

        assert str(review.pr) == "acme/widgets#7"

    @pytest.mark.parametrize("text", ["nothing to see here", "acme/widgets#0", ""])
    async def test_unusable_reference_rejected(self, fake_reviewer_cls, config, text):
        with pytest.raises(InvalidInputError):
            await review_pull_request_reference(
                text, source=ExplodingSource(), reviewer=fake_reviewer_cls(), config=config
            )


class TestListReviewableFiles:
    """Tests for list_reviewable_files."""

    async def test_pages_exclude_skipped(self, make_file, fake_source_cls):
        files = [make_file(f"src/m{i}.py") for i in range(5)] + [make_file("yarn.lock")]
        config = ReviewConfig(files_per_page=2)

        first = await list_reviewable_files("acme", "widgets", 7, 1, source=fake_source_cls(files), config=config)
        last = await list_reviewable_files("acme", "widgets", 7, 3, source=fake_source_cls(files), config=config)

        assert [f.filename for f in first.files] == ["src/m0.py", "src/m1.py"]
        assert first.total_files == 6
        assert first.reviewable_count == 2
        assert first.has_more
        assert [f.filename for f in last.files] == ["src/m4.py"]
        assert not last.has_more

    async def test_invalid_page(self, config):
        with pytest.raises(InvalidInputError):
            await list_reviewable_files("acme", "widgets", 7, 0, source=ExplodingSource(), config=config)


class TestGetPullRequestDiff:
    """Tests for get_pull_request_diff."""

    async def test_small_diff_untouched(self, fake_source_cls, config):
        diff = "diff --git a/x.py b/x.py\n+print('hi')\n"

        result = await get_pull_request_diff("acme", "widgets", "7", source=fake_source_cls([], diff=diff), config=config)

        assert result.diff == diff
        assert result.truncated is False
        assert result.original_length == len(diff)

    async def test_large_diff_truncated(self, fake_source_cls):
        diff = "diff --git a/x.py b/x.py\n" + "+line\n" * 500
        config = ReviewConfig(max_diff_chars=200)

        result = await get_pull_request_diff("acme", "widgets", 7, source=fake_source_cls([], diff=diff), config=config)

        assert result.truncated is True
        assert len(result.diff) <= 200
        assert result.diff.endswith(TRUNCATION_MARKER)
        assert result.original_length == len(diff)

    def test_default_budget(self, config):
        assert config.max_diff_chars == 80_000

    async def test_missing_pr(self, fake_source_cls, config):
        with pytest.raises(PRNotFoundError):
            await get_pull_request_diff("acme", "widgets", 9, source=fake_source_cls([], missing=True), config=config)

    async def test_invalid_number_rejected_before_fetch(self, config):
        with pytest.raises(InvalidInputError):
            await get_pull_request_diff("acme", "widgets", "x", source=ExplodingSource(), config=config)
