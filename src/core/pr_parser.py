"""Parse PR references from URLs and chat text."""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict

from src.config import settings
from src.core.exceptions import InvalidInputError

PR_URL_PATTERN = re.compile(r"^https?://github\.com/([^/\s]+)/([^/\s]+)/pull/(\d+)/?$")


class PullRequestRef(BaseModel):
    """Immutable pull request identifier."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pull_number: int

    @classmethod
    def create(cls, owner: str, repo: str, pull_number: int | str) -> "PullRequestRef":
        """Build a reference from user input, validating every part."""
        owner = (owner or "").strip()
        repo = (repo or "").strip()
        if not owner or not repo:
            raise InvalidInputError("Repository owner and name are required")

        if isinstance(pull_number, bool):
            raise InvalidInputError(f"Invalid pull number: {pull_number!r}")
        if isinstance(pull_number, str):
            digits = pull_number.strip()
            if not (digits.isascii() and digits.isdecimal()):
                raise InvalidInputError(f"Pull number must be numeric, got {pull_number!r}")
            pull_number = int(digits)
        if not isinstance(pull_number, int) or pull_number <= 0:
            raise InvalidInputError(f"Pull number must be a positive integer, got {pull_number!r}")

        return cls(owner=owner, repo=repo, pull_number=pull_number)

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.pull_number}"


def parse_pr_url(url: str) -> PullRequestRef:
    """
    Parse a GitHub pull request URL.

    Only the canonical form is accepted:
    https://github.com/owner/repo/pull/123 (optional trailing slash)

    Raises:
        InvalidInputError: If the URL does not match.
    """
    match = PR_URL_PATTERN.match((url or "").strip())
    if not match:
        raise InvalidInputError(
            f'Invalid GitHub PR URL: "{url}". Expected format: https://github.com/owner/repo/pull/123',
            {"url": url},
        )
    return PullRequestRef.create(match.group(1), match.group(2), match.group(3))


def parse_pr_reference(text: str) -> Optional[PullRequestRef]:
    """
    Parse PR reference from text.

    Supported formats:
    - #123 -> uses default owner/repo from settings
    - owner/repo#123 -> specific repo
    - https://github.com/owner/repo/pull/123 -> full URL

    Returns None when the text holds no reference. A reference with an
    invalid pull number (such as #0) raises InvalidInputError.
    """
    # Pattern 1: Full GitHub URL
    url_pattern = r"https?://github\.com/([^/\s]+)/([^/\s]+)/pull/(\d+)"
    match = re.search(url_pattern, text)
    if match:
        return PullRequestRef.create(match.group(1), match.group(2), match.group(3))

    # Pattern 2: owner/repo#123
    full_ref_pattern = r"([a-zA-Z0-9_-]+)/([a-zA-Z0-9_.-]+)#(\d+)"
    match = re.search(full_ref_pattern, text)
    if match:
        return PullRequestRef.create(match.group(1), match.group(2), match.group(3))

    # Pattern 3: #123 (use defaults)
    short_pattern = r"(?:^|\s)#(\d+)(?:\s|$)"
    match = re.search(short_pattern, text)
    if match:
        return _with_default_repo(match.group(1))

    # Pattern 4: "review 123" or "PR 123"
    number_pattern = r"(?:review|pr|pull\s*request)\s+(\d+)"
    match = re.search(number_pattern, text, re.IGNORECASE)
    if match:
        return _with_default_repo(match.group(1))

    return None


def _with_default_repo(pull_number: str) -> Optional[PullRequestRef]:
    if not settings.default_repo_owner or not settings.default_repo_name:
        return None
    return PullRequestRef.create(settings.default_repo_owner, settings.default_repo_name, pull_number)
