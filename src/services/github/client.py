"""GitHub API client - data layer."""

from typing import Optional

from github import Auth, Github, GithubException, GithubIntegration, UnknownObjectException
from github.PullRequest import PullRequest
from github.Repository import Repository
from loguru import logger

from src.config import settings
from src.core.exceptions import ExternalServiceError, PRNotFoundError, RepositoryNotFoundError

_github_client: Optional[Github] = None


def get_github_client() -> Github:
    """Get authenticated GitHub client from a token or an App installation."""
    global _github_client

    if _github_client:
        return _github_client

    if settings.github_token:
        _github_client = Github(auth=Auth.Token(settings.github_token))
        logger.info("GitHub token client initialized")
        return _github_client

    if not all([settings.github_app_id, settings.github_private_key, settings.github_installation_id]):
        raise ExternalServiceError("GitHub", "no GITHUB_TOKEN or GitHub App credentials configured")

    private_key = settings.github_private_key.replace("\\n", "\n")

    integration = GithubIntegration(
        auth=Auth.AppAuth(int(settings.github_app_id), private_key),
    )

    access_token = integration.get_access_token(int(settings.github_installation_id)).token
    _github_client = Github(auth=Auth.Token(access_token))

    logger.info("GitHub App client initialized")
    return _github_client


def fetch_repository(owner: str, repo: str) -> Repository:
    """Fetch a repository, mapping 404 to RepositoryNotFoundError."""
    client = get_github_client()
    try:
        return client.get_repo(f"{owner}/{repo}")
    except UnknownObjectException:
        raise RepositoryNotFoundError(owner, repo)
    except GithubException as e:
        raise ExternalServiceError("GitHub", f"failed to fetch {owner}/{repo}: {e.status} {e.data}")


def fetch_pull_request(owner: str, repo: str, pr_number: int) -> PullRequest:
    """Fetch a pull request from GitHub API."""
    repository = fetch_repository(owner, repo)
    try:
        return repository.get_pull(pr_number)
    except UnknownObjectException:
        raise PRNotFoundError(owner, repo, pr_number)
    except GithubException as e:
        raise ExternalServiceError(
            "GitHub", f"failed to fetch {owner}/{repo}#{pr_number}: {e.status} {e.data}"
        )


def pull_request_to_dict(pr: PullRequest) -> dict:
    """Flatten the PR fields the pipeline needs."""
    return {
        "title": pr.title,
        "body": pr.body,
        "state": pr.state,
        "author": pr.user.login if pr.user else "",
        "base_branch": pr.base.ref,
        "head_branch": pr.head.ref,
        "head_sha": pr.head.sha,
        "labels": [label.name for label in pr.labels],
        "created_at": pr.created_at.isoformat() if pr.created_at else "",
        "updated_at": pr.updated_at.isoformat() if pr.updated_at else "",
        "additions": pr.additions,
        "deletions": pr.deletions,
        "changed_files": pr.changed_files,
    }


def fetch_pr_files(pr: PullRequest) -> list[dict]:
    """Fetch every changed file from a PR, walking all pages."""
    files = []
    try:
        for f in pr.get_files():
            files.append({
                "filename": f.filename,
                "status": f.status,
                "additions": f.additions,
                "deletions": f.deletions,
                "changes": f.changes,
                "patch": f.patch,
            })
    except GithubException as e:
        raise ExternalServiceError("GitHub", f"failed to list files for PR #{pr.number}: {e.status} {e.data}")
    return files


def fetch_file_contents(owner: str, repo: str, path: str, ref: str) -> Optional[dict]:
    """Fetch full file contents at a ref; None when the file or ref does not exist."""
    client = get_github_client()
    try:
        repository = client.get_repo(f"{owner}/{repo}")
        content = repository.get_contents(path, ref=ref)
    except UnknownObjectException:
        logger.info(f"File {path} not found at {ref}")
        return None
    except GithubException as e:
        if e.status == 404:
            return None
        logger.error(f"Failed to fetch file {path}@{ref}: {e}")
        raise ExternalServiceError("GitHub", f"failed to fetch {path}@{ref}: {e.status}")

    if isinstance(content, list):
        logger.warning(f"Path {path} is a directory, not a file")
        return None
    if content.encoding != "base64":
        # Files over 1 MB come back without inline content
        logger.warning(f"File {path} has no inline content (encoding={content.encoding})")
        return None

    return {
        "content": content.decoded_content.decode("utf-8", errors="replace"),
        "encoding": "utf-8",
        "size": content.size,
    }


DIFF_MEDIA_TYPE = "application/vnd.github.diff"


def fetch_pr_diff(owner: str, repo: str, pr_number: int) -> str:
    """Fetch the raw unified diff of a PR using the diff media type."""
    client = get_github_client()
    try:
        _, data = client.requester.requestJsonAndCheck(
            "GET",
            f"/repos/{owner}/{repo}/pulls/{pr_number}",
            headers={"Accept": DIFF_MEDIA_TYPE},
        )
    except UnknownObjectException:
        raise PRNotFoundError(owner, repo, pr_number)
    except GithubException as e:
        raise ExternalServiceError(
            "GitHub", f"failed to fetch diff for {owner}/{repo}#{pr_number}: {e.status}"
        )

    # Non-JSON bodies come back wrapped as {"data": text}
    if isinstance(data, dict):
        data = data.get("data")
    return data or ""
