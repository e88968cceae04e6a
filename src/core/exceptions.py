"""Custom API exceptions for the application."""


class ApiException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(ApiException):
    """Resource not found exception."""

    def __init__(self, resource: str, identifier: str, details: dict | None = None) -> None:
        super().__init__(404, f"{resource} not found: {identifier}", details)


class ValidationError(ApiException):
    """Request validation error."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(422, message, details)


class InvalidInputError(ValidationError):
    """Malformed PR reference or review options, rejected before any network call."""


class ExternalServiceError(ApiException):
    """External service (GitHub, LLM gateway) error."""

    def __init__(self, service: str, message: str, details: dict | None = None) -> None:
        super().__init__(502, f"{service} error: {message}", details)


class PRNotFoundError(NotFoundError):
    """Pull request not found."""

    def __init__(self, owner: str, repo: str, pr_number: int) -> None:
        super().__init__(
            "Pull request",
            f"{owner}/{repo}#{pr_number}",
            {"owner": owner, "repo": repo, "pull_number": pr_number},
        )


class RepositoryNotFoundError(NotFoundError):
    """Repository not found or not visible to the configured credentials."""

    def __init__(self, owner: str, repo: str) -> None:
        super().__init__("Repository", f"{owner}/{repo}", {"owner": owner, "repo": repo})
