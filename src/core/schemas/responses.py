"""Response envelopes shared by all endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope around a review or a file page."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope; details carry the offending input or PR coordinates."""

    success: bool = False
    error: str
    details: dict | None = None


class HealthResponse(BaseModel):
    """Service health plus which upstream credentials are configured."""

    status: str = "healthy"
    service: str = "pr-review-pipeline"
    version: str = "0.1.0"
    github_configured: bool = False
    llm_configured: bool = False
