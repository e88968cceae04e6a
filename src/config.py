"""Configuration for the PR review pipeline."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SKIP_PATTERNS = [
    # Lock files
    "*.lock",
    "package-lock.json",
    "*-lock.json",
    "*-lock.yaml",
    "go.sum",
    # Minified bundles and source maps
    "*.min.js",
    "*.min.css",
    "*.map",
    # Build output and vendored code
    "dist/",
    "build/",
    "node_modules/",
    "vendor/",
    "__pycache__/",
    "coverage/",
    ".next/",
    # Binary assets
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.ico",
    "*.svg",
    "*.webp",
    "*.pdf",
    "*.zip",
    "*.woff",
    "*.woff2",
    "*.ttf",
    "*.eot",
    "*.pyc",
]

DEFAULT_LENSES = ["security", "performance", "correctness", "maintainability", "style"]


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    environment: str = "development"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: Optional[str] = None

    # LLM - OpenRouter (multi-provider gateway)
    openrouter_api_key: Optional[str] = None
    review_model: str = "claude-sonnet-4"
    summary_model: Optional[str] = None
    llm_timeout_seconds: float = 120.0
    llm_max_retries: int = 2

    # GitHub authentication: a token wins over App credentials
    github_token: Optional[str] = None
    github_app_id: Optional[str] = None
    github_private_key: Optional[str] = None
    github_installation_id: Optional[str] = None

    # Default Repository (for #123 shorthand)
    default_repo_owner: Optional[str] = None
    default_repo_name: Optional[str] = None

    # Review pipeline
    skip_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_SKIP_PATTERNS))
    trivial_deletion_threshold: int = 5
    max_patch_chars: int = 20_000
    max_content_chars: int = 30_000
    max_diff_chars: int = 80_000
    small_pr_max_files: int = 10
    small_pr_max_changes: int = 300
    medium_pr_max_files: int = 20
    medium_pr_max_changes: int = 1_500
    standard_content_max_changes: int = 200
    max_group_files: int = 8
    max_group_chars: int = 60_000
    group_affinity_depth: int = 2
    review_concurrency: int = 5
    review_lenses: list[str] = Field(default_factory=lambda: list(DEFAULT_LENSES))
    dedup_similarity: float = 0.9
    files_per_page: int = 30


settings = Settings()


class ReviewConfig(BaseModel):
    """Pipeline thresholds and budgets, passed explicitly to each stage."""

    model_config = ConfigDict(frozen=True)

    skip_patterns: tuple[str, ...] = tuple(DEFAULT_SKIP_PATTERNS)
    trivial_deletion_threshold: int = Field(default=5, ge=0)
    max_patch_chars: int = Field(default=20_000, gt=0)
    max_content_chars: int = Field(default=30_000, gt=0)
    max_diff_chars: int = Field(default=80_000, gt=0)
    small_pr_max_files: int = Field(default=10, gt=0)
    small_pr_max_changes: int = Field(default=300, gt=0)
    medium_pr_max_files: int = Field(default=20, gt=0)
    medium_pr_max_changes: int = Field(default=1_500, gt=0)
    standard_content_max_changes: int = Field(default=200, ge=0)
    max_group_files: int = Field(default=8, gt=0)
    max_group_chars: int = Field(default=60_000, gt=0)
    group_affinity_depth: int = Field(default=2, ge=0)
    review_concurrency: int = Field(default=5, gt=0)
    lenses: tuple[str, ...] = tuple(DEFAULT_LENSES)
    dedup_similarity: float = Field(default=0.9, gt=0.0, le=1.0)
    files_per_page: int = Field(default=30, gt=0)

    @model_validator(mode="after")
    def check_breakpoints(self) -> "ReviewConfig":
        if self.small_pr_max_files > self.medium_pr_max_files:
            raise ValueError("small_pr_max_files must not exceed medium_pr_max_files")
        if self.small_pr_max_changes > self.medium_pr_max_changes:
            raise ValueError("small_pr_max_changes must not exceed medium_pr_max_changes")
        return self

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "ReviewConfig":
        """Build the pipeline config from application settings."""
        source = source or settings
        return cls(
            skip_patterns=tuple(source.skip_patterns),
            trivial_deletion_threshold=source.trivial_deletion_threshold,
            max_patch_chars=source.max_patch_chars,
            max_content_chars=source.max_content_chars,
            max_diff_chars=source.max_diff_chars,
            small_pr_max_files=source.small_pr_max_files,
            small_pr_max_changes=source.small_pr_max_changes,
            medium_pr_max_files=source.medium_pr_max_files,
            medium_pr_max_changes=source.medium_pr_max_changes,
            standard_content_max_changes=source.standard_content_max_changes,
            max_group_files=source.max_group_files,
            max_group_chars=source.max_group_chars,
            group_affinity_depth=source.group_affinity_depth,
            review_concurrency=source.review_concurrency,
            lenses=tuple(source.review_lenses),
            dedup_similarity=source.dedup_similarity,
            files_per_page=source.files_per_page,
        )
