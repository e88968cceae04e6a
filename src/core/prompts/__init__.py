"""Prompt templates using Jinja2."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

PROMPTS_DIR = Path(__file__).parent
_env = Environment(
    loader=FileSystemLoader(PROMPTS_DIR),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def render_code_review_prompt(request) -> str:
    """Render the group review prompt for a GroupReviewRequest."""
    template = _env.get_template("code_review.jinja2")
    return template.render(
        pr=request.pr,
        depth=request.depth,
        lenses=request.lenses,
        files=request.files,
        group_key=request.group_key,
    )


def render_review_summary_prompt(pr, findings, notes) -> str:
    """Render the review summary prompt."""
    template = _env.get_template("review_summary.jinja2")
    buckets = [
        ("Critical issues", findings.critical_issues),
        ("Security concerns", findings.security_concerns),
        ("Performance notes", findings.performance_notes),
        ("Suggestions", findings.suggestions),
        ("Positive notes", findings.positive_notes),
    ]
    return template.render(pr=pr, buckets=buckets, notes=notes)
