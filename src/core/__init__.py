"""Shared library utilities."""

from src.core.llm import get_chat_llm, get_structured_llm
from src.core.logging import get_logger
from src.core.pr_parser import PullRequestRef, parse_pr_reference, parse_pr_url

__all__ = [
    "get_chat_llm",
    "get_structured_llm",
    "get_logger",
    "PullRequestRef",
    "parse_pr_reference",
    "parse_pr_url",
]
