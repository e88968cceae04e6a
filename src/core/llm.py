"""Chat model access through the OpenRouter gateway."""

from typing import Type, TypeVar

from langchain_core.runnables import Runnable
from langchain_openai import ChatOpenAI

from src.config import settings
from src.core.exceptions import ExternalServiceError
from src.core.logging import get_logger

logger = get_logger("llm")

T = TypeVar("T")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "claude-sonnet-4"

# Short name -> OpenRouter model id and the structured-output method it handles best
SUPPORTED_MODELS = {
    "claude-sonnet-4": ("anthropic/claude-sonnet-4", "function_calling"),
    "claude-opus-4": ("anthropic/claude-opus-4", "function_calling"),
    "gpt-4o": ("openai/gpt-4o", "json_schema"),
    "gpt-4o-mini": ("openai/gpt-4o-mini", "json_schema"),
}


def resolve_model(model: str) -> tuple[str, str]:
    """Map a short model name to (model_id, structured_method).

    Unknown names fall back to the default model.
    """
    if model not in SUPPORTED_MODELS:
        logger.warning(f"Unknown model '{model}', falling back to {DEFAULT_MODEL}")
        model = DEFAULT_MODEL
    return SUPPORTED_MODELS[model]


def get_chat_llm(
    model: str = DEFAULT_MODEL,
    temperature: float = 0.0,
) -> ChatOpenAI:
    """Get a chat model for reviewing and summarizing."""
    if not settings.openrouter_api_key:
        raise ExternalServiceError("OpenRouter", "OPENROUTER_API_KEY not configured")

    model_id, _ = resolve_model(model)
    logger.debug(f"Using {model_id} (timeout={settings.llm_timeout_seconds}s)")

    return ChatOpenAI(
        model=model_id,
        api_key=settings.openrouter_api_key,
        base_url=OPENROUTER_BASE_URL,
        temperature=temperature,
        timeout=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries,
    )


def get_structured_llm(
    output_model: Type[T],
    model: str = DEFAULT_MODEL,
    temperature: float = 0.0,
) -> Runnable:
    """Get a model bound to a pydantic output schema."""
    _, method = resolve_model(model)
    return get_chat_llm(model=model, temperature=temperature).with_structured_output(
        output_model, method=method
    )
