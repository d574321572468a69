"""
LLM Provider Factory - Creates the configured LLM provider instance.
"""

from typing import Optional
from .base import LLMProvider
from .openrouter_provider import OpenRouterProvider


def create_llm_provider(
    provider: str = "openrouter",
    api_key: str = "",
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance based on configuration.

    Args:
        provider: Provider name ("openrouter", or "openai" for any OpenAI-compatible endpoint)
        api_key: API key for the provider
        model: Model name (uses provider default if not specified)
        base_url: Custom base URL (uses provider default if not specified)
        **kwargs: Additional provider-specific parameters

    Returns:
        LLMProvider instance, or None if api_key is not configured
    """
    if not api_key:
        return None

    params = {"api_key": api_key}
    if model:
        params["model"] = model
    if base_url:
        params["base_url"] = base_url
    params.update(kwargs)

    if provider == "openrouter":
        return OpenRouterProvider(**params)

    if provider == "openai":
        params.setdefault("base_url", "https://api.openai.com/v1")
        return OpenRouterProvider(**params)

    raise ValueError(f"Unsupported LLM provider: {provider}")
