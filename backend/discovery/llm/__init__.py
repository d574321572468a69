"""LLM module - provides unified interface for LLM API providers."""

from .base import LLMProvider, LLMMessage
from .openrouter_provider import OpenRouterProvider
from .factory import create_llm_provider
from .completion import CompletionService, CompletionUnavailableError

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'OpenRouterProvider',
    'create_llm_provider',
    'CompletionService',
    'CompletionUnavailableError',
]
