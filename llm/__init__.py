"""
LLM Module for Chatbot Copilot.

This module handles:
- Provider abstraction and credential rotation
- Retry policy for provider calls
- Prompt template management
- Response generation with heuristic confidence
"""

from .key_rotator import ProviderKeyRotator, EmptyKeyPoolError
from .retry import RetryExecutor, ProviderError, ProviderExhaustedError, is_rate_limit_error
from .prompt_templates import PromptTemplates, PromptType

__all__ = [
    "ProviderKeyRotator",
    "EmptyKeyPoolError",
    "RetryExecutor",
    "ProviderError",
    "ProviderExhaustedError",
    "is_rate_limit_error",
    "PromptTemplates",
    "PromptType",
]
