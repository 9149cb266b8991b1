"""
LLM Provider implementations.
"""

from .base import GenerationProvider, GenerationResult, VisionProvider
from .openai_provider import OpenAIProvider

__all__ = ["GenerationProvider", "GenerationResult", "VisionProvider", "OpenAIProvider"]
