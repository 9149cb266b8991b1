"""
Generation capability interface.

Any provider (OpenAI, a local model server, a test fake) that exposes text
generation and embeddings can drive the pipeline.
"""

from dataclasses import dataclass
from typing import List, Protocol, runtime_checkable


@dataclass
class GenerationResult:
    """Text returned by a provider plus its token usage."""
    text: str
    token_count: int = 0


@runtime_checkable
class GenerationProvider(Protocol):
    """Protocol for text generation and embedding providers."""

    async def generate_text(self, prompt: str) -> GenerationResult:
        """Generate a completion for a single prompt."""
        ...

    async def embed(self, text: str) -> List[float]:
        """Embed a text into a fixed-dimension vector."""
        ...


@runtime_checkable
class VisionProvider(Protocol):
    """Protocol for providers that can read an image alongside a prompt."""

    async def describe_image(self, prompt: str, image_url: str) -> GenerationResult:
        """Generate a completion for a prompt about the image at image_url."""
        ...
