"""
OpenAI LLM Provider.
"""

import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from ..key_rotator import ProviderKeyRotator
from .base import GenerationResult

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    OpenAI (or OpenAI-compatible) provider.

    The API key is read from the shared rotator on every call, so a rotation
    triggered by one request is picked up by the next attempt of any other.
    """

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_EMBED_MODEL = "text-embedding-3-small"

    def __init__(
        self,
        key_rotator: ProviderKeyRotator,
        model_id: str = DEFAULT_MODEL,
        embed_model_id: str = DEFAULT_EMBED_MODEL,
        vision_model_id: Optional[str] = None,
        embedding_dimension: int = 768,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        timeout: float = 30.0,
        base_url: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            key_rotator: Pool of API keys
            model_id: Chat model ID
            embed_model_id: Embedding model ID
            vision_model_id: Image-capable chat model ID (defaults to model_id)
            embedding_dimension: Requested embedding size
            max_tokens: Maximum tokens
            temperature: Generation temperature
            timeout: Client-side request timeout in seconds
            base_url: Optional OpenAI-compatible endpoint
            system_prompt: Optional system prompt sent with every request
        """
        self.key_rotator = key_rotator
        self.model_id = model_id
        self.embed_model_id = embed_model_id
        self.vision_model_id = vision_model_id or model_id
        self.embedding_dimension = embedding_dimension
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.base_url = base_url
        self.system_prompt = system_prompt

        # One client per key; keys never change after startup
        self._clients: Dict[str, AsyncOpenAI] = {}

        logger.info(f"OpenAI provider initialized: {model_id} ({key_rotator.size} key(s))")

    def _client(self) -> AsyncOpenAI:
        key = self.key_rotator.current_key()
        client = self._clients.get(key)
        if client is None:
            # Retries are owned by RetryExecutor
            client = AsyncOpenAI(
                api_key=key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
            self._clients[key] = client
        return client

    async def generate_text(self, prompt: str) -> GenerationResult:
        """
        Generate a completion.

        Args:
            prompt: User prompt

        Returns:
            GenerationResult with text and total token usage
        """
        messages: List[Dict[str, str]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": prompt})

        return await self._complete(self.model_id, messages)

    async def describe_image(self, prompt: str, image_url: str) -> GenerationResult:
        """
        Generate a completion for a prompt about an image.

        Args:
            prompt: Instructions for reading the image
            image_url: Public URL (or data: URL) of the image

        Returns:
            GenerationResult with text and total token usage
        """
        messages = [{
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        }]
        return await self._complete(self.vision_model_id, messages)

    async def _complete(self, model: str, messages: List[Dict[str, Any]]) -> GenerationResult:
        try:
            response = await self._client().chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(f"OpenAI generation failed: {e}")
            raise

        text = (response.choices[0].message.content or "").strip()
        usage = getattr(response, "usage", None)
        tokens = getattr(usage, "total_tokens", 0) or 0

        return GenerationResult(text=text, token_count=tokens)

    async def embed(self, text: str) -> List[float]:
        """Generate an embedding for a single text."""
        try:
            response = await self._client().embeddings.create(
                model=self.embed_model_id,
                input=text,
                dimensions=self.embedding_dimension,
            )
        except Exception as e:
            logger.error(f"OpenAI embedding failed: {e}")
            raise

        embedding = response.data[0].embedding
        logger.debug(f"Generated OpenAI embedding, dim={len(embedding)}")
        return embedding

    async def health_check(self) -> bool:
        """Check if OpenAI is available."""
        try:
            await self.generate_text("Hello")
            return True
        except Exception:
            return False
