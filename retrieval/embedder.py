"""
Embedding Service for Chatbot Copilot.

Generates embeddings through the generation capability, with an optional
LRU cache and a zero-vector fallback so index queries stay well-formed.
"""

import asyncio
import hashlib
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from llm.providers.base import GenerationProvider

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """
    In-memory LRU cache for embeddings.

    Key: MD5 hash of normalized text.
    Value: embedding vector.
    """

    def __init__(self, maxsize: int = 2000):
        self.maxsize = maxsize
        self._cache: "OrderedDict[str, List[float]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def _make_key(self, text: str) -> str:
        normalized = text.strip().lower()
        return hashlib.md5(normalized.encode()).hexdigest()

    def get(self, text: str) -> Optional[List[float]]:
        key = self._make_key(text)
        if key in self._cache:
            self._cache.move_to_end(key)
            self.hits += 1
            return self._cache[key]
        self.misses += 1
        return None

    def put(self, text: str, embedding: List[float]) -> None:
        key = self._make_key(text)
        if key in self._cache:
            self._cache.move_to_end(key)
        elif len(self._cache) >= self.maxsize:
            self._cache.popitem(last=False)
        self._cache[key] = embedding

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._cache), "hits": self.hits, "misses": self.misses}


class EmbeddingService:
    """
    Service for generating text embeddings.

    Never raises from embed_text: a failed embedding becomes a zero vector of
    the configured dimension. Fallback vectors are not cached.
    """

    MAX_INPUT_CHARS = 25000

    def __init__(
        self,
        provider: GenerationProvider,
        dimension: int = 768,
        timeout: Optional[float] = 30.0,
        cache_size: int = 0,
    ):
        """
        Initialize the embedding service.

        Args:
            provider: Generation capability exposing embed()
            dimension: Expected vector size
            timeout: Per-call timeout in seconds
            cache_size: If > 0, enable LRU embedding cache
        """
        self.provider = provider
        self.dimension = dimension
        self.timeout = timeout
        self._cache: Optional[EmbeddingCache] = EmbeddingCache(cache_size) if cache_size > 0 else None

    def zero_vector(self) -> List[float]:
        return [0.0] * self.dimension

    async def embed_text(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Input text

        Returns:
            Embedding vector (zero vector on failure)
        """
        if self._cache:
            cached = self._cache.get(text)
            if cached is not None:
                return cached

        if len(text) > self.MAX_INPUT_CHARS:
            text = text[:self.MAX_INPUT_CHARS]

        try:
            if self.timeout:
                embedding = await asyncio.wait_for(self.provider.embed(text), timeout=self.timeout)
            else:
                embedding = await self.provider.embed(text)
        except Exception as e:
            logger.error(f"Embedding generation failed, using zero vector: {e}")
            return self.zero_vector()

        if len(embedding) != self.dimension:
            logger.warning(
                f"Embedding dimension {len(embedding)} does not match expected {self.dimension}"
            )

        if self._cache:
            self._cache.put(text, embedding)

        return embedding

    async def embed_texts(self, texts: List[str]) -> List[List[float]]:
        """Generate embeddings for multiple texts, one call per text."""
        return [await self.embed_text(text) for text in texts]

    def cache_stats(self) -> Dict[str, int]:
        return self._cache.stats() if self._cache else {}
