"""
Context Retriever for Chatbot Copilot.

Finds historical Q&A pairs similar to a new message. Retrieval is an
enrichment: any failure degrades to "no history" instead of failing the
customer interaction.
"""

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .embedder import EmbeddingService
from .pinecone_client import VectorIndex

logger = logging.getLogger(__name__)


@dataclass
class ContextDocument:
    """A historical question/answer pair retrieved as background."""
    question: str
    answer: str
    conversation_id: str = ""
    customer_id: str = ""
    timestamp: str = ""
    relevance_score: float = 0.0

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any], score: float) -> "ContextDocument":
        return cls(
            question=str(metadata.get("question", "")),
            answer=str(metadata.get("answer", "")),
            conversation_id=str(metadata.get("conversationId", "")),
            customer_id=str(metadata.get("customerId", "")),
            timestamp=str(metadata.get("timestamp", "")),
            relevance_score=float(score or 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "answer": self.answer,
            "conversation_id": self.conversation_id,
            "customer_id": self.customer_id,
            "timestamp": self.timestamp,
            "relevance_score": self.relevance_score,
        }


class ContextRetriever:
    """
    Semantic lookup over the chat-history namespace.

    The index client is synchronous; calls are moved off the event loop
    with asyncio.to_thread and bounded by a per-call timeout.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        index: Optional[VectorIndex],
        namespace: str = "chat-history",
        default_top_k: int = 5,
        embed_delay: float = 0.1,
        timeout: Optional[float] = 30.0,
    ):
        """
        Initialize the retriever.

        Args:
            embedding_service: Text embedding service
            index: Vector index client (None disables retrieval)
            namespace: Index namespace holding Q&A pairs
            default_top_k: Results returned when top_k is not given
            embed_delay: Pause between embeddings when indexing batches
            timeout: Per-call index timeout in seconds (None disables)
        """
        self.embedding_service = embedding_service
        self.index = index
        self.namespace = namespace
        self.default_top_k = default_top_k
        self.embed_delay = embed_delay
        self.timeout = timeout

    async def query_relevant(self, text: str, top_k: Optional[int] = None) -> List[ContextDocument]:
        """
        Retrieve Q&A pairs similar to text.

        Args:
            text: Customer message
            top_k: Maximum number of documents

        Returns:
            Documents sorted by relevance, at most top_k; empty on any failure
        """
        top_k = top_k or self.default_top_k

        if self.index is None:
            logger.debug("No vector index configured, skipping context retrieval")
            return []

        try:
            embedding = await self.embedding_service.embed_text(text)
            matches = await self._call_index(
                self.index.query,
                embedding=embedding,
                top_k=top_k,
                namespace=self.namespace,
            )

            documents = [
                ContextDocument.from_metadata(match.metadata or {}, match.score)
                for match in matches or []
            ]
            documents.sort(key=lambda d: d.relevance_score, reverse=True)
            documents = documents[:top_k]

            logger.debug(f"Found {len(documents)} relevant documents for query")
            return documents

        except asyncio.TimeoutError:
            logger.error(f"Context retrieval timed out after {self.timeout}s")
            return []
        except Exception as e:
            logger.error(f"Context retrieval failed: {e}")
            return []

    async def add_documents(self, documents: List[Mapping[str, Any]]) -> List[str]:
        """
        Embed and index Q&A pairs.

        Args:
            documents: Dicts with question, answer and optional
                conversation_id, customer_id, timestamp

        Returns:
            IDs of the indexed vectors
        """
        if self.index is None:
            logger.warning("No vector index configured, documents not indexed")
            return []

        vectors = []
        for i, doc in enumerate(documents):
            conversation_id = doc.get("conversation_id") or ""
            text = f"คำถาม: {doc['question']}\nคำตอบ: {doc['answer']}"
            embedding = await self.embedding_service.embed_text(text)

            vectors.append({
                "id": self._make_id(conversation_id),
                "values": embedding,
                "metadata": {
                    "conversationId": conversation_id,
                    "customerId": doc.get("customer_id") or "",
                    "question": doc["question"],
                    "answer": doc["answer"],
                    "timestamp": doc.get("timestamp") or datetime.now(timezone.utc).isoformat(),
                },
            })

            if self.embed_delay and i < len(documents) - 1:
                await asyncio.sleep(self.embed_delay)

        try:
            await self._call_index(self.index.upsert, vectors, self.namespace)
        except Exception as e:
            logger.error(f"Failed to add documents: {e}")
            raise

        logger.info(f"Added {len(vectors)} documents to vector index")
        return [v["id"] for v in vectors]

    async def get_stats(self) -> Dict[str, Any]:
        if self.index is None:
            return {"total_vector_count": 0, "enabled": False}
        stats = await self._call_index(self.index.get_stats)
        return {**stats, "enabled": True}

    async def delete_all(self) -> bool:
        if self.index is None:
            return False
        return await self._call_index(self.index.delete, None, True, self.namespace)

    async def _call_index(self, func, *args, **kwargs):
        call = asyncio.to_thread(func, *args, **kwargs)
        if self.timeout:
            return await asyncio.wait_for(call, timeout=self.timeout)
        return await call

    @staticmethod
    def _make_id(conversation_id: str) -> str:
        suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
        return f"{conversation_id}_{int(time.time() * 1000)}_{suffix}"
