"""
Pinecone Client for Chatbot Copilot.

Handles all vector database operations for the chat-history index.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pinecone import Pinecone, ServerlessSpec

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """Result from a vector search."""
    id: str
    score: float
    metadata: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class VectorIndex(Protocol):
    """Synchronous vector index operations consumed by the retriever."""

    def upsert(self, vectors: List[Dict[str, Any]], namespace: str = "") -> int:
        ...

    def query(self, embedding: List[float], top_k: int = 5, namespace: str = "") -> List[SearchResult]:
        ...

    def get_stats(self) -> Dict[str, Any]:
        ...

    def delete(self, ids: Optional[List[str]] = None, delete_all: bool = False, namespace: str = "") -> bool:
        ...


@dataclass
class PineconeConfig:
    """Configuration for Pinecone client."""
    api_key: str
    index_name: str = "chatbot-copilot"
    dimension: int = 768
    metric: str = "cosine"
    cloud: str = "aws"
    region: str = "us-east-1"


class PineconeClient:
    """
    Client for Pinecone vector database operations.

    Supports:
    - Index bootstrap (create if missing)
    - Batched upsert
    - Similarity search
    - Namespace deletion and stats
    """

    UPSERT_BATCH_SIZE = 100

    def __init__(self, config: PineconeConfig):
        """
        Initialize the Pinecone client.

        Args:
            config: Pinecone configuration
        """
        self.config = config
        self._client = None
        self._index = None

        self._initialize()

    def _initialize(self):
        """Initialize Pinecone client and index."""
        try:
            self._client = Pinecone(api_key=self.config.api_key)

            existing_indexes = [idx.name for idx in self._client.list_indexes()]

            if self.config.index_name not in existing_indexes:
                logger.info(f"Creating new Pinecone index: {self.config.index_name}")
                self._client.create_index(
                    name=self.config.index_name,
                    dimension=self.config.dimension,
                    metric=self.config.metric,
                    spec=ServerlessSpec(cloud=self.config.cloud, region=self.config.region),
                )
            else:
                logger.info(f"Using existing Pinecone index: {self.config.index_name}")

            self._index = self._client.Index(self.config.index_name)

        except Exception as e:
            logger.error(f"Failed to initialize Pinecone: {e}")
            raise

    def upsert(self, vectors: List[Dict[str, Any]], namespace: str = "") -> int:
        """
        Upsert vectors to the index.

        Args:
            vectors: List of {"id", "values", "metadata"} dicts
            namespace: Target namespace

        Returns:
            Number of vectors upserted
        """
        if not vectors:
            return 0

        formatted = [(v["id"], v["values"], v.get("metadata", {})) for v in vectors]
        upserted = 0

        for i in range(0, len(formatted), self.UPSERT_BATCH_SIZE):
            batch = formatted[i:i + self.UPSERT_BATCH_SIZE]
            self._index.upsert(vectors=batch, namespace=namespace)
            upserted += len(batch)
            logger.debug(f"Upserted batch {i // self.UPSERT_BATCH_SIZE + 1}, total: {upserted}")

        logger.info(f"Upserted {upserted} vectors to namespace '{namespace}'")
        return upserted

    def query(self, embedding: List[float], top_k: int = 5, namespace: str = "") -> List[SearchResult]:
        """
        Query for similar vectors.

        Args:
            embedding: Query embedding
            top_k: Number of results to return
            namespace: Namespace to search

        Returns:
            List of SearchResult objects, highest score first
        """
        response = self._index.query(
            vector=embedding,
            top_k=top_k,
            namespace=namespace,
            include_metadata=True,
        )

        results = [
            SearchResult(id=match.id, score=match.score, metadata=match.metadata or {})
            for match in (response.matches or [])
        ]

        logger.debug(f"Query returned {len(results)} results")
        return results

    def delete(self, ids: Optional[List[str]] = None, delete_all: bool = False, namespace: str = "") -> bool:
        """
        Delete vectors from the index.

        Args:
            ids: Vector IDs to delete
            delete_all: Delete all vectors in namespace
            namespace: Target namespace

        Returns:
            True if successful
        """
        try:
            if delete_all:
                self._index.delete(delete_all=True, namespace=namespace)
                logger.info(f"Deleted all vectors from namespace '{namespace}'")
            elif ids:
                self._index.delete(ids=ids, namespace=namespace)
                logger.info(f"Deleted {len(ids)} vectors from namespace '{namespace}'")
            return True

        except Exception as e:
            logger.error(f"Delete failed: {e}")
            return False

    def get_stats(self) -> Dict[str, Any]:
        """Get index statistics."""
        try:
            stats = self._index.describe_index_stats()
            return {
                "total_vector_count": getattr(stats, "total_vector_count", 0),
                "dimension": getattr(stats, "dimension", self.config.dimension),
                "index_name": self.config.index_name,
            }
        except Exception as e:
            logger.error(f"Failed to get stats: {e}")
            return {"total_vector_count": 0, "index_name": self.config.index_name}
