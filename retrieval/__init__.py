"""
Retrieval Module for Chatbot Copilot.

This module provides historical-context retrieval:
- Embedding generation through the generation capability
- Pinecone vector operations
- Q&A context lookup and indexing
"""

from .embedder import EmbeddingService, EmbeddingCache
from .pinecone_client import PineconeClient, PineconeConfig, SearchResult, VectorIndex
from .context_retriever import ContextRetriever, ContextDocument

__all__ = [
    "EmbeddingService",
    "EmbeddingCache",
    "PineconeClient",
    "PineconeConfig",
    "SearchResult",
    "VectorIndex",
    "ContextRetriever",
    "ContextDocument",
]
