"""Tests for retrieval components."""

import asyncio
import time

import pytest

from retrieval.context_retriever import ContextRetriever
from retrieval.embedder import EmbeddingCache, EmbeddingService

from .conftest import FakeIndex, FakeProvider, qa_match


class BrokenEmbedder:
    dimension = 8

    async def embed(self, text):
        raise RuntimeError("embedding endpoint down")


# ── Embedding Service ─────────────────────────────────

class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_embed_text(self):
        service = EmbeddingService(FakeProvider(), dimension=8)
        vector = await service.embed_text("สวัสดี")
        assert len(vector) == 8

    @pytest.mark.asyncio
    async def test_failure_returns_zero_vector(self):
        service = EmbeddingService(BrokenEmbedder(), dimension=8)
        vector = await service.embed_text("สวัสดี")
        assert vector == [0.0] * 8

    @pytest.mark.asyncio
    async def test_long_input_is_truncated(self):
        provider = FakeProvider()
        service = EmbeddingService(provider, dimension=8)
        await service.embed_text("x" * 30000)
        assert len(provider.embedded[0]) == EmbeddingService.MAX_INPUT_CHARS

    @pytest.mark.asyncio
    async def test_cache_hits(self):
        provider = FakeProvider()
        service = EmbeddingService(provider, dimension=8, cache_size=10)
        await service.embed_text("a")
        await service.embed_text("a")
        assert len(provider.embedded) == 1
        assert service.cache_stats()["hits"] == 1

    def test_cache_eviction(self):
        cache = EmbeddingCache(maxsize=2)
        cache.put("a", [1.0])
        cache.put("b", [2.0])
        cache.put("c", [3.0])
        assert cache.get("a") is None
        assert cache.get("c") == [3.0]


# ── Context Retriever ─────────────────────────────────

def make_retriever(index, provider=None, timeout=5.0):
    service = EmbeddingService(provider or FakeProvider(), dimension=8)
    return ContextRetriever(service, index, namespace="chat-history", embed_delay=0, timeout=timeout)


class SlowIndex(FakeIndex):
    """Index whose calls block well past the retriever timeout."""

    def query(self, embedding, top_k=5, namespace=""):
        time.sleep(0.5)
        return super().query(embedding, top_k, namespace)

    def upsert(self, vectors, namespace=""):
        time.sleep(0.5)
        return super().upsert(vectors, namespace)


class TestContextRetriever:
    @pytest.mark.asyncio
    async def test_results_sorted_by_relevance(self):
        index = FakeIndex(matches=[
            qa_match("q-low", "a-low", 0.4),
            qa_match("q-high", "a-high", 0.95),
            qa_match("q-mid", "a-mid", 0.7),
        ])
        docs = await make_retriever(index).query_relevant("คำถาม", top_k=5)

        assert [d.question for d in docs] == ["q-high", "q-mid", "q-low"]
        assert docs[0].relevance_score == 0.95
        assert docs[0].conversation_id == "c1"
        assert index.queries[0]["namespace"] == "chat-history"

    @pytest.mark.asyncio
    async def test_top_k_bounds_results(self, index):
        docs = await make_retriever(index).query_relevant("คำถาม", top_k=1)
        assert len(docs) == 1

    @pytest.mark.asyncio
    async def test_index_failure_returns_empty(self):
        docs = await make_retriever(FakeIndex(fail=True)).query_relevant("คำถาม")
        assert docs == []

    @pytest.mark.asyncio
    async def test_slow_index_query_times_out(self):
        index = SlowIndex(matches=[qa_match("q", "a", 0.5)])
        retriever = make_retriever(index, timeout=0.05)

        started = time.monotonic()
        docs = await retriever.query_relevant("คำถาม")

        assert docs == []
        assert time.monotonic() - started < 0.4

    @pytest.mark.asyncio
    async def test_slow_index_upsert_times_out(self):
        retriever = make_retriever(SlowIndex(), timeout=0.05)
        with pytest.raises(asyncio.TimeoutError):
            await retriever.add_documents([{"question": "q", "answer": "a"}])

    @pytest.mark.asyncio
    async def test_no_index_returns_empty(self):
        docs = await make_retriever(None).query_relevant("คำถาม")
        assert docs == []

    @pytest.mark.asyncio
    async def test_embedding_failure_still_queries(self):
        index = FakeIndex(matches=[qa_match("q", "a", 0.5)])
        docs = await make_retriever(index, BrokenEmbedder()).query_relevant("คำถาม")
        assert len(docs) == 1
        assert index.queries[0]["embedding"] == [0.0] * 8

    @pytest.mark.asyncio
    async def test_missing_metadata_fields(self):
        index = FakeIndex(matches=[qa_match("q", "a", 0.5)])
        index.matches[0].metadata = {"question": "q"}
        docs = await make_retriever(index).query_relevant("คำถาม")
        assert docs[0].answer == ""

    @pytest.mark.asyncio
    async def test_add_documents(self):
        index = FakeIndex()
        ids = await make_retriever(index).add_documents([
            {"question": "ค่าธรรมเนียมเท่าไหร่", "answer": "ไม่มีค่าธรรมเนียมครับ", "conversation_id": "conv9", "customer_id": "u9"},
        ])

        assert len(ids) == 1
        assert ids[0].startswith("conv9_")
        vector = index.upserted[0]
        assert vector["metadata"]["question"] == "ค่าธรรมเนียมเท่าไหร่"
        assert vector["metadata"]["customerId"] == "u9"
        assert vector["metadata"]["timestamp"]

    @pytest.mark.asyncio
    async def test_add_documents_propagates_index_errors(self):
        with pytest.raises(RuntimeError):
            await make_retriever(FakeIndex(fail=True)).add_documents([{"question": "q", "answer": "a"}])

    @pytest.mark.asyncio
    async def test_stats(self, index):
        stats = await make_retriever(index).get_stats()
        assert stats["enabled"] is True
        assert (await make_retriever(None).get_stats())["enabled"] is False
