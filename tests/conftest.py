"""Shared fixtures for Chatbot Copilot tests."""

import json
import os
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

# Ensure we use test/mock settings
os.environ.setdefault("OPENAI_API_KEYS", "test-key-1,test-key-2")
os.environ.setdefault("PINECONE_API_KEY", "")
os.environ.setdefault("RETRY_BASE_DELAY_SECONDS", "0")

from chat.processor import MessageProcessor
from llm.conversation_store import InMemoryConversationStore
from llm.customer_store import InMemoryCustomerStore
from llm.key_rotator import ProviderKeyRotator
from llm.providers.base import GenerationResult
from llm.response_generator import ResponseGenerator
from llm.retry import RetryExecutor
from retrieval.context_retriever import ContextRetriever
from retrieval.embedder import EmbeddingService
from retrieval.pinecone_client import SearchResult
from triage.escalation import EscalationEvaluator
from triage.intent_classifier import IntentClassifier


class FakeProvider:
    """Scripted generation capability keyed on the prompt kind."""

    def __init__(
        self,
        intent: Optional[Dict[str, Any]] = None,
        reply: str = "ยินดีให้บริการครับ",
        quick_replies: Optional[List[Dict[str, Any]]] = None,
        summary: str = "ลูกค้าสอบถามข้อมูลทั่วไป",
        error: Optional[Exception] = None,
        dimension: int = 8,
        vision_reply: str = "",
    ):
        self.intent = intent or {
            "intent": "GENERAL_INQUIRY",
            "confidence": 0.9,
            "keywords": ["ข้อมูล"],
            "suggestedDepartment": "ทั่วไป",
            "summary": "สอบถามข้อมูล",
        }
        self.reply = reply
        self.quick_replies = quick_replies or [
            {"text": "ได้เลยครับ", "confidence": 0.9},
            {"text": "รอสักครู่นะครับ", "confidence": 0.8},
            {"text": "ขอเบอร์ติดต่อได้ไหมครับ", "confidence": 0.7},
        ]
        self.summary = summary
        self.error = error
        self.dimension = dimension
        self.vision_reply = vision_reply
        self.prompts: List[str] = []
        self.embedded: List[str] = []
        self.images: List[str] = []

    async def generate_text(self, prompt: str) -> GenerationResult:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error

        if '"suggestedDepartment"' in prompt:
            text = f"```json\n{json.dumps(self.intent, ensure_ascii=False)}\n```"
        elif "สร้างคำตอบแนะนำ" in prompt:
            text = json.dumps(self.quick_replies, ensure_ascii=False)
        elif "สรุปบทสนทนา" in prompt:
            text = self.summary
        else:
            text = self.reply
        return GenerationResult(text=text, token_count=42)

    async def describe_image(self, prompt: str, image_url: str) -> GenerationResult:
        self.prompts.append(prompt)
        self.images.append(image_url)
        if self.error is not None:
            raise self.error
        return GenerationResult(text=self.vision_reply, token_count=42)

    async def embed(self, text: str) -> List[float]:
        self.embedded.append(text)
        return [0.1] * self.dimension


class FakeIndex:
    """In-memory stand-in for the vector index client."""

    def __init__(self, matches: Optional[List[SearchResult]] = None, fail: bool = False):
        self.matches = matches or []
        self.fail = fail
        self.upserted: List[Dict[str, Any]] = []
        self.queries: List[Dict[str, Any]] = []

    def upsert(self, vectors, namespace=""):
        if self.fail:
            raise RuntimeError("index unavailable")
        self.upserted.extend(vectors)
        return len(vectors)

    def query(self, embedding, top_k=5, namespace=""):
        self.queries.append({"embedding": embedding, "top_k": top_k, "namespace": namespace})
        if self.fail:
            raise RuntimeError("index unavailable")
        return self.matches[:top_k]

    def get_stats(self):
        return {"total_vector_count": len(self.upserted), "dimension": 8}

    def delete(self, ids=None, delete_all=False, namespace=""):
        if delete_all:
            self.upserted.clear()
        return True


async def no_sleep(_seconds):
    return None


def qa_match(question: str, answer: str, score: float, cid: str = "c1") -> SearchResult:
    return SearchResult(
        id=f"{cid}_{question}",
        score=score,
        metadata={
            "question": question,
            "answer": answer,
            "conversationId": cid,
            "customerId": "u1",
            "timestamp": "2024-01-01T00:00:00+00:00",
        },
    )


@pytest.fixture
def rotator():
    return ProviderKeyRotator(["k1", "k2", "k3"])


@pytest.fixture
def retry_executor(rotator):
    return RetryExecutor(rotator, max_attempts=3, base_delay=0, timeout=5.0, sleep=no_sleep)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def index():
    return FakeIndex(matches=[
        qa_match("เปิดบัญชีต้องใช้อะไรบ้าง", "ใช้บัตรประชาชนครับ", 0.92),
        qa_match("โอนเงินต่างประเทศได้ไหม", "ได้ครับ ผ่านแอป", 0.81),
    ])


@pytest.fixture
def make_processor(retry_executor):
    """Build a processor around a given provider and index."""

    def _make(provider, index=None, **kwargs):
        embedding = EmbeddingService(provider, dimension=provider.dimension, timeout=5.0)
        retriever = ContextRetriever(embedding, index, embed_delay=0)
        return MessageProcessor(
            intent_classifier=IntentClassifier(provider, retry_executor),
            context_retriever=retriever,
            response_generator=ResponseGenerator(provider, retry_executor),
            escalation_evaluator=EscalationEvaluator(confidence_threshold=0.7),
            customer_store=InMemoryCustomerStore(),
            conversation_store=InMemoryConversationStore(),
            **kwargs,
        )

    return _make


@pytest.fixture
def client():
    """Create a FastAPI test client."""
    from api.main import app
    return TestClient(app)
