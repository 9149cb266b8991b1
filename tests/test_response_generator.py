"""Tests for reply generation and heuristic confidence."""

import pytest

from llm.response_generator import (
    DEFAULT_QUICK_REPLIES,
    ResponseGenerator,
    calculate_confidence,
)
from llm.customer_store import CustomerProfile
from llm.retry import ProviderExhaustedError
from retrieval.context_retriever import ContextDocument

from .conftest import FakeProvider


class TestCalculateConfidence:
    def test_short_confident_answer(self):
        assert calculate_confidence("เปิดบัญชีได้ที่สาขาครับ") == pytest.approx(0.85)

    def test_medium_answer_keeps_base(self):
        assert calculate_confidence("ก" * 200) == pytest.approx(0.8)

    def test_uncertainty_phrases_penalized(self):
        assert calculate_confidence("ไม่แน่ใจครับ") == pytest.approx(0.75)
        assert calculate_confidence("ไม่แน่ใจ อาจจะ น่าจะ ครับ") == pytest.approx(0.55)

    def test_long_answer_penalized(self):
        assert calculate_confidence("ก" * 600) == pytest.approx(0.7)

    def test_floor(self):
        text = "ไม่แน่ใจ อาจจะ น่าจะ คิดว่า ลองติดต่อ " + "ก" * 600
        assert calculate_confidence(text) == 0.3

    @pytest.mark.parametrize("text", [
        "",
        "ok",
        "ไม่แน่ใจ" * 50,
        "น่าจะ" + "x" * 1000,
        "ลองติดต่อสาขา",
    ])
    def test_always_within_bounds(self, text):
        assert 0.3 <= calculate_confidence(text) <= 1.0


class TestResponseGenerator:
    @pytest.mark.asyncio
    async def test_generate_response(self, retry_executor):
        provider = FakeProvider(reply="เปิดบัญชีใช้บัตรประชาชนครับ")
        generator = ResponseGenerator(provider, retry_executor)
        docs = [ContextDocument(question="เปิดบัญชีใช้อะไร", answer="บัตรประชาชน", relevance_score=0.9)]
        profile = CustomerProfile(id="u1", display_name="สมชาย", total_prior_conversations=4)

        result = await generator.generate_response("เปิดบัญชีใช้อะไรครับ", docs, profile)

        assert result.text == "เปิดบัญชีใช้บัตรประชาชนครับ"
        assert result.confidence == pytest.approx(0.85)
        assert result.tokens_used == 42
        prompt = provider.prompts[0]
        assert "สมชาย" in prompt
        assert "4 ครั้ง" in prompt
        assert "คำถาม: เปิดบัญชีใช้อะไร" in prompt

    @pytest.mark.asyncio
    async def test_prompt_without_context_or_profile(self, retry_executor):
        provider = FakeProvider()
        await ResponseGenerator(provider, retry_executor).generate_response("สวัสดี")
        assert "ไม่มีข้อมูลที่เกี่ยวข้อง" in provider.prompts[0]
        assert "ชื่อ: ลูกค้า" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_outage_propagates(self, retry_executor):
        generator = ResponseGenerator(FakeProvider(error=RuntimeError("down")), retry_executor)
        with pytest.raises(ProviderExhaustedError):
            await generator.generate_response("สวัสดี")

    @pytest.mark.asyncio
    async def test_quick_replies(self, retry_executor):
        provider = FakeProvider(quick_replies=[
            {"text": "หนึ่ง", "confidence": 0.9},
            {"text": "สอง", "confidence": 0.8},
            {"text": "สาม", "confidence": 0.7},
            {"text": "สี่", "confidence": 0.6},
        ])
        replies = await ResponseGenerator(provider, retry_executor).generate_quick_replies("ถาม")
        assert [r.text for r in replies] == ["หนึ่ง", "สอง", "สาม"]

    @pytest.mark.asyncio
    async def test_quick_replies_default_on_garbage(self, retry_executor):
        provider = FakeProvider(quick_replies=[])
        provider.quick_replies = "not a list"
        replies = await ResponseGenerator(provider, retry_executor).generate_quick_replies("ถาม")
        assert replies == list(DEFAULT_QUICK_REPLIES)

    @pytest.mark.asyncio
    async def test_summary(self, retry_executor):
        provider = FakeProvider(summary="  ลูกค้าถามเรื่องบัตร  ")
        generator = ResponseGenerator(provider, retry_executor)
        summary = await generator.summarize_conversation([
            {"from": "customer", "text": "บัตรหาย"},
            {"from": "staff", "text": "อายัดให้แล้วครับ"},
        ])
        assert summary == "ลูกค้าถามเรื่องบัตร"
        assert "ลูกค้า: บัตรหาย" in provider.prompts[0]
        assert "เจ้าหน้าที่: อายัดให้แล้วครับ" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_empty_summary_skips_provider(self, retry_executor):
        provider = FakeProvider()
        assert await ResponseGenerator(provider, retry_executor).summarize_conversation([]) == ""
        assert provider.prompts == []
