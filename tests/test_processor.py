"""End-to-end tests for the message processor."""

import pytest

from chat.processor import FALLBACK_REPLY, ProcessingMode
from triage.escalation import Priority
from triage.intent_classifier import Intent

from .conftest import FakeIndex, FakeProvider


class BrokenCustomerStore:
    async def get_profile(self, customer_id):
        raise RuntimeError("db down")

    async def get_or_create(self, customer_id):
        raise RuntimeError("db down")

    async def update_activity(self, customer_id, **fields):
        raise RuntimeError("db down")


class TestAssistantMode:
    @pytest.mark.asyncio
    async def test_explicit_human_request_escalates(self, make_processor, index):
        processor = make_processor(FakeProvider(), index)

        result = await processor.process_message("u1", "ขอคุยกับเจ้าหน้าที่", ProcessingMode.ASSISTANT)

        assert result.escalation.should_escalate is True
        assert result.escalation.priority == Priority.HIGH
        assert "ลูกค้าขอคุยกับเจ้าหน้าที่" in result.escalation.reason
        assert result.error is False

    @pytest.mark.asyncio
    async def test_greeting_answered_confidently(self, make_processor, index):
        provider = FakeProvider(
            intent={"intent": "GREETING", "confidence": 0.95, "summary": "ทักทาย"},
            reply="สวัสดีครับ ยินดีให้บริการครับ",
        )
        processor = make_processor(provider, index)

        result = await processor.process_message("u1", "สวัสดีครับ", ProcessingMode.ASSISTANT)

        assert result.reply == "สวัสดีครับ ยินดีให้บริการครับ"
        assert result.confidence >= 0.85
        assert result.escalation.should_escalate is False
        assert result.intent.intent == Intent.GREETING
        assert result.tokens_used == 42
        assert len(result.context) == 2

    @pytest.mark.asyncio
    async def test_provider_outage_returns_fallback(self, make_processor, index):
        provider = FakeProvider(error=RuntimeError("service unavailable"))
        processor = make_processor(provider, index)

        result = await processor.process_message("u1", "สวัสดีครับ", ProcessingMode.ASSISTANT)

        assert result.reply == FALLBACK_REPLY
        assert result.confidence == 0
        assert result.escalation.should_escalate is True
        assert result.escalation.reason == "system_error"
        assert result.escalation.priority == Priority.HIGH
        assert result.error is True
        # Intent and reply each spent three attempts
        assert len(provider.prompts) == 6

    @pytest.mark.asyncio
    async def test_retrieval_outage_does_not_fail_message(self, make_processor):
        processor = make_processor(FakeProvider(), FakeIndex(fail=True))
        result = await processor.process_message("u1", "สวัสดีครับ")
        assert result.error is False
        assert result.context == []

    @pytest.mark.asyncio
    async def test_store_failure_returns_fallback(self, make_processor, index):
        processor = make_processor(FakeProvider(), index)
        processor.customer_store = BrokenCustomerStore()

        result = await processor.process_message("u1", "สวัสดีครับ")

        assert result.error is True
        assert result.escalation.reason == "system_error"

    @pytest.mark.asyncio
    async def test_messages_and_activity_recorded(self, make_processor, index):
        provider = FakeProvider(intent={"intent": "LOAN", "confidence": 0.8})
        processor = make_processor(provider, index)

        result = await processor.process_message("u1", "อยากกู้เงินซื้อบ้าน")

        recent = await processor.conversation_store.get_recent_messages("u1")
        assert [m.sender for m in recent] == ["customer", "ai"]
        assert recent[0].intent == "LOAN"
        assert recent[1].escalated is True
        assert result.escalation.priority == Priority.MEDIUM

        profile = await processor.customer_store.get_profile("u1")
        assert profile.last_intent == "LOAN"
        assert profile.last_contact is not None

    @pytest.mark.asyncio
    async def test_to_dict(self, make_processor, index):
        processor = make_processor(FakeProvider(), index)
        data = (await processor.process_message("u1", "สวัสดีครับ")).to_dict()
        assert data["mode"] == "ai-auto"
        assert data["escalation"]["priority"] in ("low", "medium", "high")
        assert data["processing_time_ms"] >= 0


class TestStaffMode:
    @pytest.mark.asyncio
    async def test_suggestions_instead_of_reply(self, make_processor, index):
        processor = make_processor(FakeProvider(), index)

        result = await processor.process_message("u1", "บัตรหายทำอย่างไร", ProcessingMode.STAFF)

        assert result.mode == ProcessingMode.STAFF
        assert result.reply is None
        assert len(result.suggestions) == 3
        assert result.escalation is None
        assert result.recent_messages[-1].text == "บัตรหายทำอย่างไร"
        assert result.intent.suggested_department == "ทั่วไป"

    @pytest.mark.asyncio
    async def test_staff_mode_outage_returns_fallback(self, make_processor, index):
        processor = make_processor(FakeProvider(error=RuntimeError("down")), index)
        result = await processor.process_message("u1", "บัตรหาย", ProcessingMode.STAFF)
        assert result.error is True
        assert result.mode == ProcessingMode.STAFF


class TestStaffReply:
    @pytest.mark.asyncio
    async def test_reply_indexed_as_qa_pair(self, make_processor, index):
        processor = make_processor(FakeProvider(), index)
        await processor.process_message("u1", "ค่าธรรมเนียมโอนเท่าไหร่", ProcessingMode.STAFF)

        ack = await processor.process_staff_reply("u1", "staff-7", "ไม่มีค่าธรรมเนียมครับ")

        assert ack.success is True
        assert len(ack.indexed_ids) == 1
        metadata = index.upserted[0]["metadata"]
        assert metadata["question"] == "ค่าธรรมเนียมโอนเท่าไหร่"
        assert metadata["answer"] == "ไม่มีค่าธรรมเนียมครับ"

        profile = await processor.customer_store.get_profile("u1")
        assert profile.last_contact_by == "staff"

        recent = await processor.conversation_store.get_recent_messages("u1")
        assert recent[-1].sender == "staff"
        assert recent[-1].staff_id == "staff-7"

    @pytest.mark.asyncio
    async def test_no_prior_customer_message(self, make_processor, index):
        processor = make_processor(FakeProvider(), index)
        ack = await processor.process_staff_reply("u1", "staff-7", "สวัสดีครับ")
        assert ack.success is True
        assert ack.indexed_ids == []

    @pytest.mark.asyncio
    async def test_indexing_disabled(self, make_processor, index):
        processor = make_processor(FakeProvider(), index, index_staff_replies=False)
        await processor.process_message("u1", "ถามหน่อย", ProcessingMode.STAFF)
        ack = await processor.process_staff_reply("u1", "staff-7", "ตอบครับ")
        assert ack.indexed_ids == []
        assert index.upserted == []

    @pytest.mark.asyncio
    async def test_index_failure_is_logged_not_raised(self, make_processor):
        index = FakeIndex()
        processor = make_processor(FakeProvider(), index)
        await processor.process_message("u1", "ถามหน่อย", ProcessingMode.STAFF)
        index.fail = True

        ack = await processor.process_staff_reply("u1", "staff-7", "ตอบครับ")

        assert ack.success is True
        assert ack.indexed_ids == []


class TestSummarize:
    @pytest.mark.asyncio
    async def test_summarize_thread(self, make_processor, index):
        provider = FakeProvider(summary="ลูกค้าถามเรื่องค่าธรรมเนียม")
        processor = make_processor(provider, index)
        await processor.process_message("u1", "ค่าธรรมเนียมเท่าไหร่", ProcessingMode.STAFF)

        assert await processor.summarize("u1") == "ลูกค้าถามเรื่องค่าธรรมเนียม"
