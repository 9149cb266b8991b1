"""
Message Processor for Chatbot Copilot.

Orchestrates the pipeline for one inbound message:
intent ∥ context → reply (assistant) or suggestions (staff) → escalation.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from llm.conversation_store import ConversationStore, InMemoryConversationStore, StoredMessage
from llm.customer_store import CustomerProfile, CustomerStore, InMemoryCustomerStore
from llm.response_generator import QuickReply, ResponseGenerator
from retrieval.context_retriever import ContextDocument, ContextRetriever
from triage.escalation import EscalationEvaluator, EscalationVerdict
from triage.intent_classifier import IntentClassifier, IntentResult

logger = logging.getLogger(__name__)


class ProcessingMode(Enum):
    """Who answers the customer."""
    ASSISTANT = "ai-auto"
    STAFF = "staff-assist"


FALLBACK_REPLY = (
    "ขออภัยครับ ระบบขัดข้อง กรุณาลองใหม่อีกครั้งหรือติดต่อเจ้าหน้าที่ในเวลาทำการครับ"
)


@dataclass
class ProcessResult:
    """Output bundle for one inbound message."""
    mode: ProcessingMode
    sender_id: str
    reply: Optional[str] = None
    suggestions: List[QuickReply] = field(default_factory=list)
    confidence: float = 0.0
    intent: Optional[IntentResult] = None
    escalation: Optional[EscalationVerdict] = None
    tokens_used: int = 0
    customer: Optional[CustomerProfile] = None
    context: List[ContextDocument] = field(default_factory=list)
    recent_messages: List[StoredMessage] = field(default_factory=list)
    processing_time_ms: float = 0.0
    error: bool = False

    @property
    def should_escalate(self) -> bool:
        return bool(self.escalation and self.escalation.should_escalate)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "mode": self.mode.value,
            "sender_id": self.sender_id,
            "reply": self.reply,
            "suggestions": [s.to_dict() for s in self.suggestions],
            "confidence": self.confidence,
            "intent": self.intent.to_dict() if self.intent else None,
            "escalation": self.escalation.to_dict() if self.escalation else None,
            "tokens_used": self.tokens_used,
            "customer": self.customer.to_dict() if self.customer else None,
            "context": [c.to_dict() for c in self.context],
            "recent_messages": [m.to_dict() for m in self.recent_messages],
            "processing_time_ms": self.processing_time_ms,
            "error": self.error,
        }


@dataclass
class StaffReplyAck:
    """Acknowledgement of a recorded staff reply."""
    success: bool
    sender_id: str
    staff_id: str
    indexed_ids: List[str] = field(default_factory=list)


class MessageProcessor:
    """
    Orchestrates the message pipeline.

    Pipeline:
    1. Load customer profile
    2. Classify intent and retrieve context concurrently
    3. Record the inbound message
    4. Assistant mode: generate reply, then evaluate escalation
       Staff mode: suggest replies (no escalation, a human is in the loop)
    5. Return result; any failure becomes a safe, high-priority escalation
    """

    RECENT_MESSAGES_LIMIT = 10

    def __init__(
        self,
        intent_classifier: IntentClassifier,
        context_retriever: ContextRetriever,
        response_generator: ResponseGenerator,
        escalation_evaluator: EscalationEvaluator,
        customer_store: Optional[CustomerStore] = None,
        conversation_store: Optional[ConversationStore] = None,
        top_k: int = 5,
        index_staff_replies: bool = True,
    ):
        """
        Initialize the processor.

        Args:
            intent_classifier: Intent classifier
            context_retriever: Historical context retriever
            response_generator: Reply/suggestion generator
            escalation_evaluator: Escalation rule engine
            customer_store: Customer profile store
            conversation_store: Message store
            top_k: Context documents per message
            index_staff_replies: Index customer question + staff answer pairs
        """
        self.intent_classifier = intent_classifier
        self.context_retriever = context_retriever
        self.response_generator = response_generator
        self.escalation_evaluator = escalation_evaluator
        self.customer_store = customer_store or InMemoryCustomerStore()
        self.conversation_store = conversation_store or InMemoryConversationStore()
        self.top_k = top_k
        self.index_staff_replies = index_staff_replies

    async def process_message(
        self,
        sender_id: str,
        text: str,
        mode: ProcessingMode = ProcessingMode.ASSISTANT,
    ) -> ProcessResult:
        """
        Process an inbound message. Never raises.

        Args:
            sender_id: Opaque customer identifier
            text: Message text
            mode: Assistant-autonomous or staff-assisted

        Returns:
            ProcessResult
        """
        start_time = time.time()

        try:
            customer = await self.customer_store.get_or_create(sender_id)

            intent, context = await asyncio.gather(
                self.intent_classifier.detect_intent(text),
                self.context_retriever.query_relevant(text, self.top_k),
            )
            logger.debug(f"Detected intent: {intent.intent.value} ({intent.confidence})")
            logger.debug(f"Found {len(context)} relevant context items")

            await self.conversation_store.save_message(StoredMessage(
                sender_id=sender_id,
                text=text,
                sender="customer",
                intent=intent.intent.value,
                intent_confidence=intent.confidence,
            ))
            await self.customer_store.update_activity(
                sender_id,
                last_contact=datetime.now(timezone.utc),
                last_intent=intent.intent.value,
            )

            if mode == ProcessingMode.ASSISTANT:
                result = await self._process_with_assistant(sender_id, text, context, customer, intent)
            else:
                result = await self._process_with_staff_assist(sender_id, text, context, customer, intent)

        except Exception as e:
            logger.exception(f"Error processing message from {sender_id}: {e}")
            result = self.fallback_result(sender_id, mode)

        result.processing_time_ms = round((time.time() - start_time) * 1000, 2)
        return result

    async def _process_with_assistant(
        self,
        sender_id: str,
        text: str,
        context: List[ContextDocument],
        customer: CustomerProfile,
        intent: IntentResult,
    ) -> ProcessResult:
        generated = await self.response_generator.generate_response(text, context, customer)

        escalation = self.escalation_evaluator.evaluate(
            text,
            confidence=generated.confidence,
            intent=intent.intent,
        )

        await self.conversation_store.save_message(StoredMessage(
            sender_id=sender_id,
            text=generated.text,
            sender="ai",
            confidence=generated.confidence,
            escalated=escalation.should_escalate,
        ))

        return ProcessResult(
            mode=ProcessingMode.ASSISTANT,
            sender_id=sender_id,
            reply=generated.text,
            confidence=generated.confidence,
            intent=intent,
            escalation=escalation,
            tokens_used=generated.tokens_used,
            customer=customer,
            context=context,
        )

    async def _process_with_staff_assist(
        self,
        sender_id: str,
        text: str,
        context: List[ContextDocument],
        customer: CustomerProfile,
        intent: IntentResult,
    ) -> ProcessResult:
        suggestions = await self.response_generator.generate_quick_replies(text, context[:3])
        recent = await self.conversation_store.get_recent_messages(sender_id, self.RECENT_MESSAGES_LIMIT)

        return ProcessResult(
            mode=ProcessingMode.STAFF,
            sender_id=sender_id,
            suggestions=suggestions,
            confidence=max((s.confidence for s in suggestions), default=0.0),
            intent=intent,
            customer=customer,
            context=context,
            recent_messages=recent,
        )

    async def process_staff_reply(self, sender_id: str, staff_id: str, text: str) -> StaffReplyAck:
        """
        Record a human-authored reply.

        When enabled, the latest customer message and this reply are indexed
        as a new Q&A pair for future context retrieval.
        """
        try:
            recent = await self.conversation_store.get_recent_messages(sender_id, self.RECENT_MESSAGES_LIMIT)

            await self.conversation_store.save_message(StoredMessage(
                sender_id=sender_id,
                text=text,
                sender="staff",
                staff_id=staff_id,
            ))
            await self.customer_store.update_activity(
                sender_id,
                last_contact=datetime.now(timezone.utc),
                last_contact_by="staff",
            )
        except Exception as e:
            logger.exception(f"Failed to record staff reply for {sender_id}: {e}")
            return StaffReplyAck(success=False, sender_id=sender_id, staff_id=staff_id)

        indexed_ids: List[str] = []
        question = self._last_customer_message(recent)
        if self.index_staff_replies and question:
            try:
                indexed_ids = await self.context_retriever.add_documents([{
                    "question": question.text,
                    "answer": text,
                    "conversation_id": f"staff_{sender_id}",
                    "customer_id": sender_id,
                }])
            except Exception as e:
                logger.error(f"Failed to index staff reply for {sender_id}: {e}")

        return StaffReplyAck(success=True, sender_id=sender_id, staff_id=staff_id, indexed_ids=indexed_ids)

    async def summarize(self, sender_id: str, limit: int = 20) -> str:
        """Summarize a customer's recent thread."""
        recent = await self.conversation_store.get_recent_messages(sender_id, limit)
        messages = [{"from": m.sender, "text": m.text} for m in recent]
        return await self.response_generator.summarize_conversation(messages)

    @staticmethod
    def fallback_result(sender_id: str, mode: ProcessingMode = ProcessingMode.ASSISTANT) -> ProcessResult:
        return ProcessResult(
            mode=mode,
            sender_id=sender_id,
            reply=FALLBACK_REPLY,
            confidence=0.0,
            escalation=EscalationVerdict.system_error(),
            error=True,
        )

    @staticmethod
    def _last_customer_message(messages: List[StoredMessage]) -> Optional[StoredMessage]:
        for message in reversed(messages):
            if message.sender == "customer":
                return message
        return None
