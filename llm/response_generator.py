"""
Response Generator for Chatbot Copilot.

Produces customer replies, staff quick-reply suggestions and conversation
summaries through the generation capability.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from triage.keywords import DEFAULT_KEYWORDS, KeywordTables

from .json_extractor import extract_first_json_array
from .prompt_templates import PromptTemplates
from .providers.base import GenerationProvider
from .retry import RetryExecutor

logger = logging.getLogger(__name__)


BASE_CONFIDENCE = 0.8
UNCERTAINTY_PENALTY = 0.1
SHORT_ANSWER_CHARS = 100
SHORT_ANSWER_BONUS = 0.05
LONG_ANSWER_CHARS = 500
LONG_ANSWER_PENALTY = 0.1
MIN_CONFIDENCE = 0.3
MAX_CONFIDENCE = 1.0


@dataclass
class GeneratedResponse:
    """A generated customer reply."""
    text: str
    confidence: float
    tokens_used: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "confidence": self.confidence, "tokens_used": self.tokens_used}


@dataclass
class QuickReply:
    """A suggested reply for staff."""
    text: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "confidence": self.confidence}


DEFAULT_QUICK_REPLIES = (
    QuickReply(text="ได้เลยครับ กรุณารอสักครู่", confidence=0.7),
    QuickReply(text="ขอข้อมูลเพิ่มเติมได้ไหมครับ", confidence=0.6),
    QuickReply(text="สนใจบริการอื่นอีกไหมครับ", confidence=0.5),
)


def calculate_confidence(text: str, uncertainty_phrases: Sequence[str] = DEFAULT_KEYWORDS.uncertainty_phrases) -> float:
    """
    Heuristic confidence of a generated answer.

    The provider exposes no calibrated probability, so the score is derived
    from the text: hedging phrases lower it, short direct answers raise it,
    long answers lower it. Always within [0.3, 1.0].
    """
    confidence = BASE_CONFIDENCE
    lowered = text.lower()

    for phrase in uncertainty_phrases:
        if phrase.lower() in lowered:
            confidence -= UNCERTAINTY_PENALTY

    if len(text) < SHORT_ANSWER_CHARS:
        confidence += SHORT_ANSWER_BONUS
    if len(text) > LONG_ANSWER_CHARS:
        confidence -= LONG_ANSWER_PENALTY

    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(confidence, 4)))


class ResponseGenerator:
    """
    Generates answers grounded in retrieved Q&A history.

    Provider failures surface as ProviderExhaustedError; the message processor
    turns them into a safe escalation.
    """

    MAX_QUICK_REPLIES = 3

    def __init__(
        self,
        provider: GenerationProvider,
        retry_executor: RetryExecutor,
        keywords: KeywordTables = DEFAULT_KEYWORDS,
        business_hours: str = "10:00-22:00",
    ):
        """
        Initialize the generator.

        Args:
            provider: Generation capability
            retry_executor: Retry/rotation policy for provider calls
            keywords: Keyword tables (uncertainty phrases)
            business_hours: Staff availability window quoted in prompts
        """
        self.provider = provider
        self.retry_executor = retry_executor
        self.keywords = keywords
        self.business_hours = business_hours

    async def generate_response(
        self,
        message: str,
        context_documents: Optional[List[Any]] = None,
        customer_profile: Optional[Any] = None,
    ) -> GeneratedResponse:
        """
        Generate a reply for a customer message.

        Args:
            message: Customer message
            context_documents: Retrieved ContextDocuments
            customer_profile: CustomerProfile (display name, prior conversations)

        Returns:
            GeneratedResponse with heuristic confidence
        """
        prompt = PromptTemplates.build_response_prompt(
            message=message,
            documents=list(context_documents or []),
            customer_name=getattr(customer_profile, "display_name", None),
            total_chats=getattr(customer_profile, "total_prior_conversations", 0),
            business_hours=self.business_hours,
        )

        result = await self.retry_executor.execute_with_retry(
            lambda: self.provider.generate_text(prompt)
        )

        text = result.text
        logger.debug(f"Generated response for: {message[:50]}...")

        return GeneratedResponse(
            text=text,
            confidence=calculate_confidence(text, self.keywords.uncertainty_phrases),
            tokens_used=max(0, int(result.token_count or 0)),
        )

    async def generate_quick_replies(
        self,
        message: str,
        context_documents: Optional[List[Any]] = None,
    ) -> List[QuickReply]:
        """
        Suggest short replies for staff, grounded in the top-3 context documents.

        Returns:
            Up to three QuickReply items (defaults if the output is unparseable)
        """
        prompt = PromptTemplates.build_quick_replies_prompt(message, list(context_documents or []))

        result = await self.retry_executor.execute_with_retry(
            lambda: self.provider.generate_text(prompt)
        )

        items = extract_first_json_array(result.text)
        replies = self._parse_quick_replies(items) if items else []

        if not replies:
            logger.warning("Failed to parse quick replies JSON, using defaults")
            return list(DEFAULT_QUICK_REPLIES)

        return replies[:self.MAX_QUICK_REPLIES]

    async def summarize_conversation(self, messages: List[Mapping[str, Any]]) -> str:
        """Summarize a conversation in two or three Thai sentences."""
        if not messages:
            return ""

        prompt = PromptTemplates.build_summary_prompt(messages)
        result = await self.retry_executor.execute_with_retry(
            lambda: self.provider.generate_text(prompt)
        )
        return result.text.strip()

    @staticmethod
    def _parse_quick_replies(items: List[Any]) -> List[QuickReply]:
        replies = []
        for item in items:
            if isinstance(item, str):
                text, confidence = item, 0.5
            elif isinstance(item, dict) and item.get("text"):
                text = str(item["text"])
                try:
                    confidence = float(item.get("confidence", 0.5))
                except (TypeError, ValueError):
                    confidence = 0.5
            else:
                continue
            replies.append(QuickReply(text=text, confidence=max(0.0, min(1.0, confidence))))
        return replies
