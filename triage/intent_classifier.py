"""
Intent Classification for Chatbot Copilot.

Uses LLM structured extraction to identify what a customer wants.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from llm.json_extractor import extract_first_json_object
from llm.prompt_templates import PromptTemplates
from llm.providers.base import GenerationProvider
from llm.retry import RetryExecutor

logger = logging.getLogger(__name__)


class Intent(Enum):
    """Customer intent categories."""
    OPEN_ACCOUNT = "OPEN_ACCOUNT"
    TRANSFER = "TRANSFER"
    CARD = "CARD"
    LOAN = "LOAN"
    COMPLAINT = "COMPLAINT"
    GENERAL_INQUIRY = "GENERAL_INQUIRY"
    GREETING = "GREETING"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: Any) -> "Intent":
        """Map a model-provided label onto the closed set (unknown -> OTHER)."""
        label = str(value or "").strip().upper()
        return cls.__members__.get(label, cls.OTHER)


DEFAULT_DEPARTMENT = "ทั่วไป"


@dataclass
class IntentResult:
    """Result of intent classification."""
    intent: Intent
    confidence: float = 0.0
    keywords: List[str] = field(default_factory=list)
    suggested_department: str = DEFAULT_DEPARTMENT
    summary: str = ""
    error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "keywords": list(self.keywords),
            "suggested_department": self.suggested_department,
            "summary": self.summary,
            "error": self.error,
        }


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class IntentClassifier:
    """
    Classifies customer intent from messages using the generation capability.

    detect_intent never raises: parse failures and exhausted retries both
    produce the GENERAL_INQUIRY fallback with low confidence, which keeps
    the downstream escalation check conservative.
    """

    FALLBACK_INTENT = Intent.GENERAL_INQUIRY
    FALLBACK_CONFIDENCE = 0.3

    def __init__(self, provider: GenerationProvider, retry_executor: RetryExecutor):
        """
        Initialize the intent classifier.

        Args:
            provider: Generation capability
            retry_executor: Retry/rotation policy for provider calls
        """
        self.provider = provider
        self.retry_executor = retry_executor

    async def detect_intent(self, text: str) -> IntentResult:
        """
        Classify the intent of a customer message.

        Args:
            text: The customer message

        Returns:
            IntentResult (fallback result with error=True on any failure)
        """
        prompt = PromptTemplates.build_intent_prompt(text)

        try:
            result = await self.retry_executor.execute_with_retry(
                lambda: self.provider.generate_text(prompt)
            )
        except Exception as e:
            logger.warning(f"Intent detection failed: {e}, using default")
            return self.fallback(text)

        data = extract_first_json_object(result.text)
        if data is None:
            logger.warning("Failed to parse intent JSON, using default")
            return self.fallback(text)

        try:
            intent_result = self._from_payload(data, text)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed intent payload ({e}), using default")
            return self.fallback(text)

        logger.debug(f"Detected intent: {intent_result.intent.value} ({intent_result.confidence})")
        return intent_result

    def fallback(self, text: str) -> IntentResult:
        return IntentResult(
            intent=self.FALLBACK_INTENT,
            confidence=self.FALLBACK_CONFIDENCE,
            keywords=[],
            suggested_department=DEFAULT_DEPARTMENT,
            summary=text,
            error=True,
        )

    @staticmethod
    def _from_payload(data: Dict[str, Any], text: str) -> IntentResult:
        keywords = data.get("keywords") or []
        if not isinstance(keywords, list):
            keywords = [keywords]

        return IntentResult(
            intent=Intent.parse(data.get("intent")),
            confidence=_clamp(float(data.get("confidence", 0.5))),
            keywords=[str(k) for k in keywords],
            suggested_department=str(data.get("suggestedDepartment") or DEFAULT_DEPARTMENT),
            summary=str(data.get("summary") or text),
        )
