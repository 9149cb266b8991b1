"""
Escalation Evaluator for Chatbot Copilot.

Decides whether a human operator must take over a conversation, why, and
how urgently.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .intent_classifier import Intent
from .keywords import DEFAULT_KEYWORDS, KeywordTables, contains_any, count_matches

logger = logging.getLogger(__name__)


class Priority(Enum):
    """Escalation priority tiers."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class EscalationFactors:
    """The five independent escalation signals, in reporting order."""
    low_confidence: bool = False
    sensitive_topic: bool = False
    customer_frustration: bool = False
    high_value_intent: bool = False
    explicit_human_request: bool = False

    def active_count(self) -> int:
        return sum(1 for f in fields(self) if getattr(self, f.name))

    def any(self) -> bool:
        return self.active_count() > 0

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


FACTOR_DESCRIPTIONS = {
    "low_confidence": "AI ไม่แน่ใจในคำตอบ",
    "sensitive_topic": "เรื่องที่ต้องพิจารณาเป็นพิเศษ",
    "customer_frustration": "ลูกค้าอาจไม่พอใจ",
    "high_value_intent": "เรื่องสำคัญ",
    "explicit_human_request": "ลูกค้าขอคุยกับเจ้าหน้าที่",
}

UNSPECIFIED_REASON = "ไม่ระบุ"
SYSTEM_ERROR_REASON = "system_error"


@dataclass
class EscalationVerdict:
    """Outcome of an escalation check."""
    should_escalate: bool
    factors: Dict[str, bool] = field(default_factory=dict)
    reason: str = UNSPECIFIED_REASON
    priority: Priority = Priority.LOW

    @classmethod
    def system_error(cls) -> "EscalationVerdict":
        return cls(
            should_escalate=True,
            factors={},
            reason=SYSTEM_ERROR_REASON,
            priority=Priority.HIGH,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "should_escalate": self.should_escalate,
            "factors": dict(self.factors),
            "reason": self.reason,
            "priority": self.priority.value,
        }


def compute_priority(factors: EscalationFactors) -> Priority:
    """
    Priority tier for a set of factors.

    Sensitive topics and explicit human requests force HIGH regardless of
    how many other factors fired; the count thresholds apply otherwise.
    """
    count = factors.active_count()

    if factors.sensitive_topic or factors.explicit_human_request or count >= 3:
        return Priority.HIGH
    if factors.customer_frustration or factors.high_value_intent or count >= 2:
        return Priority.MEDIUM
    return Priority.LOW


def describe(factors: EscalationFactors) -> str:
    """Comma-joined descriptions of active factors."""
    reasons = [
        FACTOR_DESCRIPTIONS[f.name]
        for f in fields(factors)
        if getattr(factors, f.name)
    ]
    return ", ".join(reasons) or UNSPECIFIED_REASON


def decide(factors: EscalationFactors) -> EscalationVerdict:
    """Build a verdict from already-evaluated factors."""
    return EscalationVerdict(
        should_escalate=factors.any(),
        factors=factors.to_dict(),
        reason=describe(factors),
        priority=compute_priority(factors),
    )


def analyze_sentiment(message: str, keywords: KeywordTables = DEFAULT_KEYWORDS) -> int:
    """
    Rough sentiment of a message.

    Returns:
        1 (positive), 0 (neutral) or -1 (negative)
    """
    lowered = message.lower()
    score = sum(1 for w in keywords.positive_words if w in lowered)
    score -= sum(1 for w in keywords.negative_words if w in lowered)

    if score > 0:
        return 1
    if score < 0:
        return -1
    return 0


class EscalationEvaluator:
    """
    Multi-factor rule engine for human handoff.

    Factors:
    1. Generated answer confidence below threshold
    2. Sensitive topic mentioned
    3. Two or more frustration indicators
    4. High-value intent (complaint, loan)
    5. Explicit request for a human
    """

    def __init__(
        self,
        confidence_threshold: float = 0.7,
        keywords: KeywordTables = DEFAULT_KEYWORDS,
    ):
        self.confidence_threshold = confidence_threshold
        self.keywords = keywords

    def evaluate(
        self,
        message: str,
        confidence: float,
        intent: Optional[Union[Intent, str]] = None,
    ) -> EscalationVerdict:
        """
        Evaluate escalation factors for a message and AI result.

        Args:
            message: Raw customer message
            confidence: Confidence of the generated answer
            intent: Detected intent (enum or label)

        Returns:
            EscalationVerdict
        """
        factors = EscalationFactors()

        if confidence < self.confidence_threshold:
            factors.low_confidence = True
            logger.debug(f"Escalation factor: Low confidence ({confidence})")

        if contains_any(message, self.keywords.sensitive_topics):
            factors.sensitive_topic = True
            logger.debug("Escalation factor: Sensitive topic")

        frustration_score = count_matches(message, self.keywords.frustration_indicators)
        if frustration_score >= 2:
            factors.customer_frustration = True
            logger.debug(f"Escalation factor: Customer frustration (score: {frustration_score})")

        label = intent.value if isinstance(intent, Intent) else intent
        if label and label in self.keywords.high_value_intents:
            factors.high_value_intent = True
            logger.debug(f"Escalation factor: High-value intent ({label})")

        if contains_any(message, self.keywords.human_request_phrases):
            factors.explicit_human_request = True
            logger.debug("Escalation factor: Explicit human request")

        verdict = decide(factors)
        if verdict.should_escalate:
            logger.info(f"Escalation required ({verdict.priority.value}): {verdict.reason}")
        return verdict

    def should_escalate(self, message: str, ai_result: Any) -> EscalationVerdict:
        """
        Evaluate against an AI result object or mapping.

        The result must expose `confidence`; `intent` may be an Intent, a
        label, an IntentResult, or a mapping such as IntentResult.to_dict().
        """
        if isinstance(ai_result, Mapping):
            confidence = ai_result.get("confidence", 0.0)
            intent = ai_result.get("intent")
        else:
            confidence = getattr(ai_result, "confidence", 0.0)
            intent = getattr(ai_result, "intent", None)

        # Unwrap IntentResult or its dict form
        if isinstance(intent, Mapping):
            intent = intent.get("intent")
        else:
            intent = getattr(intent, "intent", intent)

        return self.evaluate(message, float(confidence or 0.0), intent)
