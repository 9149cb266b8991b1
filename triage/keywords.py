"""
Keyword tables for triage.

Word lists are data: deployments can swap a KeywordTables instance without
touching control flow. All matching is case-insensitive substring
containment.
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class KeywordTables:
    """Phrase lists used by confidence scoring and escalation."""

    # Topics that always require human review
    sensitive_topics: Tuple[str, ...] = (
        "ร้องเรียน", "complaint", "ไม่พอใจ", "โกรธ", "หลอก", "ฉ้อโกง",
        "ปัญหา", "เงินหาย", "ผิดพลาด", "error", "ฟ้องร้อง", "legal",
        "เสียหาย", "ขอยกเลิก", "ปิดบัญชี", "urgent", "ด่วน",
    )

    # Two or more distinct hits mean the customer is frustrated
    frustration_indicators: Tuple[str, ...] = (
        "ไม่เข้าใจ", "พูดซ้ำ", "อีกแล้ว", "กี่ครั้ง", "เมื่อไหร่",
        "ทำไม", "ช้า", "รอนาน", "!!!", "???", "เบื่อ",
    )

    # Explicit requests to talk to a person
    human_request_phrases: Tuple[str, ...] = (
        "ขอคุยกับคน", "ขอคุยกับเจ้าหน้าที่", "คุยกับเจ้าหน้าที่", "ขอเจ้าหน้าที่",
        "พูดกับคน", "ติดต่อเจ้าหน้าที่", "operator", "staff", "human",
        "real person",
    )

    # Hedging in generated answers
    uncertainty_phrases: Tuple[str, ...] = (
        "ไม่แน่ใจ", "อาจจะ", "น่าจะ", "คิดว่า", "ลองติดต่อ",
    )

    # Intent labels that need a human touch
    high_value_intents: Tuple[str, ...] = ("COMPLAINT", "LOAN")

    positive_words: Tuple[str, ...] = (
        "ขอบคุณ", "ดี", "เยี่ยม", "สุดยอด", "ประทับใจ", "พอใจ",
    )

    negative_words: Tuple[str, ...] = (
        "ไม่ดี", "แย่", "ไม่พอใจ", "ผิดหวัง", "โกรธ", "เสียใจ",
    )


DEFAULT_KEYWORDS = KeywordTables()


def contains_any(text: str, phrases: Tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(p.lower() in lowered for p in phrases)


def count_matches(text: str, phrases: Tuple[str, ...]) -> int:
    """Number of distinct phrases found in text."""
    lowered = text.lower()
    return sum(1 for p in set(phrases) if p.lower() in lowered)
