"""
Triage Module for Chatbot Copilot.

This module decides who should answer a customer:
- Intent classification (LLM structured extraction)
- Multi-factor escalation to human staff
- Keyword tables shared by scoring rules
"""

from .intent_classifier import IntentClassifier, Intent, IntentResult
from .escalation import (
    EscalationEvaluator,
    EscalationFactors,
    EscalationVerdict,
    Priority,
    analyze_sentiment,
)
from .keywords import KeywordTables, DEFAULT_KEYWORDS

__all__ = [
    "IntentClassifier",
    "Intent",
    "IntentResult",
    "EscalationEvaluator",
    "EscalationFactors",
    "EscalationVerdict",
    "Priority",
    "analyze_sentiment",
    "KeywordTables",
    "DEFAULT_KEYWORDS",
]
