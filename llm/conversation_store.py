"""
ConversationStore protocol for Chatbot Copilot.

Message persistence belongs to the caller; the processor only records
messages through this protocol. An in-memory implementation is provided for
tests and single-process deployments.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, runtime_checkable


@dataclass
class StoredMessage:
    """A message recorded for a customer thread."""
    sender_id: str
    text: str
    sender: str  # customer | ai | staff
    intent: Optional[str] = None
    intent_confidence: Optional[float] = None
    confidence: Optional[float] = None
    escalated: bool = False
    staff_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict:
        return {
            "sender_id": self.sender_id,
            "text": self.text,
            "sender": self.sender,
            "intent": self.intent,
            "intent_confidence": self.intent_confidence,
            "confidence": self.confidence,
            "escalated": self.escalated,
            "staff_id": self.staff_id,
            "created_at": self.created_at.isoformat(),
        }


@runtime_checkable
class ConversationStore(Protocol):
    """Protocol for message persistence."""

    async def save_message(self, message: StoredMessage) -> None:
        """Record a message."""
        ...

    async def get_recent_messages(self, sender_id: str, limit: int = 10) -> List[StoredMessage]:
        """Most recent messages for a sender, oldest first."""
        ...


class InMemoryConversationStore:
    """Process-local conversation store."""

    MAX_MESSAGES_PER_SENDER = 200

    def __init__(self):
        self._messages: Dict[str, List[StoredMessage]] = {}

    async def save_message(self, message: StoredMessage) -> None:
        thread = self._messages.setdefault(message.sender_id, [])
        thread.append(message)
        if len(thread) > self.MAX_MESSAGES_PER_SENDER:
            del thread[:-self.MAX_MESSAGES_PER_SENDER]

    async def get_recent_messages(self, sender_id: str, limit: int = 10) -> List[StoredMessage]:
        return list(self._messages.get(sender_id, [])[-limit:])

    def count(self) -> int:
        return sum(len(msgs) for msgs in self._messages.values())
