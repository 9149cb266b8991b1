"""
CustomerStore protocol for Chatbot Copilot.

The customer record is owned by an external store; the pipeline reads
profiles and requests activity updates.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable


@dataclass
class CustomerProfile:
    """Read-only view of a customer used for prompting."""
    id: str
    display_name: Optional[str] = None
    total_prior_conversations: int = 0
    last_contact: Optional[datetime] = None
    last_intent: Optional[str] = None
    last_contact_by: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "total_prior_conversations": self.total_prior_conversations,
            "last_contact": self.last_contact.isoformat() if self.last_contact else None,
            "last_intent": self.last_intent,
            "last_contact_by": self.last_contact_by,
        }


@runtime_checkable
class CustomerStore(Protocol):
    """Protocol for customer profile lookups."""

    async def get_profile(self, customer_id: str) -> Optional[CustomerProfile]:
        ...

    async def get_or_create(self, customer_id: str) -> CustomerProfile:
        ...

    async def update_activity(self, customer_id: str, **fields: Any) -> None:
        ...


class InMemoryCustomerStore:
    """Process-local customer store."""

    def __init__(self):
        self._profiles: Dict[str, CustomerProfile] = {}

    async def get_profile(self, customer_id: str) -> Optional[CustomerProfile]:
        return self._profiles.get(customer_id)

    async def get_or_create(self, customer_id: str) -> CustomerProfile:
        profile = self._profiles.get(customer_id)
        if profile is None:
            profile = CustomerProfile(id=customer_id)
            self._profiles[customer_id] = profile
        return profile

    async def update_activity(self, customer_id: str, **fields: Any) -> None:
        profile = await self.get_or_create(customer_id)
        for name, value in fields.items():
            if hasattr(profile, name):
                setattr(profile, name, value)
            else:
                profile.extra[name] = value

    def add(self, profile: CustomerProfile) -> None:
        self._profiles[profile.id] = profile
