"""
Business hours for Chatbot Copilot.

Staff answer during business hours (staff-assisted mode); the assistant
answers on its own outside them.
"""

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from .processor import ProcessingMode


def _parse_hhmm(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


@dataclass
class BusinessHours:
    """Daily opening window in a fixed timezone (end is exclusive)."""
    start: str = "10:00"
    end: str = "22:00"
    timezone: str = "Asia/Bangkok"

    @property
    def label(self) -> str:
        return f"{self.start}-{self.end}"

    def is_open(self, now: Optional[datetime] = None) -> bool:
        tz = ZoneInfo(self.timezone)
        local = now.astimezone(tz) if now else datetime.now(tz)
        current = local.time().replace(second=0, microsecond=0)
        return _parse_hhmm(self.start) <= current < _parse_hhmm(self.end)


def select_mode(hours: BusinessHours, now: Optional[datetime] = None) -> ProcessingMode:
    """Staff-assisted during business hours, assistant-autonomous otherwise."""
    return ProcessingMode.STAFF if hours.is_open(now) else ProcessingMode.ASSISTANT
