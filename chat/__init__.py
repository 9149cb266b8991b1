"""
Chat Module for Chatbot Copilot.

Entry points for processing inbound customer messages and staff replies.
"""

from .processor import MessageProcessor, ProcessingMode, ProcessResult, StaffReplyAck
from .business_hours import BusinessHours, select_mode

__all__ = [
    "MessageProcessor",
    "ProcessingMode",
    "ProcessResult",
    "StaffReplyAck",
    "BusinessHours",
    "select_mode",
]
