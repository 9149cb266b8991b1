"""
API Routes for Chatbot Copilot.
"""

from . import messages

__all__ = ["messages"]
