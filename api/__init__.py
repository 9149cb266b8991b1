"""
API Module for Chatbot Copilot.

FastAPI application with routes for:
- Inbound customer messages
- Staff replies
- Conversation summaries
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
