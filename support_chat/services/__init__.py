"""
Service layer - Chat orchestration
"""

from support_chat.services.chat_service import ChatResult, ChatService, SessionLocks, get_chat_service

__all__ = ["ChatResult", "ChatService", "SessionLocks", "get_chat_service"]
