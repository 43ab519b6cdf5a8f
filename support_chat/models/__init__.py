"""
ORM models
"""

from support_chat.models.domain import Base, Conversation, Message

__all__ = ["Base", "Conversation", "Message"]
