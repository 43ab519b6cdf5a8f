"""
Memory layer - Conversation persistence
"""

from support_chat.memory.conversation_store import (
    ConversationRecord,
    ConversationStore,
    StoredMessage,
    get_conversation_store,
)

__all__ = [
    "ConversationRecord",
    "ConversationStore",
    "StoredMessage",
    "get_conversation_store",
]
