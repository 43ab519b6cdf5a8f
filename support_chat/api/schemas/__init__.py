"""
API schemas for request/response models
"""

from support_chat.api.schemas.chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    HealthResponse,
    HistoryMessage,
    HistoryResponse,
    ReplyMetadata,
    is_valid_session_id,
)

__all__ = [
    "ChatMessageRequest",
    "ChatMessageResponse",
    "HealthResponse",
    "HistoryMessage",
    "HistoryResponse",
    "ReplyMetadata",
    "is_valid_session_id",
]
