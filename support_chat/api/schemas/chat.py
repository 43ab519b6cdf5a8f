"""
Chat request/response models for the public API contract
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from support_chat.config.constants import MAX_MESSAGE_LENGTH

_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def is_valid_session_id(value: str) -> bool:
    """Session ids are client-generated UUID strings"""
    return bool(_UUID_RE.match(value or ""))


class ChatMessageRequest(BaseModel):
    """User message sent from the chat widget"""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "examples": [
                {
                    "message": "How long does shipping take?",
                    "sessionId": "3f1c2a9e-6a43-4d7b-9b1e-2f0c8e5d7a11",
                }
            ]
        },
    )

    message: str = Field(
        ...,
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
        description="The user's message (trimmed)"
    )
    session_id: str = Field(..., alias="sessionId", description="Client session UUID")

    @field_validator("session_id")
    @classmethod
    def validate_session_id(cls, value: str) -> str:
        if not is_valid_session_id(value):
            raise ValueError("Invalid session ID format")
        return value


class ReplyMetadata(BaseModel):
    """Performance metrics for one reply"""
    model_config = ConfigDict(populate_by_name=True)

    tokens_used: Optional[int] = Field(default=None, alias="tokensUsed")
    response_time: int = Field(..., alias="responseTime", description="Milliseconds spent generating")


class ChatMessageResponse(BaseModel):
    """Assistant reply for a user message"""
    model_config = ConfigDict(populate_by_name=True)

    reply: str
    session_id: str = Field(..., alias="sessionId")
    message_id: str = Field(..., alias="messageId")
    metadata: ReplyMetadata


class HistoryMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: str
    text: str
    created_at: datetime = Field(..., alias="createdAt")


class HistoryResponse(BaseModel):
    """Conversation history in creation order"""
    messages: List[HistoryMessage] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """
    Health check response

    Attributes:
        status: Service health status
        service: Service name
        version: API version
        timestamp: Server time (ISO 8601)
    """
    status: str = Field(..., description="Health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Server time")
