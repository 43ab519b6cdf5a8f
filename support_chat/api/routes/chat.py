"""
Chat endpoints for the web widget

POST /api/chat/message runs one turn through the chat service;
GET /api/chat/history/{session_id} replays what is stored for a session.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from support_chat.api.dependencies import (
    enforce_chat_rate_limit,
    get_chat_service,
    get_conversation_store,
)
from support_chat.api.schemas import (
    ChatMessageRequest,
    ChatMessageResponse,
    HistoryMessage,
    HistoryResponse,
    ReplyMetadata,
    is_valid_session_id,
)
from support_chat.channels import OutgoingMessage, web_channel
from support_chat.memory.conversation_store import ConversationStore
from support_chat.services.chat_service import ChatService
from support_chat.utils.errors import ValidationError


router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post(
    "/message",
    response_model=ChatMessageResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(enforce_chat_rate_limit)],
)
async def send_message(
    request: ChatMessageRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send a user message and get the assistant's reply

    The message is trimmed and must be 1-2000 characters; sessionId must be a
    UUID. Both turns are stored only after a reply is generated.
    """
    incoming = await web_channel.parse_incoming(request)
    logger.info(f"Message received - session={incoming.session_id}, length={len(incoming.text)}")

    result = await chat_service.process_message(incoming.session_id, incoming.text)

    await web_channel.send_response(
        OutgoingMessage(
            text=result.reply,
            session_id=result.session_id,
            channel_type=incoming.channel_type,
            message_id=result.message_id,
            tokens_used=result.tokens_used,
            response_time_ms=result.response_time_ms,
        )
    )

    return ChatMessageResponse(
        reply=result.reply,
        session_id=result.session_id,
        message_id=result.message_id,
        metadata=ReplyMetadata(
            tokens_used=result.tokens_used,
            response_time=result.response_time_ms,
        ),
    )


@router.get("/history/{session_id}", response_model=HistoryResponse)
async def get_history(
    session_id: str,
    store: ConversationStore = Depends(get_conversation_store),
):
    """Stored messages for a session, oldest first ([] if the session is unseen)"""
    if not is_valid_session_id(session_id):
        raise ValidationError(
            "Invalid session ID format",
            details=[{"field": "sessionId", "message": "Must be a UUID"}],
        )

    messages = await store.get_history(session_id)
    logger.debug(f"History requested - session={session_id}, messages={len(messages)}")

    return HistoryResponse(
        messages=[
            HistoryMessage(id=m.id, role=m.role, text=m.text, created_at=m.created_at)
            for m in messages
        ]
    )
