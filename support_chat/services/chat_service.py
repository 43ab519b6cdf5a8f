"""
Chat Service - Business logic layer for chat operations

Composes the conversation store and the reply generator:
resolve conversation -> format history -> generate reply -> persist both turns.
Errors are never recovered here; they propagate to the API layer.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

from loguru import logger

from support_chat.config.settings import settings
from support_chat.llm.history import format_history
from support_chat.llm.reply_generator import LangChainReplyGenerator, ReplyGenerator
from support_chat.memory.conversation_store import ConversationStore, StoredMessage, get_conversation_store


@dataclass
class ChatResult:
    """Outcome of one handled user message"""
    reply: str
    session_id: str
    message_id: str
    tokens_used: Optional[int]
    response_time_ms: int


class SessionLocks:
    """
    Per-session asyncio locks.

    A lock lives only while some request holds or waits for it, so the table
    stays bounded by the number of in-flight sessions.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if self._users[session_id] == 0:
                del self._users[session_id]
                del self._locks[session_id]

    def __len__(self) -> int:
        return len(self._locks)


class ChatService:
    """Orchestrates one chat turn end to end"""

    def __init__(
        self,
        store: ConversationStore,
        generator: ReplyGenerator,
        serialize_sessions: Optional[bool] = None,
        max_history_messages: Optional[int] = None,
    ):
        """
        Args:
            store: Conversation persistence
            generator: Reply generator for the configured provider
            serialize_sessions: Run requests for one session one at a time
            max_history_messages: Replay only the most recent N turns (0 = all)
        """
        self.store = store
        self.generator = generator
        self.serialize_sessions = (
            settings.serialize_session_requests if serialize_sessions is None else serialize_sessions
        )
        self.max_history_messages = (
            settings.max_conversation_messages if max_history_messages is None else max_history_messages
        )
        self._session_locks = SessionLocks()

    def _history_window(self, messages: List[StoredMessage]) -> List[StoredMessage]:
        if self.max_history_messages > 0 and len(messages) > self.max_history_messages:
            return messages[-self.max_history_messages:]
        return messages

    async def process_message(self, session_id: str, user_message: str) -> ChatResult:
        """
        Process a user message and generate the AI response.

        Args:
            session_id: Client session token
            user_message: Validated, trimmed user text

        Returns:
            ChatResult with the ai message id and metrics
        """
        if not self.serialize_sessions:
            return await self._process(session_id, user_message)
        async with self._session_locks.hold(session_id):
            return await self._process(session_id, user_message)

    async def _process(self, session_id: str, user_message: str) -> ChatResult:
        conversation = await self.store.resolve(session_id)

        history = format_history(self._history_window(conversation.messages))
        logger.debug(
            f"Session {session_id}: replaying {len(history)} of {len(conversation.messages)} stored turns"
        )

        result = await self.generator.generate(history, user_message)

        _, ai_message = await self.store.append_exchange(conversation.id, user_message, result.reply)

        return ChatResult(
            reply=result.reply,
            session_id=session_id,
            message_id=ai_message.id,
            tokens_used=result.tokens_used,
            response_time_ms=result.response_time_ms,
        )


# Global instance (lazy initialization)
_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    """Get or create the global chat service wired from settings"""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(
            store=get_conversation_store(),
            generator=LangChainReplyGenerator(),
        )
    return _chat_service
